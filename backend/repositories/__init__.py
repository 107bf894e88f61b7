from .base import SpatialStore
from .memory import InMemorySpatialStore
from .places import SqlSpatialStore
from . import models

__all__ = ["SpatialStore", "InMemorySpatialStore", "SqlSpatialStore", "models"]
