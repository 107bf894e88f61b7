"""
Contract for the nearest-neighbor place store consumed by the resolver.
"""
from typing import List, Optional, Protocol, Sequence

from domain.models import FeatureClass, PlaceRecord


class SpatialStore(Protocol):
    """
    Nearest-neighbor queries over one partition per feature class.

    Implementations return fresh PlaceRecord copies with `distance` set to the
    planar distance (coordinate degrees) to the query point, nearest first.
    A filter left as None is not applied.
    """

    def find_nearest(
        self,
        latitude: float,
        longitude: float,
        limit: int,
        feature_class: FeatureClass,
        feature_codes: Optional[Sequence[str]] = None,
        country_code: Optional[str] = None,
        admin1: Optional[str] = None,
        admin2: Optional[str] = None,
        admin3: Optional[str] = None,
        admin4: Optional[str] = None,
    ) -> List[PlaceRecord]:
        ...
