"""
SQLAlchemy ORM models for persistence.

Each feature class is stored in its own table (`place_a` .. `place_v`) with
identical columns; there is no cross-class index.
"""
from typing import Dict

from sqlalchemy import BigInteger, Column, Float, Integer, String, Text

from db import Base
from domain.models import FeatureClass


class PlaceColumns:
    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    ascii_name = Column(String, nullable=True)
    alternate_names = Column(Text, nullable=True)  # comma separated
    latitude = Column(Float, nullable=False, index=True)
    longitude = Column(Float, nullable=False, index=True)
    feature_class = Column(String(1), nullable=False)
    feature_code = Column(String(10), nullable=False, index=True)
    country_code = Column(String(2), nullable=False, index=True)
    admin1_code = Column(String(20), nullable=True)
    admin2_code = Column(String(80), nullable=True)
    admin3_code = Column(String(20), nullable=True)
    admin4_code = Column(String(20), nullable=True)
    population = Column(BigInteger, nullable=True)
    elevation = Column(Integer, nullable=True)
    timezone = Column(String(40), nullable=True)


def _place_orm(feature_class: FeatureClass) -> type:
    code = feature_class.value
    return type(
        f"Place{code}ORM",
        (PlaceColumns, Base),
        {"__tablename__": f"place_{code.lower()}"},
    )


PLACE_TABLES: Dict[FeatureClass, type] = {fc: _place_orm(fc) for fc in FeatureClass}
