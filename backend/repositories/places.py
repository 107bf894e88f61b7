"""
Spatial place store backed by SQLAlchemy/SQLite.
"""
import logging
import math
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import sessionmaker

from db import get_default_session_factory
from domain.errors import ResolutionError
from domain.models import FeatureClass, PlaceRecord
from repositories.models import PLACE_TABLES
from services.geo import distance_meters

logger = logging.getLogger(__name__)


def _record_from_orm(orm, distance_sq, latitude: float, longitude: float) -> PlaceRecord:
    try:
        lat = float(orm.latitude)
        lon = float(orm.longitude)
        return PlaceRecord(
            external_id=int(orm.external_id),
            name=str(orm.name),
            ascii_name=orm.ascii_name,
            alternate_names=[n for n in (orm.alternate_names or "").split(",") if n],
            latitude=lat,
            longitude=lon,
            feature_class=FeatureClass(orm.feature_class),
            feature_code=str(orm.feature_code),
            country_code=str(orm.country_code),
            admin1_code=orm.admin1_code or None,
            admin2_code=orm.admin2_code or None,
            admin3_code=orm.admin3_code or None,
            admin4_code=orm.admin4_code or None,
            population=int(orm.population) if orm.population is not None else None,
            elevation=int(orm.elevation) if orm.elevation is not None else None,
            timezone=orm.timezone,
            distance=math.sqrt(float(distance_sq)),
            distance_meters=distance_meters(latitude, longitude, lat, lon),
        )
    except (TypeError, ValueError) as exc:
        raise ResolutionError(f"Malformed row id={orm.id} in {orm.__tablename__}: {exc}") from exc


class SqlSpatialStore:
    """SpatialStore reading one `place_<class>` table per feature class."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or get_default_session_factory()

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
        orm = PLACE_TABLES[FeatureClass(feature_class)]
        # Squared planar distance keeps the ordering and needs no SQL sqrt()
        distance_sq = (orm.latitude - latitude) * (orm.latitude - latitude) + (
            orm.longitude - longitude
        ) * (orm.longitude - longitude)

        with self._session_factory() as session:
            query = session.query(orm, distance_sq.label("distance_sq"))
            if feature_codes:
                query = query.filter(orm.feature_code.in_(list(feature_codes)))
            if country_code is not None:
                query = query.filter(orm.country_code == country_code)
            if admin1 is not None:
                query = query.filter(orm.admin1_code == admin1)
            if admin2 is not None:
                query = query.filter(orm.admin2_code == admin2)
            if admin3 is not None:
                query = query.filter(orm.admin3_code == admin3)
            if admin4 is not None:
                query = query.filter(orm.admin4_code == admin4)
            rows = query.order_by(distance_sq, orm.id).limit(limit).all()

        logger.debug(
            "SqlSpatialStore.find_nearest: class=%s lat=%.6f lon=%.6f limit=%d got %d rows",
            orm.__tablename__,
            latitude,
            longitude,
            limit,
            len(rows),
        )
        return [_record_from_orm(row, dist_sq, latitude, longitude) for row, dist_sq in rows]

    def add_places(self, places: Iterable[PlaceRecord]) -> int:
        """Insert records into their class tables. Returns the number added."""
        count = 0
        with self._session_factory() as session:
            for place in places:
                orm_cls = PLACE_TABLES[place.feature_class]
                session.add(
                    orm_cls(
                        external_id=place.external_id,
                        name=place.name,
                        ascii_name=place.ascii_name,
                        alternate_names=",".join(place.alternate_names) or None,
                        latitude=place.latitude,
                        longitude=place.longitude,
                        feature_class=place.feature_class.value,
                        feature_code=place.feature_code,
                        country_code=place.country_code,
                        admin1_code=place.admin1_code,
                        admin2_code=place.admin2_code,
                        admin3_code=place.admin3_code,
                        admin4_code=place.admin4_code,
                        population=place.population,
                        elevation=place.elevation,
                        timezone=place.timezone,
                    )
                )
                count += 1
            session.commit()
        return count
