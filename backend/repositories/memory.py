"""
In-memory spatial store for development and tests.

Keeps one list per feature class; replace with SqlSpatialStore for real data.
"""
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence

from domain.models import FeatureClass, PlaceRecord
from services.geo import distance_meters, planar_distance


class InMemorySpatialStore:
    """SpatialStore over plain Python lists, one per feature class."""

    def __init__(self, places: Optional[Iterable[PlaceRecord]] = None):
        self._partitions: Dict[FeatureClass, List[PlaceRecord]] = {fc: [] for fc in FeatureClass}
        self.add_places(places or [])

    def add_places(self, places: Iterable[PlaceRecord]) -> None:
        for place in places:
            self._partitions[place.feature_class].append(replace(place, distance=None, distance_meters=None))

    def count(self, feature_class: FeatureClass) -> int:
        return len(self._partitions[feature_class])

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
        wanted = {
            "country_code": country_code,
            "admin1_code": admin1,
            "admin2_code": admin2,
            "admin3_code": admin3,
            "admin4_code": admin4,
        }
        matches = []
        for order, place in enumerate(self._partitions[FeatureClass(feature_class)]):
            if feature_codes and place.feature_code not in feature_codes:
                continue
            if any(value is not None and getattr(place, attr) != value for attr, value in wanted.items()):
                continue
            distance = planar_distance(latitude, longitude, place.latitude, place.longitude)
            matches.append((distance, order, place))

        matches.sort(key=lambda item: (item[0], item[1]))
        return [
            replace(
                place,
                alternate_names=list(place.alternate_names),
                distance=distance,
                distance_meters=distance_meters(latitude, longitude, place.latitude, place.longitude),
            )
            for distance, _, place in matches[:limit]
        ]
