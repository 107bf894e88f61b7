"""
Attach the nearest park, forest, mountain and spot to a resolved place.

Thresholds are in coordinate degrees, the unit the store orders by. At the
equator 0.01 is roughly 1111 m and 0.001 roughly 111 m; they are calibrated
values and must not be converted to meters.
"""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Executor, Future, wait
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from domain.errors import ResolutionTimeout
from domain.models import FeatureClass, PlaceRecord, ResolvedPlace, ensure_store_rows
from repositories.base import SpatialStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoiCategory:
    attribute: str  # list attribute on ResolvedPlace
    feature_class: FeatureClass
    max_distance: float


POI_CATEGORIES: Tuple[PoiCategory, ...] = (
    PoiCategory("parks", FeatureClass.AREA, 0.01),
    PoiCategory("forests", FeatureClass.VEGETATION, 0.01),
    PoiCategory("mountains", FeatureClass.HYPSOGRAPHIC, 0.01),
    PoiCategory("spots", FeatureClass.SPOT, 0.001),
)


class PoiAttacher:
    def __init__(self, store: SpatialStore, categories: Tuple[PoiCategory, ...] = POI_CATEGORIES):
        self.store = store
        self.categories = categories

    def nearest_in_range(self, category: PoiCategory, latitude: float, longitude: float) -> Optional[PlaceRecord]:
        """Return the nearest record of the category if it is within its threshold."""
        rows = self.store.find_nearest(latitude, longitude, 1, category.feature_class)
        records = ensure_store_rows(rows, category.feature_class)
        if not records:
            return None
        nearest = records[0]
        if nearest.distance <= category.max_distance:
            return nearest
        logger.debug(
            "Nearest %s %s is %.6f away (max %.3f); not attached",
            category.attribute,
            nearest.name,
            nearest.distance,
            category.max_distance,
        )
        return None

    def attach(
        self,
        result: ResolvedPlace,
        latitude: float,
        longitude: float,
        executor: Optional[Executor] = None,
        timeout: Optional[float] = None,
    ) -> ResolvedPlace:
        """
        Query every category and fill the matching lists on `result`.

        With an executor the four lookups run concurrently; `timeout` bounds
        the fan-in. Any failing lookup fails the whole call.
        """
        if executor is None:
            found = {c.attribute: self.nearest_in_range(c, latitude, longitude) for c in self.categories}
        else:
            found = self._attach_concurrently(executor, latitude, longitude, timeout)

        for category in self.categories:
            record = found[category.attribute]
            setattr(result, category.attribute, [record] if record is not None else [])
        return result

    def _attach_concurrently(
        self,
        executor: Executor,
        latitude: float,
        longitude: float,
        timeout: Optional[float],
    ) -> Dict[str, Optional[PlaceRecord]]:
        futures: List[Tuple[PoiCategory, Future]] = [
            (c, executor.submit(self.nearest_in_range, c, latitude, longitude)) for c in self.categories
        ]
        done, not_done = wait([f for _, f in futures], timeout=timeout, return_when=FIRST_EXCEPTION)
        failed = [f for f in done if f.exception() is not None]
        if not_done:
            for future in not_done:
                future.cancel()
            if not failed:
                raise ResolutionTimeout(latitude, longitude, timeout or 0.0)
        if failed:
            # Surface the store's own exception unchanged
            failed[0].result()
        return {category.attribute: future.result() for category, future in futures}
