"""
Reverse place resolution: coordinate -> district, city, state, country and
nearby points of interest.

The nearest populated place (feature class P) decides the branch:

- district-like (PPL, PPLX): the place is a district; its city comes from the
  admin-code lookup, else from a nearby populated candidate, else from a
  nearby admin seat sharing the admin4 code.
- anything else: the place is the city; the district is the nearest PPL/PPLX
  candidate sharing its admin4 code.

Every call works on fresh store copies and its own worker pool; nothing is
cached or shared between calls.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, List, Optional, Sequence, Union

from domain.errors import ResolutionTimeout
from domain.models import (
    MAX_PLACES_NEAR,
    FeatureClass,
    NotFound,
    PlaceRecord,
    ResolvedPlace,
    ResolveOptions,
    check_coordinate,
    ensure_store_rows,
)
from repositories.base import SpatialStore
from services.admin_hierarchy import AdminHierarchyResolver
from services.poi_attacher import PoiAttacher
from services.translator import (
    FeatureCodeTranslator,
    Translator,
    get_default_feature_code_translator,
    get_default_translator,
)
from settings import settings

logger = logging.getLogger(__name__)


def find_next_admin_city(candidates: Sequence[PlaceRecord], place: PlaceRecord) -> Optional[PlaceRecord]:
    """First admin seat sharing the place's admin4 code."""
    for candidate in candidates:
        if candidate.is_admin_seat_like and candidate.admin4_code == place.admin4_code:
            return candidate
    return None


def find_next_city_population(candidates: Sequence[PlaceRecord], district: PlaceRecord) -> Optional[PlaceRecord]:
    """
    First inhabited candidate sharing the district's admin4 code.

    Skipped entirely when the district already has a population; otherwise
    the district takes over the match's population.
    """
    if district.population_count > 0:
        return None
    for candidate in candidates:
        if candidate.population_count > 0 and candidate.admin4_code == district.admin4_code:
            district.population = candidate.population
            return candidate
    return None


def find_next_district(candidates: Sequence[PlaceRecord], city: PlaceRecord) -> Optional[PlaceRecord]:
    """First PPL/PPLX candidate sharing the city's admin4 code."""
    for candidate in candidates:
        if candidate.is_district_like and candidate.admin4_code == city.admin4_code:
            return candidate
    return None


def choose_city(
    city_from_admin: Optional[PlaceRecord],
    city_by_population: Optional[PlaceRecord],
    city_by_admin_seat: Optional[PlaceRecord],
) -> Optional[PlaceRecord]:
    if city_from_admin is not None:
        return city_from_admin
    if city_by_population is not None and city_by_population.population_count > 0:
        return city_by_population
    # TODO: regional population tie-break between the admin seat and the
    # population match is pending a product decision; keep admin seat last.
    return city_by_admin_seat


class _ResolveCall:
    """Per-call deadline, executor and query tracing."""

    def __init__(
        self,
        latitude: float,
        longitude: float,
        options: ResolveOptions,
        timeout: float,
        executor: ThreadPoolExecutor,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.options = options
        self.timeout = timeout
        self.executor = executor
        self.started = time.monotonic()
        self.deadline = self.started + timeout

    def remaining(self) -> float:
        return max(0.0, self.deadline - time.monotonic())

    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def submit(self, name: str, fn: Callable[..., Any], *args: Any) -> Future:
        return self.executor.submit(self._timed, name, fn, *args)

    def result(self, future: Future) -> Any:
        try:
            return future.result(timeout=self.remaining())
        except FuturesTimeoutError:
            if future.done():
                # The collaborator raised a timeout of its own
                raise
            future.cancel()
            raise ResolutionTimeout(self.latitude, self.longitude, self.timeout) from None

    def run(self, name: str, fn: Callable[..., Any], *args: Any) -> Any:
        return self.result(self.submit(name, fn, *args))

    def _timed(self, name: str, fn: Callable[..., Any], *args: Any) -> Any:
        start = time.monotonic()
        try:
            return fn(*args)
        finally:
            if self.options.debug:
                logger.info("Query %r took %.4fs", name, time.monotonic() - start)


class PlaceResolver:
    def __init__(
        self,
        store: SpatialStore,
        translator: Optional[Translator] = None,
        admin_resolver: Optional[AdminHierarchyResolver] = None,
        poi_attacher: Optional[PoiAttacher] = None,
        max_workers: Optional[int] = None,
        feature_translator: Optional[FeatureCodeTranslator] = None,
    ):
        self.store = store
        self.translator = translator or get_default_translator()
        self.admin_resolver = admin_resolver or AdminHierarchyResolver(store)
        self.poi_attacher = poi_attacher or PoiAttacher(store)
        self.max_workers = max_workers or settings.STORE_MAX_WORKERS
        self.feature_translator = feature_translator or get_default_feature_code_translator()

    def resolve(
        self,
        latitude: float,
        longitude: float,
        options: Optional[ResolveOptions] = None,
    ) -> Union[ResolvedPlace, NotFound]:
        """
        Resolve a coordinate into a fully annotated place.

        Returns NotFound when no populated place exists. Raises
        ValueError for an invalid coordinate, ResolutionError for malformed
        store rows and ResolutionTimeout when the overall timeout expires;
        store errors propagate unchanged.
        """
        check_coordinate(latitude, longitude)
        options = options or ResolveOptions(verbose=settings.RESOLVER_VERBOSE)
        timeout = options.timeout if options.timeout is not None else settings.RESOLVE_TIMEOUT_SECONDS
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="place-resolver")
        call = _ResolveCall(latitude, longitude, options, timeout, executor)
        try:
            return self._resolve(call)
        finally:
            # Outstanding store calls are abandoned, not awaited
            executor.shutdown(wait=False, cancel_futures=True)

    def _resolve(self, call: _ResolveCall) -> Union[ResolvedPlace, NotFound]:
        options = call.options
        latitude, longitude = call.latitude, call.longitude
        limit = options.candidate_limit or settings.RESOLVE_CANDIDATE_LIMIT

        rows = call.run("places", self.store.find_nearest, latitude, longitude, limit, FeatureClass.POPULATED)
        candidates = ensure_store_rows(rows, FeatureClass.POPULATED)
        if not candidates:
            logger.debug("No populated place near %.5f,%.5f", latitude, longitude)
            return NotFound(latitude, longitude)
        if options.verbose:
            self._log_candidates(candidates, latitude, longitude)

        place = candidates[0]
        others = candidates[1:]
        if place.is_district_like:
            district: Optional[PlaceRecord] = place
            city_from_admin = call.run("city", self.admin_resolver.city_from_admin_codes, district)
            city_by_admin_seat = find_next_admin_city(others, district)
            city_by_population = find_next_city_population(others, district)
            city = choose_city(city_from_admin, city_by_population, city_by_admin_seat)
        else:
            city = place
            district = find_next_district(others, city)

        result = ResolvedPlace(
            latitude=latitude,
            longitude=longitude,
            place=place,
            district=district,
            city=city,
            places_near=[self.feature_translator.apply(p) for p in others[:MAX_PLACES_NEAR]],
        )

        state_future = call.submit("state", self.admin_resolver.state_from_city, city)
        country_future = call.submit("country", self.translator.translate, place.country_code)
        try:
            self.poi_attacher.attach(result, latitude, longitude, executor=call.executor, timeout=call.remaining())
        except ResolutionTimeout:
            raise ResolutionTimeout(latitude, longitude, call.timeout) from None
        for category in self.poi_attacher.categories:
            labeled = [self.feature_translator.apply(p) for p in getattr(result, category.attribute)]
            setattr(result, category.attribute, labeled)
        result.state = call.result(state_future)
        result.country = call.result(country_future)
        result.elapsed = call.elapsed()

        if options.verbose:
            self._log_hierarchy(result)
        logger.debug(
            "Resolved %.5f,%.5f to %s in %.3fs",
            latitude,
            longitude,
            result.full_name,
            result.elapsed,
        )
        return result

    def _log_candidates(self, candidates: List[PlaceRecord], latitude: float, longitude: float) -> None:
        logger.info("Next %d places (%.4f° %.4f°)", len(candidates), latitude, longitude)
        logger.info(
            "%-42s %-6s %6s %6s %6s %10s %10s %10s %10s %12s",
            "Name", "FC", "ADM1", "ADM2", "ADM3", "ADM4", "Population", "Latitude", "Longitude", "Distance",
        )
        for c in candidates:
            logger.info(
                "%-42s %-6s %6s %6s %6s %10s %10s %9.4f° %9.4f° %10.1f m",
                c.name,
                c.feature_code,
                c.admin1_code or "",
                c.admin2_code or "",
                c.admin3_code or "",
                c.admin4_code or "",
                c.population_count,
                c.latitude,
                c.longitude,
                c.distance_meters or 0.0,
            )

    def _log_hierarchy(self, result: ResolvedPlace) -> None:
        for label, record in (("District", result.district), ("City", result.city), ("State", result.state)):
            if record is not None:
                logger.info("%-10s %-63s %-6s", label, record.name, record.feature_code)
            else:
                logger.info("%-10s %-63s", label, f"no {label.lower()} found")
        logger.info("%-10s %-63s", "Country", result.country or "no country given")


_default_place_resolver: Optional[PlaceResolver] = None


def get_default_place_resolver() -> PlaceResolver:
    global _default_place_resolver
    if _default_place_resolver is None:
        from repositories.places import SqlSpatialStore

        _default_place_resolver = PlaceResolver(SqlSpatialStore())
    return _default_place_resolver
