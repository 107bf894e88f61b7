"""
City and state lookup by administrative codes.

Both lookups are exact matches on country code plus one admin code; they are
not geometric. Which admin level identifies a city or a state differs per
country, so the choice lives in rule tables keyed by country code, each with
a DEFAULT entry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from domain.models import (
    FEATURE_CODE_ADM1,
    FEATURE_CODE_ADM3,
    FEATURE_CODE_ADM4,
    FeatureClass,
    PlaceRecord,
    ensure_store_rows,
)
from repositories.base import SpatialStore

logger = logging.getLogger(__name__)

DEFAULT = "*"


@dataclass(frozen=True)
class AdminRule:
    """Match an ADMx area whose admin<level> code equals the place's."""
    feature_code: str
    admin_level: int

    def admin_code(self, place: PlaceRecord) -> Optional[str]:
        return getattr(place, f"admin{self.admin_level}_code")


CITY_RULES: Mapping[str, AdminRule] = {
    "AT": AdminRule(FEATURE_CODE_ADM3, 3),
    "CH": AdminRule(FEATURE_CODE_ADM3, 3),
    "ES": AdminRule(FEATURE_CODE_ADM3, 3),
    "PL": AdminRule(FEATURE_CODE_ADM3, 3),
    DEFAULT: AdminRule(FEATURE_CODE_ADM4, 4),
}

STATE_RULES: Mapping[str, AdminRule] = {
    DEFAULT: AdminRule(FEATURE_CODE_ADM1, 1),
}


def rule_for(rules: Mapping[str, AdminRule], country_code: str) -> AdminRule:
    return rules.get(country_code.upper(), rules[DEFAULT])


class AdminHierarchyResolver:
    def __init__(
        self,
        store: SpatialStore,
        city_rules: Optional[Mapping[str, AdminRule]] = None,
        state_rules: Optional[Mapping[str, AdminRule]] = None,
    ):
        self.store = store
        self.city_rules = city_rules if city_rules is not None else CITY_RULES
        self.state_rules = state_rules if state_rules is not None else STATE_RULES
        for name, rules in (("city", self.city_rules), ("state", self.state_rules)):
            if DEFAULT not in rules:
                raise ValueError(f"{name} rules need a default entry ({DEFAULT!r})")

    def city_from_admin_codes(self, place: PlaceRecord) -> Optional[PlaceRecord]:
        """Find the ADM3/ADM4 area sharing the place's admin code."""
        return self._lookup(place, rule_for(self.city_rules, place.country_code), "city")

    def state_from_city(self, city: Optional[PlaceRecord]) -> Optional[PlaceRecord]:
        """Find the ADM1 area of the given city; None without a city."""
        if city is None:
            return None
        return self._lookup(city, rule_for(self.state_rules, city.country_code), "state")

    def _lookup(self, place: PlaceRecord, rule: AdminRule, label: str) -> Optional[PlaceRecord]:
        code = rule.admin_code(place)
        if code is None:
            # A missing code never equals a stored one
            logger.debug(
                "No admin%d code on %s (%s); skipping %s lookup",
                rule.admin_level,
                place.name,
                place.external_id,
                label,
            )
            return None

        filters = {f"admin{rule.admin_level}": code}
        rows = self.store.find_nearest(
            place.latitude,
            place.longitude,
            1,
            FeatureClass.ADMINISTRATIVE,
            feature_codes=[rule.feature_code],
            country_code=place.country_code,
            **filters,
        )
        records = ensure_store_rows(rows, FeatureClass.ADMINISTRATIVE)
        return records[0] if records else None
