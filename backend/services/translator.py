"""
Display-name translation backed by JSON catalogs (`<locale>.json`).

Country catalogs map lowercase ISO alpha-2 codes to display names; missing
codes fall back to the raw lowercase code. Feature-code catalogs hold the
labels prefixed to parks, railway stations and beaches.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from typing import Dict, Mapping, Optional, Protocol

from domain.models import FeatureClass, PlaceRecord
from settings import settings

logger = logging.getLogger(__name__)


class Translator(Protocol):
    def translate(self, country_code: str) -> str:
        ...


class CountryTranslator:
    def __init__(self, catalog: Optional[Mapping[str, str]] = None, locale: Optional[str] = None):
        self.locale = locale or settings.RESOLVER_LOCALE
        if catalog is None:
            catalog = load_country_catalog(self.locale)
        self._catalog: Dict[str, str] = {k.lower(): v for k, v in catalog.items()}

    def translate(self, country_code: str) -> str:
        key = country_code.lower()
        return self._catalog.get(key, key)


def load_country_catalog(locale: str, catalog_dir: Optional[str] = None) -> Dict[str, str]:
    """Read `<catalog_dir>/<locale>.json`; an unknown locale yields an empty catalog."""
    directory = catalog_dir or settings.COUNTRY_CATALOG_DIR
    path = os.path.join(directory, f"{locale}.json")
    if not os.path.exists(path):
        logger.warning("No country catalog for locale %s at %s; using raw country codes", locale, path)
        return {}
    return _read_catalog(path)


# Feature codes whose label is prefixed to the display name ("Bahnhof Neustadt")
LABELED_FEATURE_CODES = frozenset({
    (FeatureClass.AREA, "PRK"),
    (FeatureClass.SPOT, "RSTN"),
    (FeatureClass.HYPSOGRAPHIC, "BCH"),
})


class FeatureCodeTranslator:
    """
    Prefix localized feature-code labels to place names.

    Labels are looked up in the catalog named after the place's own country
    (a German station reads "Bahnhof ...") and fall back to the configured
    locale. Catalogs are keyed `<class>.<code>`, e.g. `S.RSTN`.
    """

    def __init__(
        self,
        catalogs: Optional[Mapping[str, Mapping[str, str]]] = None,
        locale: Optional[str] = None,
        catalog_dir: Optional[str] = None,
    ):
        self.locale = locale or settings.RESOLVER_LOCALE
        self.catalog_dir = catalog_dir or settings.FEATURE_CODE_CATALOG_DIR
        self._catalogs: Dict[str, Dict[str, str]] = {}
        self._preloaded = catalogs is not None
        for name, catalog in (catalogs or {}).items():
            self._catalogs[name.lower()] = dict(catalog)

    def _catalog(self, locale: str) -> Dict[str, str]:
        if locale not in self._catalogs:
            if self._preloaded:
                return {}
            path = os.path.join(self.catalog_dir, f"{locale}.json")
            # Missing country catalogs are normal; no warning per lookup
            self._catalogs[locale] = _read_catalog(path) if os.path.exists(path) else {}
        return self._catalogs[locale]

    def label(self, place: PlaceRecord) -> Optional[str]:
        if (place.feature_class, place.feature_code) not in LABELED_FEATURE_CODES:
            return None
        key = f"{place.feature_class.value}.{place.feature_code}"
        for locale in (place.country_code.lower(), self.locale):
            value = self._catalog(locale).get(key)
            if value:
                return value
        return None

    def apply(self, place: PlaceRecord) -> PlaceRecord:
        """Return a copy named `<label> <name>`; unchanged when no label applies or the name has it."""
        value = self.label(place)
        if value is None or value in place.name:
            return place
        return replace(place, name=f"{value} {place.name}")


def _read_catalog(path: str) -> Dict[str, str]:
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Catalog {path} must be a JSON object")
    return {str(k): str(v) for k, v in data.items()}


_default_translator: Optional[CountryTranslator] = None
_default_feature_code_translator: Optional[FeatureCodeTranslator] = None


def get_default_translator() -> CountryTranslator:
    global _default_translator
    if _default_translator is None:
        _default_translator = CountryTranslator()
    return _default_translator


def get_default_feature_code_translator() -> FeatureCodeTranslator:
    global _default_feature_code_translator
    if _default_feature_code_translator is None:
        _default_feature_code_translator = FeatureCodeTranslator()
    return _default_feature_code_translator
