from unittest.mock import MagicMock

import pytest

from domain.errors import ResolutionError
from domain.models import FeatureClass, PlaceRecord
from repositories.memory import InMemorySpatialStore
from services.admin_hierarchy import (
    CITY_RULES,
    DEFAULT,
    STATE_RULES,
    AdminHierarchyResolver,
    AdminRule,
    rule_for,
)


def _place(pid, fc, code, cc="DE", lat=51.0, lon=13.0, **kwargs) -> PlaceRecord:
    return PlaceRecord(
        external_id=pid,
        name=kwargs.pop("name", f"place-{pid}"),
        latitude=lat,
        longitude=lon,
        feature_class=fc,
        feature_code=code,
        country_code=cc,
        **kwargs,
    )


def test_rule_tables_follow_country_conventions():
    for cc in ("AT", "CH", "ES", "PL"):
        assert rule_for(CITY_RULES, cc) == AdminRule("ADM3", 3)
    assert rule_for(CITY_RULES, "DE") == AdminRule("ADM4", 4)
    assert rule_for(CITY_RULES, "at") == AdminRule("ADM3", 3)
    assert rule_for(STATE_RULES, "AT") == AdminRule("ADM1", 1)


def test_city_for_austria_matches_adm3_code():
    store = InMemorySpatialStore([
        _place(10, "A", "ADM3", cc="AT", admin3_code="30101", name="Wrong", lat=48.2),
        _place(11, "A", "ADM3", cc="AT", admin3_code="30102", name="Gemeinde", lat=48.5),
        _place(12, "A", "ADM4", cc="AT", admin4_code="X", name="Adm4 area", lat=48.0),
    ])
    village = _place(1, "P", "PPL", cc="AT", lat=48.0, admin3_code="30102", admin4_code="X")

    city = AdminHierarchyResolver(store).city_from_admin_codes(village)

    assert city is not None
    assert city.name == "Gemeinde"


def test_city_for_austria_without_matching_adm3_is_none():
    store = InMemorySpatialStore([
        _place(12, "A", "ADM4", cc="AT", admin4_code="X"),
    ])
    village = _place(1, "P", "PPL", cc="AT", admin3_code="30102", admin4_code="X")

    assert AdminHierarchyResolver(store).city_from_admin_codes(village) is None


def test_city_for_germany_matches_adm4_code():
    store = InMemorySpatialStore([
        _place(20, "A", "ADM3", cc="DE", admin3_code="14612", name="Adm3 area"),
        _place(21, "A", "ADM4", cc="DE", admin4_code="14612000", name="Dresden"),
        _place(22, "A", "ADM4", cc="PL", admin4_code="14612000", name="Other country"),
    ])
    district = _place(1, "P", "PPLX", cc="DE", admin3_code="14612", admin4_code="14612000")

    city = AdminHierarchyResolver(store).city_from_admin_codes(district)

    assert city.name == "Dresden"
    assert city.feature_class == FeatureClass.ADMINISTRATIVE


def test_city_for_germany_with_mismatching_adm4_is_none():
    store = InMemorySpatialStore([
        _place(21, "A", "ADM4", cc="DE", admin4_code="14612000"),
    ])
    district = _place(1, "P", "PPLX", cc="DE", admin4_code="99999999")

    assert AdminHierarchyResolver(store).city_from_admin_codes(district) is None


def test_missing_admin_code_skips_the_store():
    store = MagicMock()
    district = _place(1, "P", "PPLX", cc="DE", admin4_code=None)

    assert AdminHierarchyResolver(store).city_from_admin_codes(district) is None
    store.find_nearest.assert_not_called()


def test_state_from_city_matches_adm1():
    store = InMemorySpatialStore([
        _place(30, "A", "ADM1", cc="DE", admin1_code="13", name="Saxony"),
        _place(31, "A", "ADM1", cc="DE", admin1_code="02", name="Bavaria", lat=51.0001),
    ])
    city = _place(1, "P", "PPLA", cc="DE", admin1_code="13")

    state = AdminHierarchyResolver(store).state_from_city(city)

    assert state.name == "Saxony"


def test_state_from_city_without_city_is_none():
    store = MagicMock()
    assert AdminHierarchyResolver(store).state_from_city(None) is None
    store.find_nearest.assert_not_called()


def test_city_lookup_issues_single_result_class_a_query():
    store = MagicMock()
    store.find_nearest.return_value = []
    district = _place(1, "P", "PPL", cc="ES", admin3_code="28079", admin4_code="X")

    AdminHierarchyResolver(store).city_from_admin_codes(district)

    store.find_nearest.assert_called_once_with(
        51.0,
        13.0,
        1,
        FeatureClass.ADMINISTRATIVE,
        feature_codes=["ADM3"],
        country_code="ES",
        admin3="28079",
    )


def test_country_exception_added_through_rule_table():
    store = InMemorySpatialStore([
        _place(40, "A", "ADM2", cc="FR", admin2_code="75", name="Paris dept"),
        _place(41, "A", "ADM1", cc="FR", admin1_code="11", name="Ile-de-France"),
    ])
    state_rules = dict(STATE_RULES)
    state_rules["FR"] = AdminRule("ADM2", 2)
    resolver = AdminHierarchyResolver(store, state_rules=state_rules)
    city = _place(1, "P", "PPLC", cc="FR", admin1_code="11", admin2_code="75")

    assert resolver.state_from_city(city).name == "Paris dept"
    # The shared default table is untouched
    assert AdminHierarchyResolver(store).state_from_city(city).name == "Ile-de-France"


def test_rule_table_without_default_is_rejected():
    with pytest.raises(ValueError):
        AdminHierarchyResolver(MagicMock(), city_rules={"DE": AdminRule("ADM4", 4)})
    assert DEFAULT in CITY_RULES


def test_malformed_store_answer_raises_resolution_error():
    store = MagicMock()
    store.find_nearest.return_value = [{"name": "not a record"}]
    district = _place(1, "P", "PPL", cc="DE", admin4_code="X")

    with pytest.raises(ResolutionError):
        AdminHierarchyResolver(store).city_from_admin_codes(district)
