import math

import pytest

from domain.errors import ResolutionError
from domain.models import (
    FeatureClass,
    PlaceRecord,
    ResolvedPlace,
    check_coordinate,
    ensure_store_rows,
)


def _place(pid=1, fc="P", code="PPL", distance=None, **kwargs) -> PlaceRecord:
    return PlaceRecord(
        external_id=pid,
        name=kwargs.pop("name", f"place-{pid}"),
        latitude=kwargs.pop("latitude", 51.0),
        longitude=kwargs.pop("longitude", 13.0),
        feature_class=fc,
        feature_code=code,
        country_code="DE",
        distance=distance,
        **kwargs,
    )


def test_invalid_coordinate_is_rejected():
    with pytest.raises(ValueError):
        _place(latitude=91.0)
    with pytest.raises(ValueError):
        _place(longitude=-180.5)


def test_unknown_feature_class_is_rejected():
    with pytest.raises(ValueError):
        _place(fc="X")


def test_feature_code_classification():
    assert _place(code="PPLX").is_district_like
    assert _place(code="PPLC").is_admin_seat_like
    other = _place(code="PPLF")
    assert not other.is_district_like and not other.is_admin_seat_like


def test_round_trip_through_dict():
    place = _place(fc="A", code="ADM4", admin4_code="X", population=10, alternate_names=["a", "b"])
    assert PlaceRecord.from_dict(place.to_dict()) == place


@pytest.mark.parametrize(
    "rows",
    [
        None,
        "not a list",
        [{"name": "dict"}],
        [_place(fc="A", distance=0.1)],
        [_place(distance=None)],
        [_place(distance=-0.1)],
        [_place(distance=math.nan)],
        [_place(distance=True)],
        [_place(distance=0.2), _place(pid=2, distance=0.1)],
    ],
)
def test_ensure_store_rows_rejects_malformed_answers(rows):
    with pytest.raises(ResolutionError):
        ensure_store_rows(rows, FeatureClass.POPULATED)


def test_ensure_store_rows_accepts_ordered_rows():
    rows = [_place(distance=0.0), _place(pid=2, distance=0.0), _place(pid=3, distance=0.5)]
    assert ensure_store_rows(rows, FeatureClass.POPULATED) == rows
    assert ensure_store_rows([], FeatureClass.POPULATED) == []


def test_full_name_skips_contained_parts():
    place = _place(name="Dresden Altstadt")
    city = _place(pid=2, fc="A", code="ADM4", name="Dresden", population=550000)
    state = _place(pid=3, fc="A", code="ADM1", name="Saxony")
    mountain = _place(pid=4, fc="T", code="HLL", name="Borsberg")
    result = ResolvedPlace(
        latitude=51.0, longitude=13.0, place=place, city=city, state=state,
        country="Germany", mountains=[mountain],
    )

    assert result.full_name == "Borsberg, Dresden Altstadt, Saxony, Germany"
    assert result.is_city is True
    assert result.population_admin == 550000


def test_rural_place_without_city():
    result = ResolvedPlace(latitude=51.0, longitude=13.0, place=_place(), country="Germany")
    assert result.is_city is False
    assert result.population_admin == 0
    assert result.full_name == "place-1, Germany"


@pytest.mark.parametrize(
    "latitude, longitude",
    [(math.nan, 13.0), (51.0, math.inf), (90.5, 0.0), (0.0, -181.0), ("north", 13.0)],
)
def test_check_coordinate_rejects_invalid_points(latitude, longitude):
    with pytest.raises(ValueError):
        check_coordinate(latitude, longitude)


def test_check_coordinate_accepts_bounds():
    check_coordinate(90.0, -180.0)
    check_coordinate(-90.0, 180.0)
