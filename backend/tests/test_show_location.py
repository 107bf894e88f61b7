import json
import logging
import sys

import pytest

import db
from domain.models import PlaceRecord
from repositories.places import SqlSpatialStore
from scripts import show_location


def _place(pid, fc, code, lat, lon, **kwargs) -> PlaceRecord:
    return PlaceRecord(
        external_id=pid,
        name=kwargs.pop("name", f"place-{pid}"),
        latitude=lat,
        longitude=lon,
        feature_class=fc,
        feature_code=code,
        country_code="DE",
        **kwargs,
    )


@pytest.fixture
def places_db(tmp_path, monkeypatch, resolver_settings):
    """Point the default session factory at a seeded SQLite file."""
    monkeypatch.setattr(resolver_settings, "PLACES_DATABASE_URL", f"sqlite:///{tmp_path / 'places.sqlite'}")
    monkeypatch.setattr(db, "_default_engine", None)
    monkeypatch.setattr(db, "_default_session_factory", None)
    SqlSpatialStore().add_places([
        _place(1, "P", "PPLA", 51.05, 13.74, population=550000, admin1_code="13", name="Dresden"),
        _place(2, "A", "ADM1", 51.0, 13.5, admin1_code="13", name="Saxony"),
        _place(3, "S", "RSTN", 51.0505, 13.7405, name="Neustadt"),
    ])
    yield
    db._default_engine.dispose()


def _run(monkeypatch, *args) -> int:
    monkeypatch.setattr(sys, "argv", ["show_location", *args])
    return show_location.main()


def test_show_location_prints_json(places_db, monkeypatch, capsys):
    assert _run(monkeypatch, "51.05", "13.74", "--json") == 0

    data = json.loads(capsys.readouterr().out)
    assert data["found"] is True
    assert data["city"]["name"] == "Dresden"
    assert data["state"]["name"] == "Saxony"
    assert data["country"] == "Germany"
    assert [s["name"] for s in data["spots"]] == ["Bahnhof Neustadt"]


def test_show_location_logs_hierarchy(places_db, monkeypatch, caplog):
    with caplog.at_level(logging.INFO, logger="show_location"):
        assert _run(monkeypatch, "51.05", "13.74") == 0

    assert "City:      Dresden" in caplog.text
    assert "Country:   Germany (DE)" in caplog.text


def test_show_location_rejects_out_of_range_coordinate(places_db, monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "95.0", "13.74")

    assert exc_info.value.code == 2
    assert "Invalid coordinate" in capsys.readouterr().err
