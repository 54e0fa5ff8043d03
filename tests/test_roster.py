from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from massage_pos.domain.roster.repository import build_services, build_therapists, load_roster


def test_rows_are_normalised() -> None:
    therapists = build_therapists([{"name": " Mia ", "certifiedServices": [1, "2"]}])
    services = build_services([{"id": 9, "name": "Cupping", "price": 600}])

    assert therapists[0].name == "Mia"
    assert therapists[0].certified_services == ["1", "2"]
    assert therapists[0].commission_rate == 50
    assert therapists[0].clocked_in is False
    assert services[0].id == "9"
    assert services[0].duration == 60


def test_malformed_rows_raise_validation_errors() -> None:
    with pytest.raises(ValidationError):
        build_therapists([{"certifiedServices": ["1"]}])
    with pytest.raises(ValidationError):
        build_services([{"id": "1", "name": "Thai", "price": 400, "duration": 0}])


def test_load_roster_defaults_to_built_in_shop() -> None:
    roster, catalog = load_roster(None)

    assert [t.name for t in roster.list_therapists()][:2] == ["Lisa", "Sarah"]
    assert catalog.get("1").name == "Thai"


def test_load_roster_from_file(tmp_path) -> None:
    path = tmp_path / "roster.json"
    path.write_text(
        json.dumps({"therapists": [{"name": "Mia", "certifiedServices": ["1"], "clockedIn": True}]})
    )

    roster, catalog = load_roster(str(path))

    assert roster.list_clocked_in() == ["Mia"]
    # services section omitted: built-in catalog is kept
    assert catalog.get("1").name == "Thai"


def test_load_roster_reports_the_broken_field(tmp_path) -> None:
    path = tmp_path / "roster.json"
    path.write_text(json.dumps({"therapists": [{"certifiedServices": ["1"]}]}))

    with pytest.raises(ValidationError) as exc:
        load_roster(str(path))
    assert "therapists.0.name" in str(exc.value)
