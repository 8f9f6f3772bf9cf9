from unittest.mock import MagicMock

import pytest

from app.domain.exceptions import RepositoryError, StoreUnavailableError
from app.services.application.sensor_discovery_service import (
    DEFAULT_SOURCES,
    SensorDiscoveryService,
    extract_table_names,
    sort_sources,
)


def _repo_with_tables(*tables):
    repo = MagicMock()
    repo.exists.side_effect = lambda table: table in tables
    return repo


def test_probe_finds_consecutive_tables(db_handler, sensor_repo, seed_sensor):
    for index in (1, 2, 3):
        seed_sensor(index)
    service = SensorDiscoveryService(sensor_repo)
    assert service.discover_sensor_sources() == ["sensor_1", "sensor_2", "sensor_3"]


def test_probe_stops_at_first_gap(sensor_repo, seed_sensor):
    seed_sensor(1)
    seed_sensor(2)
    seed_sensor(4)
    assert SensorDiscoveryService(sensor_repo).discover_sensor_sources() == ["sensor_1", "sensor_2"]


def test_probe_keeps_sources_found_before_a_store_failure():
    repo = MagicMock()
    repo.exists.side_effect = [True, True, StoreUnavailableError("timeout")]
    service = SensorDiscoveryService(repo)
    assert service.discover_sensor_sources() == ["sensor_1", "sensor_2"]


def test_probe_respects_cap():
    repo = MagicMock()
    repo.exists.return_value = True
    service = SensorDiscoveryService(repo, max_probe_sources=4)
    assert service.discover_sensor_sources() == ["sensor_1", "sensor_2", "sensor_3", "sensor_4"]
    assert repo.exists.call_count == 4


def test_defaults_when_nothing_found():
    service = SensorDiscoveryService(_repo_with_tables())
    assert service.discover_sensor_sources() == list(DEFAULT_SOURCES)


def test_defaults_when_first_probe_fails():
    repo = MagicMock()
    repo.exists.side_effect = StoreUnavailableError("down")
    assert SensorDiscoveryService(repo).discover_sensor_sources() == list(DEFAULT_SOURCES)


def test_unexpected_error_never_escapes():
    repo = MagicMock()
    repo.exists.side_effect = RuntimeError("boom")
    assert SensorDiscoveryService(repo).discover_sensor_sources() == list(DEFAULT_SOURCES)


def test_delegated_uses_procedure(sensor_repo, seed_sensor):
    seed_sensor(10)
    seed_sensor(2)
    service = SensorDiscoveryService(sensor_repo, strategy="delegated")
    assert service.discover_sensor_sources() == ["sensor_2", "sensor_10"]


def test_delegated_failure_falls_back_to_defaults():
    repo = MagicMock()
    repo.list_via_procedure.side_effect = RepositoryError("no such function")
    service = SensorDiscoveryService(repo, strategy="delegated")
    assert service.discover_sensor_sources() == list(DEFAULT_SOURCES)


@pytest.mark.parametrize(
    "result,expected",
    [
        (["sensor_2", "sensor_1"], ["sensor_1", "sensor_2"]),
        ([{"table_name": "sensor_3"}, {"table_name": "readings"}], ["sensor_3"]),
        ([{"get_sensor_tables": "sensor_5"}], ["sensor_5"]),
        ({"sensor_1": 10, "sensor_2": 4}, ["sensor_1", "sensor_2"]),
        ({"table_name": "sensor_7"}, ["sensor_7"]),
        (None, []),
        ("sensor_1", []),
    ],
)
def test_extract_table_names_shapes(result, expected):
    assert extract_table_names(result) == expected


def test_sort_sources_is_numeric_and_unique():
    assert sort_sources(["sensor_10", "sensor_2", "sensor_2", "bogus", "sensor_1"]) == [
        "sensor_1",
        "sensor_2",
        "sensor_10",
    ]


def test_probe_keeps_sources_found_before_any_error():
    repo = MagicMock()
    repo.exists.side_effect = [True, True, RepositoryError("permission denied for sensor_3")]
    assert SensorDiscoveryService(repo).discover_sensor_sources() == ["sensor_1", "sensor_2"]
