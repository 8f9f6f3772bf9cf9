import pytest

from app.domain.exceptions import NotFoundError, SourceNotFoundError
from app.services.protocols import RelationalStore
from infrastructure.database.sql_safety import build_where_clause, require_identifier


def test_handler_satisfies_store_protocol(db_handler):
    assert isinstance(db_handler, RelationalStore)


def test_table_exists(db_handler):
    assert db_handler.table_exists("notification_settings")
    assert not db_handler.table_exists("sensor_1")
    db_handler.create_sensor_table(1)
    assert db_handler.table_exists("sensor_1")


def test_table_names_are_validated(db_handler):
    with pytest.raises(ValueError):
        db_handler.table_exists("sensor_1; DROP TABLE ciclos_cultivo")
    with pytest.raises(ValueError):
        db_handler.select_rows("sensor_1", order_by="created_at desc")


def test_select_missing_table_raises_source_not_found(db_handler):
    with pytest.raises(SourceNotFoundError) as exc_info:
        db_handler.select_rows("sensor_7")
    assert exc_info.value.source_id == "sensor_7"


def test_select_rows_order_limit_and_null_filter(db_handler):
    first = db_handler.insert_cycle(stage="Vegetative", plant_type="Basil")
    db_handler.insert_cycle(stage="Flowering", plant_type="Tomato")
    db_handler.end_cycle(first)

    open_cycles = db_handler.select_rows("ciclos_cultivo", filters={"fecha_fin": None})
    assert [row["tipo_planta"] for row in open_cycles] == ["Tomato"]

    newest = db_handler.select_rows("ciclos_cultivo", order_by="id_ciclo", descending=True, limit=1)
    assert newest[0]["tipo_planta"] == "Tomato"


def test_upsert_inserts_then_updates_and_drops_unknown_columns(db_handler):
    db_handler.upsert_row("notification_settings", 1, {"enabled": True, "interval_minutes": 5, "bogus": "x"})
    row = db_handler.get_row("notification_settings", 1)
    assert row["enabled"] == 1
    assert row["interval_minutes"] == 5

    db_handler.upsert_row("notification_settings", 1, {"interval_minutes": 20})
    row = db_handler.get_row("notification_settings", 1)
    assert row["enabled"] == 1
    assert row["interval_minutes"] == 20
    assert len(db_handler.select_rows("notification_settings")) == 1


def test_get_row_missing_is_none(db_handler):
    assert db_handler.get_row("notification_settings", 1) is None


def test_get_sensor_tables_procedure(db_handler):
    for index in (3, 1, 12):
        db_handler.create_sensor_table(index)
    assert db_handler.call_procedure("get_sensor_tables") == [
        {"table_name": "sensor_1"},
        {"table_name": "sensor_3"},
        {"table_name": "sensor_12"},
    ]


def test_unknown_procedure(db_handler):
    with pytest.raises(NotFoundError):
        db_handler.call_procedure("does_not_exist")


def test_sensor_table_name_guard(db_handler):
    with pytest.raises(ValueError):
        db_handler.create_sensor_table("readings")


def test_sql_safety_helpers():
    assert build_where_clause({"id": 1, "fecha_fin": None}) == ("id = ? AND fecha_fin IS NULL", [1])
    assert require_identifier("sensor_1") == "sensor_1"
    with pytest.raises(ValueError):
        require_identifier("1sensor")
