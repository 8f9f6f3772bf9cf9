import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from infrastructure.database.ops.cycles import CycleOperations
from infrastructure.database.ops.sensors import SensorTableOperations, get_sensor_tables_procedure
from infrastructure.database.ops.store import StoreOperations

logger = logging.getLogger(__name__)


class SQLiteDatabaseHandler(
    StoreOperations,
    SensorTableOperations,
    CycleOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals.

    Each thread gets its own connection, so a file-backed database is required
    when the scheduler worker and request threads must see the same data.
    """

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._local = threading.local()
        self._procedures = {}
        self.register_procedure("get_sensor_tables", get_sensor_tables_procedure)

        # Ensure the directory for the database file exists
        db_path = Path(database_path)
        if database_path != ":memory:" and not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info("Created database directory: %s", db_path.parent)

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        """Connection owned by the calling thread, opened on first use."""
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            connection = sqlite3.connect(self._database_path, check_same_thread=False, timeout=10)
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            self._local.connection = connection
        return connection

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        # WAL lets request threads read while the scheduler worker writes.
        if self._database_path != ":memory:":
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA synchronous=NORMAL")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db()
        try:
            yield conn
        finally:
            conn.commit()

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the settings and cultivation tables if they do not already exist."""
        with self.connection() as db:
            # Monitoring settings (single row, id = 1)
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS notification_settings (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    enabled BOOLEAN DEFAULT 0,
                    interval_minutes INTEGER DEFAULT 10,
                    telegram_bot_token TEXT,
                    telegram_chat_id TEXT,
                    etapa_monitoreo TEXT DEFAULT 'Vegetative',
                    monitor_temperature BOOLEAN DEFAULT 1,
                    monitor_humidity BOOLEAN DEFAULT 1,
                    monitor_soil_humidity BOOLEAN DEFAULT 1,
                    notify_inactive BOOLEAN DEFAULT 1,
                    use_active_cycle_stage BOOLEAN DEFAULT 0,
                    updated_at TIMESTAMP
                )
                """
            )
            # Cultivation cycles
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS ciclos_cultivo (
                    id_ciclo INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id TEXT,
                    fecha_inicio TIMESTAMP NOT NULL,
                    fecha_fin TIMESTAMP,
                    tipo_planta TEXT,
                    numero_plantas INTEGER,
                    etapa_actual TEXT
                )
                """
            )
            db.execute(
                "CREATE INDEX IF NOT EXISTS idx_ciclos_cultivo_inicio ON ciclos_cultivo(fecha_inicio DESC)"
            )
        logger.info("Database schema ready at %s", self._database_path)
