from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector
from mysql.connector.constants import ClientFlag


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: Outside a transaction every repository call opens a short-lived
    connection. Inside ``transaction()`` the calls made on this thread share
    one connection and commit together.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            # rowcount reports matched rows, so conditional updates can be checked.
            client_flags=[ClientFlag.FOUND_ROWS],
        )

    def current(self) -> Optional[tuple[Any, Any]]:
        return getattr(self._local, "active", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.current() is not None:
            yield
            return

        conn = self.connect()
        cur = conn.cursor(dictionary=True)
        self._local.active = (conn, cur)
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.active = None
            cur.close()
            conn.close()
