from __future__ import annotations

from dataclasses import dataclass

import mysql.connector

from ..core.constants import DEFAULT_STORE_TIMEOUT_SECONDS


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    timeout_seconds: int = DEFAULT_STORE_TIMEOUT_SECONDS


class DatabaseConnection:
    """DB connection factory.

    Note: We create short-lived connections per operation. The process entry
    point owns the instance and passes it to every repository.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def timeout_seconds(self) -> int:
        return int(self._config.timeout_seconds)

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=self.timeout_seconds,
        )
