from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_mapping(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "volunteer_db")),
        )

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation (safe for simple Flask apps).
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        kwargs = dict(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
        )
        if with_database:
            kwargs["database"] = self._config.database
        return mysql.connector.connect(**kwargs)
