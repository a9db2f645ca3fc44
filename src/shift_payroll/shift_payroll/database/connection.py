from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "shift_payroll_db"
    connect_timeout: int = 5

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(data.get("host", cls.host)),
            port=int(data.get("port", cls.port)),
            user=str(data.get("user", cls.user)),
            password=str(data.get("password", cls.password)),
            database=str(data.get("database", cls.database)),
            connect_timeout=int(data.get("connect_timeout", cls.connect_timeout)),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "connection_timeout": self.connect_timeout,
            "charset": "utf8mb4",
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConnection:
    """Process-wide factory of short-lived MySQL connections.

    Each repository call opens its own connection, so a dropped link only fails
    that call and the store marks itself out of sync.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(**self.config.connect_kwargs())
