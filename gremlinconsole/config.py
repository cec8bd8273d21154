"""App configuration loading helpers."""

from __future__ import annotations

from pathlib import Path

import tomllib

from pydantic import BaseModel, Field

from .models import ConnectionConfig

CONFIG_FILE = Path.home() / ".config" / "gremlinconsole" / "config.toml"

LOCAL_EMULATOR_ENDPOINT = "https://localhost:8081/"
LOCAL_EMULATOR_KEY = (
    "C2y6yDjf5/R+ob0N8A7Cgv30VRDJIWEHLM+4QDU5DE2nQ9nDuVTqobD4b8mGGyPMbIZnqyMsEcaGQy67XIw/Jw=="
)
DEFAULT_PARTITION_KEY = "/partitionKey"
DEFAULT_THROUGHPUT = 10000
DEFAULT_RECONNECT_THROUGHPUT = 1000


class ConnectionSettings(BaseModel):
    """Startup connection parameters stored under `[connection]`."""

    endpoint: str = LOCAL_EMULATOR_ENDPOINT
    auth_key: str = LOCAL_EMULATOR_KEY
    database: str = "graphdb"
    collection: str = "graph"
    partition_key: str = DEFAULT_PARTITION_KEY
    gremlin_endpoint: str | None = None
    throughput: int = DEFAULT_THROUGHPUT
    enforce_throughput: bool = True
    verify_tls: bool | None = None


class AppConfig(BaseModel):
    """Shape of the application configuration file."""

    backend: str = "cosmos"
    reconnect_throughput: int = DEFAULT_RECONNECT_THROUGHPUT
    log_level: str = "WARNING"
    log_file: str | None = None
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)

    def connection_config(self) -> ConnectionConfig:
        """Runtime connection parameters for the initial connect."""

        settings = self.connection
        verify_tls = settings.verify_tls
        if verify_tls is None:
            verify_tls = settings.endpoint != LOCAL_EMULATOR_ENDPOINT
        return ConnectionConfig(
            endpoint=settings.endpoint,
            auth_key=settings.auth_key,
            database=settings.database,
            collection=settings.collection,
            partition_key=settings.partition_key,
            throughput=settings.throughput if settings.enforce_throughput else None,
            gremlin_endpoint=settings.gremlin_endpoint,
            verify_tls=verify_tls,
        )


def load_config() -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return AppConfig()

    defaults = AppConfig.model_fields
    return AppConfig(
        backend=data.get("backend", defaults["backend"].default),
        reconnect_throughput=data.get(
            "reconnect_throughput", defaults["reconnect_throughput"].default
        ),
        log_level=data.get("log_level", defaults["log_level"].default),
        log_file=data.get("log_file"),
        connection=data.get("connection", ConnectionSettings()),
    )


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if not isinstance(raw, dict):
        return data
    for key in ("backend", "log_level", "log_file"):
        value = raw.get(key)
        if isinstance(value, str):
            data[key] = value
    reconnect_throughput = raw.get("reconnect_throughput")
    if isinstance(reconnect_throughput, int) and not isinstance(reconnect_throughput, bool):
        data["reconnect_throughput"] = reconnect_throughput
    connection = raw.get("connection")
    if isinstance(connection, dict):
        parsed: dict[str, object] = {}
        for key in ("endpoint", "auth_key", "database", "collection", "partition_key", "gremlin_endpoint"):
            value = connection.get(key)
            if isinstance(value, str) and value:
                parsed[key] = value
        throughput = connection.get("throughput")
        if isinstance(throughput, int) and not isinstance(throughput, bool):
            parsed["throughput"] = throughput
        for key in ("enforce_throughput", "verify_tls"):
            flag = connection.get(key)
            if isinstance(flag, bool):
                parsed[key] = flag
        data["connection"] = ConnectionSettings(**parsed)
    return data


__all__ = [
    "AppConfig",
    "CONFIG_FILE",
    "ConnectionSettings",
    "DEFAULT_PARTITION_KEY",
    "DEFAULT_RECONNECT_THROUGHPUT",
    "DEFAULT_THROUGHPUT",
    "LOCAL_EMULATOR_ENDPOINT",
    "LOCAL_EMULATOR_KEY",
    "load_config",
]
