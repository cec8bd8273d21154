"""Connection manager: initial connect with retry, and interactive reconnect."""

from __future__ import annotations

import logging

from .config import DEFAULT_RECONNECT_THROUGHPUT, LOCAL_EMULATOR_ENDPOINT, LOCAL_EMULATOR_KEY
from .connections import (
    ActiveConnection,
    ConnectionBackend,
    ConnectionBackendError,
    ConnectionNetworkError,
)
from .models import ConnectionConfig, RetryDecision
from .terminal import Prompter, Terminal

LOG = logging.getLogger(__name__)

CONNECT_HEADER = "Connect to database"
CONNECT_RULE = "*" * 60


class ConnectionAborted(RuntimeError):
    """Raised when the operator declines to retry a failed connection."""


def banner(connection: ActiveConnection) -> str:
    return (
        f"Connected to database {connection.database} and collection "
        f"{connection.collection_id} at {connection.read_endpoint}"
    )


class ConnectionManager:
    """Produces ready-to-query connections for the command shell."""

    def __init__(
        self,
        backend: ConnectionBackend,
        terminal: Terminal,
        prompter: Prompter,
        *,
        reconnect_throughput: int = DEFAULT_RECONNECT_THROUGHPUT,
        partition_key: str | None = None,
    ) -> None:
        self._backend = backend
        self._terminal = terminal
        self._prompter = prompter
        self._reconnect_throughput = reconnect_throughput
        self._partition_key = partition_key

    def establish_initial(self, config: ConnectionConfig) -> ActiveConnection:
        """Connect with the startup configuration, asking the operator on failure."""

        while True:
            try:
                connection = self._backend.open(config)
            except ConnectionNetworkError as exc:
                LOG.warning(
                    "Network error while connecting",
                    extra={"endpoint": config.endpoint, "database": config.database},
                    exc_info=True,
                )
                self._terminal.clear()
                self._terminal.error(
                    f"Error connecting to database {config.database} at {config.endpoint}. {exc.reason}"
                )
            except ConnectionBackendError as exc:
                LOG.warning(
                    "Failed to connect",
                    extra={"endpoint": config.endpoint, "database": config.database},
                    exc_info=True,
                )
                self._terminal.write_line()
                self._terminal.error(str(exc))
            else:
                self._terminal.clear()
                self._terminal.write_line(banner(connection))
                return connection

            if self._prompter.ask_retry() is RetryDecision.ABORT:
                raise ConnectionAborted(f"Gave up connecting to {config.endpoint}")
            self._terminal.clear()
            self._terminal.write_line("Retrying connection ...")

    def reconnect(self) -> ActiveConnection:
        """Prompt for fresh parameters until a connection succeeds."""

        self._write_header()
        while True:
            config = self._prompt_config()
            try:
                connection = self._backend.open(config, offer_throughput=self._reconnect_throughput)
            except ConnectionBackendError as exc:
                LOG.warning(
                    "Reconnect failed",
                    extra={"endpoint": config.endpoint, "database": config.database},
                    exc_info=True,
                )
                self._terminal.clear()
                self._write_header()
                self._terminal.error(str(exc))
                continue
            self._terminal.clear()
            self._terminal.write_line(banner(connection))
            return connection

    def _write_header(self) -> None:
        self._terminal.write_line(CONNECT_HEADER)
        self._terminal.write_line(CONNECT_RULE)
        self._terminal.write_line()

    def _prompt_config(self) -> ConnectionConfig:
        endpoint = self._ask("Endpoint (leave blank for local emulator): ")
        if endpoint:
            auth_key = self._ask("Auth Key: ")
            verify_tls = True
        else:
            endpoint = LOCAL_EMULATOR_ENDPOINT
            auth_key = LOCAL_EMULATOR_KEY
            verify_tls = False
        database = self._ask("Database: ")
        collection = self._ask("Collection: ")
        return ConnectionConfig(
            endpoint=endpoint,
            auth_key=auth_key,
            database=database,
            collection=collection,
            partition_key=self._partition_key,
            verify_tls=verify_tls,
            enable_endpoint_discovery=False,
        )

    def _ask(self, label: str) -> str:
        answer = self._prompter.ask(label)
        if answer is None:
            raise ConnectionAborted("Input closed while prompting for connection details")
        return answer.strip()


__all__ = ["ConnectionAborted", "ConnectionManager", "banner"]
