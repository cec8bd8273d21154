"""Console entry point for gremlinconsole."""

from __future__ import annotations

import logging
import sys

from .config import AppConfig, load_config
from .connections import ConnectionBackend, CosmosConnectionBackend, DemoConnectionBackend
from .query import DemoQueryExecutor, GremlinQueryExecutor, QueryExecutor
from .session import ConnectionAborted, ConnectionManager
from .shell import CommandShell
from .terminal import ConsolePrompter, RichTerminal, Terminal

LOG = logging.getLogger(__name__)

WINDOW_TITLE = "CosmosDB Gremlin Development Console"


def _load_app_config() -> AppConfig:
    """Load configuration with a small wrapper for future overrides."""

    return load_config()


def _configure_logging(config: AppConfig) -> None:
    package_logger = logging.getLogger("gremlinconsole")
    if config.log_file:
        logging.basicConfig(
            filename=config.log_file,
            level=config.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return
    # Keep the console clean when no log file is configured.
    package_logger.addHandler(logging.NullHandler())


def _create_backends(config: AppConfig) -> tuple[ConnectionBackend, QueryExecutor]:
    if config.backend == "demo":
        return DemoConnectionBackend(), DemoQueryExecutor()
    return CosmosConnectionBackend(), GremlinQueryExecutor()


def run(config: AppConfig, terminal: Terminal) -> int:
    """Connect, then run the shell until it ends. Returns the exit code."""

    backend, executor = _create_backends(config)
    manager = ConnectionManager(
        backend,
        terminal,
        ConsolePrompter(terminal),
        reconnect_throughput=config.reconnect_throughput,
        partition_key=config.connection.partition_key,
    )
    try:
        connection = manager.establish_initial(config.connection_config())
        shell = CommandShell(manager, terminal, executor, connection)
        try:
            return shell.run()
        finally:
            shell.close()
    except ConnectionAborted as exc:
        LOG.info("Session ended: %s", exc)
        return 0
    finally:
        shutdown = getattr(backend, "shutdown", None)
        if shutdown is not None:
            shutdown()


def main() -> None:
    """Invoke the console."""

    config = _load_app_config()
    _configure_logging(config)
    terminal = RichTerminal()
    terminal.set_title(WINDOW_TITLE)
    sys.exit(run(config, terminal))


if __name__ == "__main__":
    main()
