"""Tests for the connection manager."""

from __future__ import annotations

import pytest

from gremlinconsole.config import LOCAL_EMULATOR_ENDPOINT, LOCAL_EMULATOR_KEY
from gremlinconsole.connections import (
    ConnectionBackendError,
    ConnectionNetworkError,
    DemoConnectionBackend,
)
from gremlinconsole.models import ConnectionConfig, RetryDecision
from gremlinconsole.session import ConnectionAborted, ConnectionManager
from gremlinconsole.terminal import ConsolePrompter

CONFIG = ConnectionConfig(
    endpoint="https://acct.documents.azure.com:443/",
    auth_key="secret",
    database="people",
    collection="friends",
    partition_key="/city",
    throughput=10000,
)


def test_establish_initial_connects_and_prints_banner(terminal, make_prompter) -> None:
    backend = DemoConnectionBackend()
    manager = ConnectionManager(backend, terminal, make_prompter())

    connection = manager.establish_initial(CONFIG)

    assert connection.collection_id == "friends"
    assert backend.opened == [CONFIG]
    assert backend.created_with == [None]
    assert terminal.output == (
        "<clear>\nConnected to database people and collection friends at "
        "https://acct.documents.azure.com:443/\n"
    )


def test_establish_initial_retries_network_errors(terminal, make_prompter) -> None:
    backend = DemoConnectionBackend([ConnectionNetworkError("down", reason="Name not resolved")])
    prompter = make_prompter(decisions=[RetryDecision.RETRY])
    manager = ConnectionManager(backend, terminal, prompter)

    connection = manager.establish_initial(CONFIG)

    assert connection.closed is False
    assert prompter.retry_prompts == 1
    assert terminal.errors() == [
        "Error connecting to database people at https://acct.documents.azure.com:443/. Name not resolved"
    ]
    assert "Retrying connection ..." in terminal.output


def test_establish_initial_shows_generic_errors_without_network_framing(terminal, make_prompter) -> None:
    backend = DemoConnectionBackend([ConnectionBackendError("Forbidden")])
    prompter = make_prompter(decisions=[RetryDecision.RETRY])
    manager = ConnectionManager(backend, terminal, prompter)

    manager.establish_initial(CONFIG)

    assert terminal.errors() == ["Forbidden"]


def test_establish_initial_aborts_when_operator_declines(terminal, make_prompter) -> None:
    backend = DemoConnectionBackend([ConnectionBackendError("Forbidden")])
    prompter = make_prompter(decisions=[RetryDecision.ABORT])
    manager = ConnectionManager(backend, terminal, prompter)

    with pytest.raises(ConnectionAborted):
        manager.establish_initial(CONFIG)
    assert backend.opened == []


def test_console_prompter_only_retries_on_enter(make_terminal) -> None:
    terminal = make_terminal(keys=["\r", "q"])
    prompter = ConsolePrompter(terminal)

    assert prompter.ask_retry() is RetryDecision.RETRY
    assert prompter.ask_retry() is RetryDecision.ABORT
    assert "Press Enter to retry, any other key exit." in terminal.output


def test_reconnect_blank_endpoint_uses_local_emulator(terminal, make_prompter) -> None:
    backend = DemoConnectionBackend()
    prompter = make_prompter(answers=["", "social", "people"])
    manager = ConnectionManager(backend, terminal, prompter, reconnect_throughput=1000, partition_key="/city")

    connection = manager.reconnect()

    opened = backend.opened[0]
    assert opened.endpoint == LOCAL_EMULATOR_ENDPOINT
    assert opened.auth_key == LOCAL_EMULATOR_KEY
    assert opened.partition_key == "/city"
    assert opened.throughput is None
    assert opened.enable_endpoint_discovery is False
    assert backend.created_with == [1000]
    assert prompter.asked == ["Endpoint (leave blank for local emulator): ", "Database: ", "Collection: "]
    assert connection.collection_id == "people"
    assert terminal.output.endswith(
        f"Connected to database social and collection people at {LOCAL_EMULATOR_ENDPOINT}\n"
    )


def test_reconnect_prompts_for_key_with_custom_endpoint(terminal, make_prompter) -> None:
    backend = DemoConnectionBackend()
    prompter = make_prompter(answers=["https://acct.documents.azure.com:443/", "secret", "db", "coll"])
    manager = ConnectionManager(backend, terminal, prompter)

    manager.reconnect()

    assert prompter.asked[1] == "Auth Key: "
    assert backend.opened[0].auth_key == "secret"
    assert backend.opened[0].verify_tls is True


def test_reconnect_loops_until_success(terminal, make_prompter) -> None:
    backend = DemoConnectionBackend(
        [ConnectionNetworkError("unreachable", reason="x"), ConnectionBackendError("Unauthorized")]
    )
    prompter = make_prompter(answers=["", "a", "b"] * 3)
    manager = ConnectionManager(backend, terminal, prompter)

    connection = manager.reconnect()

    assert connection.collection_id == "b"
    assert terminal.errors() == ["unreachable", "Unauthorized"]
    assert terminal.output.count("Connect to database\n") == 3


def test_reconnect_stops_at_end_of_input(terminal, make_prompter) -> None:
    manager = ConnectionManager(DemoConnectionBackend(), terminal, make_prompter(answers=[]))

    with pytest.raises(ConnectionAborted):
        manager.reconnect()
