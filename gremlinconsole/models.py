"""Shared dataclasses used across connection/session/shell modules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

Record = Union[None, bool, int, float, str, datetime, list["Record"], dict[str, "Record"]]


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Parameters needed to reach one database + collection."""

    endpoint: str
    auth_key: str
    database: str
    collection: str
    partition_key: str | None = None
    throughput: int | None = None
    gremlin_endpoint: str | None = None
    verify_tls: bool = True
    enable_endpoint_discovery: bool = True


@dataclass(frozen=True, slots=True)
class QueryOptions:
    """Request options forwarded with every query."""

    cross_partition: bool = True
    low_precision_order_by: bool = True
    max_parallelism: int = 8
    partition_key: str | None = None


@dataclass(frozen=True, slots=True)
class ResultPage:
    """One batch of records returned per round-trip, with its cost."""

    records: tuple[Record, ...]
    request_charge: float = 0.0


class RetryDecision(Enum):
    """Operator answer to a failed connection attempt."""

    RETRY = "retry"
    ABORT = "abort"


__all__ = ["ConnectionConfig", "QueryOptions", "Record", "ResultPage", "RetryDecision"]
