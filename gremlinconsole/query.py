"""Query execution services for the command shell."""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping, Protocol, Sequence

from .connections import ActiveConnection
from .models import QueryOptions, Record, ResultPage

REQUEST_CHARGE_ATTRIBUTES = ("x-ms-total-request-charge", "x-ms-request-charge")


class QueryExecutionError(RuntimeError):
    """Raised when a query fails to submit or while its pages are read."""


class QueryExecutor(Protocol):
    """Interface implemented by query executors."""

    def execute(
        self,
        connection: ActiveConnection,
        text: str,
        options: QueryOptions,
    ) -> Iterator[ResultPage]: ...


class GremlinQueryExecutor:
    """Submits Gremlin text through the connection's gremlinpython client."""

    def execute(
        self,
        connection: ActiveConnection,
        text: str,
        options: QueryOptions,
    ) -> Iterator[ResultPage]:
        if connection.closed or connection.client is None:
            raise QueryExecutionError("Connection is closed.")
        try:
            result_set = connection.client.submit(text, request_options=request_options(options))
        except Exception as exc:
            raise QueryExecutionError(str(exc)) from exc
        return _pages(result_set)


class DemoQueryExecutor:
    """Returns canned pages; unknown queries echo back as a single record."""

    def __init__(self, responses: Mapping[str, Sequence[ResultPage]] | None = None) -> None:
        self._responses = dict(responses or {})
        self.submitted: list[tuple[str, QueryOptions]] = []

    def execute(
        self,
        connection: ActiveConnection,
        text: str,
        options: QueryOptions,
    ) -> Iterator[ResultPage]:
        if connection.closed:
            raise QueryExecutionError("Connection is closed.")
        self.submitted.append((text, options))
        pages = self._responses.get(text)
        if pages is None:
            record: dict[str, Record] = {"query": text, "collection": connection.collection_id}
            if options.partition_key is not None:
                record["partition"] = options.partition_key
            pages = (ResultPage(records=(record,), request_charge=1.0),)
        return iter(tuple(pages))


def request_options(options: QueryOptions) -> dict[str, object]:
    """Request arguments sent alongside the query text."""

    args: dict[str, object] = {
        "enableCrossPartitionQuery": options.cross_partition,
        "enableLowPrecisionOrderBy": options.low_precision_order_by,
        "maxDegreeOfParallelism": options.max_parallelism,
    }
    if options.partition_key is not None:
        args["partitionKey"] = options.partition_key
    return args


def _pages(result_set: Iterable[Any]) -> Iterator[ResultPage]:
    # The status attributes only arrive with the final message, so hold one
    # page back to attach the charge to it.
    iterator = iter(result_set)
    pending: list[Any] | None = None
    while True:
        try:
            data = next(iterator)
        except StopIteration:
            break
        except Exception as exc:
            raise QueryExecutionError(str(exc)) from exc
        if pending is not None:
            yield ResultPage(records=tuple(pending))
        pending = list(data) if data is not None else []
    attributes = getattr(result_set, "status_attributes", None) or {}
    yield ResultPage(records=tuple(pending or ()), request_charge=_request_charge(attributes))


def _request_charge(attributes: Mapping[str, Any]) -> float:
    for key in REQUEST_CHARGE_ATTRIBUTES:
        value = attributes.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return 0.0


__all__ = [
    "DemoQueryExecutor",
    "GremlinQueryExecutor",
    "QueryExecutionError",
    "QueryExecutor",
    "request_options",
]
