"""Interactive console for the Cosmos DB Gremlin API."""

from .shell import CommandShell, CommandUsageError
from .session import ConnectionAborted, ConnectionManager

__all__ = ["CommandShell", "CommandUsageError", "ConnectionAborted", "ConnectionManager"]
