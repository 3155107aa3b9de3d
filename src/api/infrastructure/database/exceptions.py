"""Database-specific exceptions shared by every division database."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when a connection cannot be opened or borrowed.

    This is also how a missing division database surfaces: the pool object
    exists, but the first connection attempt is refused by the server.
    """

    pass


class QueryError(DatabaseError):
    """Raised when a SQL statement fails."""

    def __init__(self, message: str, query: str | None = None):
        super().__init__(message)
        self.query = query
