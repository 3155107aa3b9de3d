"""Domain exceptions for the Divisions bounded context."""


class DivisionError(Exception):
    """Base exception for division lifecycle errors."""

    pass


class InvalidDivisionCodeError(DivisionError, ValueError):
    """Raised when a division code does not satisfy the naming rules.

    Division codes become part of database and table names, so they are
    restricted to a letter followed by letters or digits.
    """

    pass
