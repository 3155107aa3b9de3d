"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures operation-scoped metadata that should be included with all
    instrumentation events, so that every log line emitted while backing up
    or restoring a division can be correlated.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        user_id: Identifier of the operator performing the operation.
        division_code: Division the operation acts upon.
        operation: Lifecycle operation name (e.g. "backup", "restore").
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(division_code="HC", operation="backup")
        probe = DefaultBackupServiceProbe().with_context(context)
    """

    request_id: str | None = None
    user_id: str | None = None
    division_code: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.user_id is not None:
            result["user_id"] = self.user_id
        if self.division_code is not None:
            result["division_code"] = self.division_code
        if self.operation is not None:
            result["operation"] = self.operation
        result.update(self.extra)
        return result

    def with_division(self, division_code: str) -> ObservationContext:
        """Create a new context with the division code set."""
        return ObservationContext(
            request_id=self.request_id,
            user_id=self.user_id,
            division_code=division_code,
            operation=self.operation,
            extra=self.extra,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        new_extra = {**self.extra, **kwargs}
        return ObservationContext(
            request_id=self.request_id,
            user_id=self.user_id,
            division_code=self.division_code,
            operation=self.operation,
            extra=new_extra,
        )
