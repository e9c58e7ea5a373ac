"""Per-task fields attached to structured log records."""

import contextvars
from typing import Any

_fields: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "journeynav_log_fields"
)


def get_context() -> dict[str, Any]:
    """Fields active in the current thread or asyncio task."""
    return dict(_fields.get({}))


class LogContext:
    """Attach fields such as ``user_id`` or ``job`` to every record in a block.

    Blocks nest; leaving one restores the fields that were active before it.
    Each asyncio task sees its own copy, so concurrent jobs do not mix.
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token: contextvars.Token | None = None

    def __enter__(self) -> "LogContext":
        self._token = _fields.set({**_fields.get({}), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _fields.reset(self._token)
            self._token = None
