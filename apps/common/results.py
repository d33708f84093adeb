"""Tagged outcome for page data loads: Ok(data), Empty, or Error(reason)."""
from __future__ import annotations

import logging
from typing import Any, Callable

from django.db import DatabaseError
from django.db.models import QuerySet

logger = logging.getLogger(__name__)


class LoadResult:
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"

    __slots__ = ("status", "data", "reason")

    def __init__(self, status: str, data: Any = None, reason: str = ""):
        self.status = status
        self.data = data
        self.reason = reason

    @classmethod
    def ok(cls, data: Any) -> "LoadResult":
        return cls(cls.OK, data=data)

    @classmethod
    def empty(cls) -> "LoadResult":
        return cls(cls.EMPTY, data=[])

    @classmethod
    def error(cls, reason: str) -> "LoadResult":
        return cls(cls.ERROR, data=[], reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == self.OK

    @property
    def is_empty(self) -> bool:
        return self.status == self.EMPTY

    @property
    def is_error(self) -> bool:
        return self.status == self.ERROR

    def __iter__(self):
        return iter(self.data or [])

    def __repr__(self):
        if self.is_error:
            return f"LoadResult.error({self.reason!r})"
        return f"LoadResult.{self.status}()"


def load(fetch: Callable[[], Any], *, what: str = "data") -> LoadResult:
    """Run a fetch; empty collections map to Empty, database failures to Error."""
    try:
        data = fetch()
        if isinstance(data, QuerySet):
            data = list(data)
    except DatabaseError:
        logger.exception("Failed to load %s", what)
        return LoadResult.error(f"Could not load {what}. Please try again later.")
    if not data:
        return LoadResult.empty()
    return LoadResult.ok(data)
