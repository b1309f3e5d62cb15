"""Opaque page cursors and page envelopes."""
import base64
import binascii
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar
from urllib.parse import parse_qs, urlencode

from pydantic import BaseModel

T = TypeVar("T")


def parse_positive_int(value: Optional[str], *, default: int, allow_zero: bool = False) -> int:
    """Parse an integer, falling back to ``default`` for anything invalid."""
    try:
        parsed = int(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    if parsed > 0 or (allow_zero and parsed == 0):
        return parsed
    return default


@dataclass(frozen=True)
class PaginationData:
    """Limit/offset window addressed by an opaque cursor."""

    limit: int
    offset: int

    @classmethod
    def from_cursor(cls, cursor: Optional[str], default_limit: int, max_limit: int) -> "PaginationData":
        """
        Decode a cursor produced by ``to_cursor``.

        Malformed cursors resolve to the first page.
        """
        if not cursor:
            return cls(limit=default_limit, offset=0)
        try:
            padded = cursor + "=" * (-len(cursor) % 4)
            decoded = base64.urlsafe_b64decode(padded.encode()).decode()
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return cls(limit=default_limit, offset=0)

        query = parse_qs(decoded)
        limit = parse_positive_int((query.get("limit") or [None])[0], default=default_limit)
        offset = parse_positive_int((query.get("offset") or [None])[0], default=0, allow_zero=True)
        return cls(limit=min(limit, max_limit), offset=offset)

    def to_cursor(self) -> str:
        raw = urlencode({"limit": self.limit, "offset": self.offset})
        return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")

    def next(self, count: Optional[int], has_more: bool) -> Optional["PaginationData"]:
        """Window after this one, or None on the last page."""
        next_offset = self.offset + self.limit
        if count is not None and next_offset >= count:
            return None
        if count is None and not has_more:
            return None
        return PaginationData(limit=self.limit, offset=next_offset)

    def previous(self) -> Optional["PaginationData"]:
        if self.offset <= 0:
            return None
        return PaginationData(limit=self.limit, offset=max(self.offset - self.limit, 0))


class Page(BaseModel, Generic[T]):
    """Client-facing page of results with opaque continuation cursors."""

    count: Optional[int] = None
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T]

    @classmethod
    def build(
        cls,
        pagination: PaginationData,
        results: List[T],
        count: Optional[int],
        has_more: bool,
    ) -> "Page[T]":
        next_page = pagination.next(count, has_more)
        previous_page = pagination.previous()
        return cls(
            count=count,
            next=next_page.to_cursor() if next_page else None,
            previous=previous_page.to_cursor() if previous_page else None,
            results=results,
        )
