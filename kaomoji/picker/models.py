"""Data models for the kaomoji picker."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any


@dataclass
class Entry:
    """A single searchable kaomoji. The glyph is its identity."""
    glyph: str
    tags: List[str] = field(default_factory=list)
    category: str = ""

    def __post_init__(self):
        self.tags = [t.strip().lower() for t in self.tags if t and t.strip()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "glyph": self.glyph,
            "tags": list(self.tags),
            "category": self.category
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        return cls(
            glyph=data["glyph"],
            tags=list(data.get("tags", [])),
            category=data.get("category", "")
        )


class FilterKind(Enum):
    """Structured filter kinds recognised in a query."""
    CATEGORY = "category"
    TAG = "tag"


@dataclass(frozen=True)
class QueryFilter:
    kind: FilterKind
    value: str

    def matches(self, entry: Entry) -> bool:
        """Exact, case-insensitive predicate."""
        if self.kind is FilterKind.CATEGORY:
            return entry.category.lower() == self.value
        return any(tag.lower() == self.value for tag in entry.tags)


@dataclass(frozen=True)
class Query:
    """Parsed form of the raw search input."""
    filters: tuple = ()
    residual: str = ""

    @property
    def has_filters(self) -> bool:
        return bool(self.filters)

    @property
    def is_empty(self) -> bool:
        return not self.filters and not self.residual


class CopyOutcome(Enum):
    """Result of a copy commit."""
    PRIMARY = "primary"
    FALLBACK = "fallback"
    FAILED = "failed"

    @property
    def succeeded(self) -> bool:
        return self is not CopyOutcome.FAILED
