"""
Data types for the book catalog and its search results.
"""

import math
import struct
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, Optional, TypeVar

# Column limits of the catalog schema
MAX_TITLE_LENGTH = 200
MAX_LOCATION_LENGTH = 100

# An embedding is an ordered sequence of floats; an empty list means "unavailable"
Vector = list[float]

T = TypeVar("T")


def to_float32(values) -> Vector:
    """Round each value to 32-bit float precision.

    Vectors are stored as 32-bit floats; coercing at the edges keeps
    encode/decode round trips exact. Values too large for float32 become
    signed infinity.
    """
    return [_narrow(float(v)) for v in values]


def _narrow(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        # Out of float32 range; callers reject non-finite results
        return math.copysign(math.inf, value)


def validate_title(title: str) -> str:
    """Return the stripped title, or raise ValueError if it is empty or too long."""
    if title is None or not title.strip():
        raise ValueError("Title is required")
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise ValueError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    return title


def validate_location(location: Optional[str]) -> Optional[str]:
    """Return the location, or raise ValueError if it exceeds the column limit."""
    if location is not None and len(location) > MAX_LOCATION_LENGTH:
        raise ValueError(f"Location must be at most {MAX_LOCATION_LENGTH} characters")
    return location


@dataclass
class Item:
    """
    A catalog record (a book on the shelf).

    Attributes:
        id: Identifier assigned by the catalog store (None until created)
        title: Required title
        description: Optional free text
        location: Optional shelf position
        vector: Embedding of ``title + " " + description``; empty when unavailable
    """
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    vector: Vector = field(default_factory=list)
    id: Optional[int] = None

    @property
    def embedding_text(self) -> str:
        """Text the item's vector is computed from."""
        return f"{self.title} {self.description or ''}"

    @property
    def has_vector(self) -> bool:
        return bool(self.vector)

    def copy(self) -> "Item":
        """Copy with its own vector list (embeddings are never shared)."""
        return replace(self, vector=list(self.vector))

    def __str__(self) -> str:
        return f"{self.id}: {self.title[:60]}"


@dataclass(frozen=True)
class ScoredResult:
    """An item with its similarity score and 1-based rank. Never persisted."""
    item: Item
    score: float
    rank: int

    def __str__(self) -> str:
        return f"#{self.rank} [{self.score:.3f}] {self.item.title[:60]}"


@dataclass(frozen=True)
class ExternalCandidate:
    """
    A loosely structured book found outside the catalog.

    Has no identity until promoted into an Item.
    """
    title: str
    description: str = ""
    author: str = ""
    isbn: str = ""
    publish_year: str = ""
    cover_image: str = ""
    source: str = ""


# ---------------------------------------------------------------------------
# Outcomes: failure as a return value
# ---------------------------------------------------------------------------

class FailureKind(str, Enum):
    TRANSPORT = "transport"
    PARSE = "parse"
    DEGRADED_INPUT = "degraded_input"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}" if self.message else self.kind.value


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a call to an external service.

    ``value`` is always usable: on failure it holds the defined degraded
    value (empty vector, empty list, default text).
    """
    value: T
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def degraded(cls, value: T, kind: FailureKind, message: str = "") -> "Outcome[T]":
        return cls(value=value, failure=Failure(kind, message))
