"""
Domain models for the study store.

Pure data structures with no I/O. Persisted form is a plain dict produced by
``to_dict`` and read back by ``from_dict``; timestamps travel as ISO-8601 strings.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from lanlearner.domain.constants import MAX_SRS_STAGE


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def parse_stage(value: Any) -> int:
    """Stored SRS stage clamped into range; unreadable values fall back to 0."""
    try:
        return max(0, min(int(value), MAX_SRS_STAGE))
    except (TypeError, ValueError, OverflowError):
        return 0


class Hierarchy(str, Enum):
    MAIN = "main"
    NEW_KNOWLEDGE = "new_knowledge"


class ReviewOutcome(str, Enum):
    REMEMBERED = "remembered"
    FORGOT = "forgot"


@dataclass
class Category:
    """
    A node in one hierarchy's category tree.

    Attributes:
        id: Unique id within its hierarchy.
        title: Display title (no uniqueness constraint).
        parent_id: Parent category id, or the hierarchy root sentinel.
        is_learned: Only meaningful in the new-knowledge hierarchy.
    """

    id: str
    title: str
    parent_id: str | None = None
    is_learned: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "parent_id": self.parent_id,
            "is_learned": self.is_learned,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            parent_id=data.get("parent_id"),
            is_learned=bool(data.get("is_learned", False)),
        )


@dataclass
class LexicalItem:
    """A vocabulary entry with its SRS scheduling state."""

    id: str
    headword: str
    definition: str
    part_of_speech: str
    example: str = ""
    notes: str | None = None
    created_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None
    srs_stage: int = 0

    kind = "word"

    @property
    def label(self) -> str:
        return self.headword

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "id": self.id,
            "headword": self.headword,
            "definition": self.definition,
            "part_of_speech": self.part_of_speech,
            "example": self.example,
            "notes": self.notes,
            "created_at": format_timestamp(self.created_at),
            "last_reviewed_at": format_timestamp(self.last_reviewed_at),
            "next_review_at": format_timestamp(self.next_review_at),
            "srs_stage": self.srs_stage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LexicalItem":
        return cls(
            id=str(data["id"]),
            headword=str(data.get("headword", "")),
            definition=str(data.get("definition", "")),
            part_of_speech=str(data.get("part_of_speech", "")),
            example=str(data.get("example") or ""),
            notes=data.get("notes"),
            created_at=parse_timestamp(data.get("created_at")),
            last_reviewed_at=parse_timestamp(data.get("last_reviewed_at")),
            next_review_at=parse_timestamp(data.get("next_review_at")),
            srs_stage=parse_stage(data.get("srs_stage")),
        )


@dataclass
class KnowledgePoint:
    """
    A titled piece of knowledge filed under a category.

    Attributes:
        category_id: Category in the owning hierarchy, or None when uncategorized
            (filed at the hierarchy root).
        master_id: Origin id. Equals ``id`` for originals; for a synchronized
            copy it is the id of the new-knowledge item it was copied from.
        subject_id: Top-level new-knowledge category the item belongs to. Only set
            for items living in the new-knowledge hierarchy.
    """

    id: str
    title: str
    body: str
    category_id: str | None = None
    master_id: str | None = None
    subject_id: str | None = None
    image_url: str | None = None
    image_name: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None
    srs_stage: int = 0

    kind = "knowledge"

    def __post_init__(self) -> None:
        if not self.master_id:
            self.master_id = self.id

    @property
    def label(self) -> str:
        return self.title

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "category_id": self.category_id,
            "master_id": self.master_id,
            "subject_id": self.subject_id,
            "image_url": self.image_url,
            "image_name": self.image_name,
            "notes": self.notes,
            "created_at": format_timestamp(self.created_at),
            "last_reviewed_at": format_timestamp(self.last_reviewed_at),
            "next_review_at": format_timestamp(self.next_review_at),
            "srs_stage": self.srs_stage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KnowledgePoint":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            body=str(data.get("body", "")),
            category_id=data.get("category_id"),
            master_id=data.get("master_id"),
            subject_id=data.get("subject_id"),
            image_url=data.get("image_url"),
            image_name=data.get("image_name"),
            notes=data.get("notes"),
            created_at=parse_timestamp(data.get("created_at")),
            last_reviewed_at=parse_timestamp(data.get("last_reviewed_at")),
            next_review_at=parse_timestamp(data.get("next_review_at")),
            srs_stage=parse_stage(data.get("srs_stage")),
        )


LearningItem = LexicalItem | KnowledgePoint


def item_from_dict(data: dict[str, Any]) -> LearningItem:
    """Rebuild a learning item from its tagged persisted form."""
    if data.get("type") == LexicalItem.kind:
        return LexicalItem.from_dict(data)
    return KnowledgePoint.from_dict(data)


@dataclass
class RecycleBinEntry:
    item: LearningItem
    deleted_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"item": self.item.to_dict(), "deleted_at": format_timestamp(self.deleted_at)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecycleBinEntry | None":
        deleted_at = parse_timestamp(data.get("deleted_at"))
        item = data.get("item")
        if deleted_at is None or not isinstance(item, dict) or "id" not in item:
            return None
        return cls(item=item_from_dict(item), deleted_at=deleted_at)


@dataclass
class LearningPlan:
    """The single "study this category today" pointer."""

    subject_id: str
    category_id: str
    category_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "category_id": self.category_id,
            "category_name": self.category_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "LearningPlan | None":
        if not data or not data.get("category_id") or not data.get("subject_id"):
            return None
        return cls(
            subject_id=str(data["subject_id"]),
            category_id=str(data["category_id"]),
            category_name=str(data.get("category_name", "")),
        )


@dataclass
class WordDefinition:
    """Result of a dictionary lookup. ``error`` is set when the lookup failed."""

    definition: str = ""
    part_of_speech: str = ""
    example: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SubjectProgress:
    level1_total: int = 0
    level1_learned: int = 0
    level2_total: int = 0
    level2_learned: int = 0


@dataclass
class ReviewSummary:
    due: list[LearningItem] = field(default_factory=list)
    upcoming: list[LearningItem] = field(default_factory=list)
    total_items: int = 0
