"""
Spreadsheet-style interchange of the study store.

Data travels as named sheets of flat rows (``dict`` per row), so the file
format is a separate concern (see ``lanlearner.infrastructure.interchange_file``).
Categories are written as path strings joined by ``" > "`` and recreated
by case-insensitive title match on import.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any

from lanlearner.application import srs
from lanlearner.application.id_service import generate_id
from lanlearner.application.state import AppState, StateKey
from lanlearner.domain.constants import PATH_SEPARATOR, TOP_LEVEL_LABEL, UNCATEGORIZED_LABEL
from lanlearner.domain.models import (
    KnowledgePoint,
    LexicalItem,
    format_timestamp,
    parse_stage,
    parse_timestamp,
)
from lanlearner.domain.taxonomy import CategoryTree

logger = logging.getLogger(__name__)

WORDS_SHEET = "words"
KNOWLEDGE_POINTS_SHEET = "knowledge_points"
NEW_KNOWLEDGE_SYLLABUS_SHEET = "new_knowledge_syllabus"

# Spreadsheet serial day 0
_SERIAL_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)
_TRUTHY = {"yes", "true", "y", "1"}


@dataclass
class ImportReport:
    words_added: int = 0
    words_skipped: int = 0
    words_updated: int = 0
    words_unchanged: int = 0
    points_added: int = 0
    points_skipped: int = 0
    points_updated: int = 0
    points_unchanged: int = 0
    categories_created: int = 0
    learned_flags_applied: int = 0
    sheets_found: list[str] = field(default_factory=list)
    changed: set[StateKey] = field(default_factory=set)

    @property
    def message(self) -> str:
        if not self.sheets_found:
            return "No recognised sheets found; nothing imported."
        lines = ["Import complete."]
        if WORDS_SHEET in self.sheets_found:
            lines.append(
                f"Words: {self.words_added} added, {self.words_updated} updated, "
                f"{self.words_skipped} skipped (missing fields), {self.words_unchanged} unchanged."
            )
        if KNOWLEDGE_POINTS_SHEET in self.sheets_found:
            lines.append(
                f"Knowledge points: {self.points_added} added, {self.points_updated} updated, "
                f"{self.points_skipped} skipped (missing fields), {self.points_unchanged} unchanged."
            )
        if self.categories_created:
            lines.append(f"Created {self.categories_created} categories.")
        if self.learned_flags_applied:
            lines.append(f"Applied {self.learned_flags_applied} learned flags.")
        return "\n".join(lines)


# ---------- Cell parsing ----------


def parse_cell_date(value: Any) -> datetime | None:
    """
    Parse a date cell: ISO strings, ``date``/``datetime`` objects, or
    spreadsheet serial numbers. ``"N/A"`` and blanks are None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _SERIAL_EPOCH + timedelta(days=float(value))
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip().upper() in ("", "N/A"):
        return None
    return parse_timestamp(value)


def _cell(row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value).strip()


def _split_path(path: str) -> list[str]:
    return [part.strip() for part in path.split(PATH_SEPARATOR.strip()) if part.strip()]


def ensure_category_path(tree: CategoryTree, path: str) -> tuple[str | None, int]:
    """
    Walk ``path`` from the root, creating missing segments.

    Returns:
        (id of the last segment or None for an uncategorized path, number of
        categories created)
    """
    if not path or path.strip().lower() == UNCATEGORIZED_LABEL.lower():
        return None, 0
    created = 0
    current: str | None = None
    for title in _split_path(path):
        child = tree.find_child_by_title(current, title)
        if child is None:
            child = tree.add(generate_id(), title, current)
            created += 1
        current = child.id
    return current, created


# ---------- Export ----------


def export_sheets(state: AppState) -> dict[str, list[dict[str, Any]]]:
    main_tree = state.main_tree
    nk_tree = state.new_knowledge_tree

    words = [
        {
            "headword": w.headword,
            "definition": w.definition,
            "part_of_speech": w.part_of_speech,
            "example": w.example,
            "notes": w.notes or "",
            "created_at": format_timestamp(w.created_at) or "N/A",
            "last_reviewed_at": format_timestamp(w.last_reviewed_at) or "N/A",
            "next_review_at": format_timestamp(w.next_review_at) or "N/A",
            "srs_stage": w.srs_stage,
        }
        for w in state.words
    ]

    points = [
        {
            "title": kp.title,
            "body": kp.body,
            "category": main_tree.path_string(kp.category_id) or UNCATEGORIZED_LABEL,
            "notes": kp.notes or "",
            "created_at": format_timestamp(kp.created_at) or "N/A",
            "last_reviewed_at": format_timestamp(kp.last_reviewed_at) or "N/A",
            "next_review_at": format_timestamp(kp.next_review_at) or "N/A",
            "srs_stage": kp.srs_stage,
        }
        for kp in state.knowledge_points
    ]

    syllabus = []
    for category, _ in nk_tree.walk():
        parent = nk_tree.get(category.parent_id)
        syllabus.append(
            {
                "name": category.title,
                "parent_path": nk_tree.path_string(parent.id) if parent else TOP_LEVEL_LABEL,
                "is_learned": "yes" if category.is_learned else "no",
            }
        )

    return {
        WORDS_SHEET: words,
        KNOWLEDGE_POINTS_SHEET: points,
        NEW_KNOWLEDGE_SYLLABUS_SHEET: syllabus,
    }


# ---------- Import ----------


def _merge_syllabus(state: AppState, rows: list[dict[str, Any]], report: ImportReport) -> None:
    tree = state.new_knowledge_tree
    for row in rows:
        name = _cell(row, "name")
        parent_path = _cell(row, "parent_path")
        if not name:
            continue
        if not parent_path or parent_path.lower() == TOP_LEVEL_LABEL.lower():
            full_path = name
        else:
            full_path = f"{parent_path}{PATH_SEPARATOR}{name}"
        category_id, created = ensure_category_path(tree, full_path)
        report.categories_created += created
        if created:
            report.changed.add(StateKey.NEW_KNOWLEDGE_SYLLABUS)

        learned = _cell(row, "is_learned").lower() in _TRUTHY
        category = tree.get(category_id)
        if category is not None and category.is_learned != learned:
            category.is_learned = learned
            report.learned_flags_applied += 1
            report.changed.add(StateKey.NEW_KNOWLEDGE_SYLLABUS)


def _apply_updates(item: Any, updates: dict[str, Any]) -> bool:
    """Set changed payload fields on ``item``; True if anything differed."""
    changed = False
    for name, value in updates.items():
        if getattr(item, name) != value:
            setattr(item, name, value)
            changed = True
    return changed


def _merge_words(state: AppState, rows: list[dict[str, Any]], now: datetime,
                 report: ImportReport, skip_existing: bool) -> None:
    by_headword = {w.headword.lower(): w for w in state.words}
    for index, row in enumerate(rows):
        headword = _cell(row, "headword")
        definition = _cell(row, "definition")
        part_of_speech = _cell(row, "part_of_speech")
        if not (headword and definition and part_of_speech):
            logger.warning(f"Skipping word row {index + 1}: missing headword, definition or part of speech")
            report.words_skipped += 1
            continue

        existing = by_headword.get(headword.lower())
        if existing is not None:
            updates = {"definition": definition, "part_of_speech": part_of_speech}
            if "example" in row:
                updates["example"] = _cell(row, "example")
            if "notes" in row:
                updates["notes"] = _cell(row, "notes") or None
            # Review history stays with the stored item
            if not skip_existing and _apply_updates(existing, updates):
                report.words_updated += 1
                report.changed.add(StateKey.WORDS)
            else:
                report.words_unchanged += 1
            continue

        word = LexicalItem(
            id=generate_id(),
            headword=headword,
            definition=definition,
            part_of_speech=part_of_speech,
            example=_cell(row, "example"),
            notes=_cell(row, "notes") or None,
            created_at=parse_cell_date(row.get("created_at")) or now,
            last_reviewed_at=parse_cell_date(row.get("last_reviewed_at")),
            next_review_at=parse_cell_date(row.get("next_review_at")) or srs.first_review_at(now),
            srs_stage=parse_stage(row.get("srs_stage")),
        )
        state.words.append(word)
        by_headword[headword.lower()] = word
        report.words_added += 1
        report.changed.add(StateKey.WORDS)


def _merge_points(state: AppState, rows: list[dict[str, Any]], now: datetime,
                  report: ImportReport, skip_existing: bool) -> None:
    by_title = {kp.title.lower(): kp for kp in state.knowledge_points}
    for index, row in enumerate(rows):
        title = _cell(row, "title")
        body = _cell(row, "body")
        if not (title and body):
            logger.warning(f"Skipping knowledge point row {index + 1}: missing title or body")
            report.points_skipped += 1
            continue

        existing = by_title.get(title.lower())
        if existing is not None and skip_existing:
            report.points_unchanged += 1
            continue

        category_id = None
        if existing is None or "category" in row:
            category_id, created = ensure_category_path(state.main_tree, _cell(row, "category"))
            if created:
                report.categories_created += created
                report.changed.add(StateKey.SYLLABUS)

        if existing is not None:
            updates = {"body": body}
            if "category" in row:
                updates["category_id"] = category_id
            if "notes" in row:
                updates["notes"] = _cell(row, "notes") or None
            if _apply_updates(existing, updates):
                report.points_updated += 1
                report.changed.add(StateKey.KNOWLEDGE_POINTS)
            else:
                report.points_unchanged += 1
            continue

        item_id = generate_id()
        kp = KnowledgePoint(
            id=item_id,
            title=title,
            body=body,
            category_id=category_id,
            master_id=item_id,
            notes=_cell(row, "notes") or None,
            created_at=parse_cell_date(row.get("created_at")) or now,
            last_reviewed_at=parse_cell_date(row.get("last_reviewed_at")),
            next_review_at=parse_cell_date(row.get("next_review_at")) or srs.first_review_at(now),
            srs_stage=parse_stage(row.get("srs_stage")),
        )
        state.knowledge_points.append(kp)
        by_title[title.lower()] = kp
        report.points_added += 1
        report.changed.add(StateKey.KNOWLEDGE_POINTS)


def merge_sheets(state: AppState, sheets: dict[str, Any], now: datetime | None = None,
                 skip_existing: bool = False) -> ImportReport:
    """
    Merge imported sheets into ``state`` by natural key.

    A row whose headword (words) or title (knowledge points) matches a stored
    item case-insensitively updates that item's content in place; its review
    schedule is kept. Other rows are inserted. With ``skip_existing`` matching
    rows are left alone instead. The caller persists ``report.changed``.
    """
    now = now or srs.utcnow()
    report = ImportReport()
    normalized = {str(name).strip().lower(): rows for name, rows in sheets.items()}

    handlers = [
        (NEW_KNOWLEDGE_SYLLABUS_SHEET, lambda rows: _merge_syllabus(state, rows, report)),
        (WORDS_SHEET, lambda rows: _merge_words(state, rows, now, report, skip_existing)),
        (KNOWLEDGE_POINTS_SHEET, lambda rows: _merge_points(state, rows, now, report, skip_existing)),
    ]
    for name, handler in handlers:
        rows = normalized.get(name)
        if rows is None:
            continue
        report.sheets_found.append(name)
        handler([r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else [])

    logger.info(report.message)
    return report
