"""Chapter and outline persistence operations.

Every operation is a single ORM statement or runs inside ``transaction.atomic()``,
so each one is atomic on its own; callers (tools, views) never touch the ORM
directly.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count, Max, Min
from django.utils import timezone

from .models import Chapter, Outline, count_words

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200
PREVIEW_MARKER = "..."

# Concurrent creates may pick the same next number; retry on the unique constraint.
_MAX_NUMBER_ATTEMPTS = 5

# Sibling tool calls write from worker threads. SQLite allows one writer at a
# time, so writes from this process are serialized here; other processes are
# handled by the IMMEDIATE transactions and busy timeout in settings.
_write_lock = threading.RLock()


class ChapterNumberConflict(Exception):
    """The requested chapter number is already taken by another chapter."""


def content_preview(text: str | None, limit: int = PREVIEW_LENGTH) -> str:
    """First ``limit`` characters of ``text``, with a marker appended when cut."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + PREVIEW_MARKER


def chapter_to_dict(chapter: Chapter) -> Dict[str, Any]:
    return {
        "id": chapter.id,
        "title": chapter.title,
        "number": chapter.number,
        "prompt": chapter.prompt,
        "content": chapter.content or "",
        "word_count": chapter.word_count,
        "created_at": chapter.created_at.isoformat() if chapter.created_at else None,
        "updated_at": chapter.updated_at.isoformat() if chapter.updated_at else None,
    }


def chapter_preview(chapter: Chapter) -> Dict[str, Any]:
    return {
        "id": chapter.id,
        "number": chapter.number,
        "title": chapter.title,
        "prompt": chapter.prompt,
        "contentPreview": content_preview(chapter.content),
        "word_count": chapter.word_count,
    }


def outline_to_dict(outline: Outline) -> Dict[str, Any]:
    return {
        "id": outline.id,
        "name": outline.name,
        "type": outline.type,
        "prompt": outline.prompt,
        "content": outline.content or "",
        "created_at": outline.created_at.isoformat() if outline.created_at else None,
        "updated_at": outline.updated_at.isoformat() if outline.updated_at else None,
    }


def outline_preview(outline: Outline) -> Dict[str, Any]:
    return {
        "id": outline.id,
        "name": outline.name,
        "type": outline.type,
        "prompt": outline.prompt,
        "contentPreview": content_preview(outline.content),
    }


class ChapterOperations:
    UPDATABLE_FIELDS = ("title", "prompt", "number", "content")

    def add(self, title: str, prompt: str = "", content: str | None = None) -> Chapter:
        """Create a chapter numbered after the current last one."""
        for attempt in range(1, _MAX_NUMBER_ATTEMPTS + 1):
            try:
                with _write_lock, transaction.atomic():
                    last = Chapter.objects.aggregate(last=Max("number"))["last"] or 0
                    return Chapter.objects.create(
                        number=last + 1,
                        title=title,
                        prompt=prompt or "",
                        content=content or "",
                    )
            except IntegrityError:
                logger.warning("Chapter number collision on create (attempt %d)", attempt)
        raise ChapterNumberConflict("Could not assign a free chapter number; please retry")

    def update(self, chapter_id: int, **fields: Any) -> int:
        """Patch the given fields (``None`` means leave unchanged). Returns the changed-row count."""
        changes = {
            k: v for k, v in fields.items() if k in self.UPDATABLE_FIELDS and v is not None
        }
        if not changes:
            return 0
        if "content" in changes:
            changes["word_count"] = count_words(changes["content"])
        changes["updated_at"] = timezone.now()
        try:
            with _write_lock, transaction.atomic():
                return Chapter.objects.filter(pk=chapter_id).update(**changes)
        except IntegrityError as exc:
            raise ChapterNumberConflict(
                f"Chapter number {changes.get('number')} is already taken"
            ) from exc

    def delete(self, chapter_id: int) -> int:
        with _write_lock:
            deleted, _ = Chapter.objects.filter(pk=chapter_id).delete()
        return deleted

    def get_by_id(self, chapter_id: int) -> Optional[Chapter]:
        return Chapter.objects.filter(pk=chapter_id).first()

    def get_by_number(self, number: int) -> Optional[Chapter]:
        return Chapter.objects.filter(number=number).first()

    def get_by_range(self, start_number: int, end_number: int) -> List[Chapter]:
        """Chapters with ``start_number <= number <= end_number``, by number."""
        return list(
            Chapter.objects.filter(number__gte=start_number, number__lte=end_number).order_by("number")
        )

    def get_by_id_range(self, start_id: int, end_id: int) -> List[Chapter]:
        return list(Chapter.objects.filter(pk__gte=start_id, pk__lte=end_id).order_by("id"))

    def get_all(self) -> List[Chapter]:
        return list(Chapter.objects.order_by("number"))

    def latest(self, limit: int) -> List[Chapter]:
        """The ``limit`` highest-numbered chapters, highest first."""
        return list(Chapter.objects.order_by("-number")[:limit])

    def stats(self) -> Dict[str, Optional[int]]:
        """Total count and the id/number bounds currently present."""
        return Chapter.objects.aggregate(
            total=Count("id"),
            min_id=Min("id"),
            max_id=Max("id"),
            min_number=Min("number"),
            max_number=Max("number"),
        )


class OutlineOperations:
    UPDATABLE_FIELDS = ("name", "type", "prompt", "content")

    def add(self, name: str, type: str = "", prompt: str = "", content: str | None = None) -> Outline:
        with _write_lock:
            return Outline.objects.create(
                name=name, type=type or "", prompt=prompt or "", content=content or ""
            )

    def update(self, outline_id: int, **fields: Any) -> int:
        changes = {
            k: v for k, v in fields.items() if k in self.UPDATABLE_FIELDS and v is not None
        }
        if not changes:
            return 0
        changes["updated_at"] = timezone.now()
        with _write_lock:
            return Outline.objects.filter(pk=outline_id).update(**changes)

    def get_by_id(self, outline_id: int) -> Optional[Outline]:
        return Outline.objects.filter(pk=outline_id).first()

    def get_all(self) -> List[Outline]:
        return list(Outline.objects.order_by("id"))


chapter_operations = ChapterOperations()
outline_operations = OutlineOperations()


__all__ = [
    "PREVIEW_LENGTH",
    "ChapterNumberConflict",
    "ChapterOperations",
    "OutlineOperations",
    "chapter_operations",
    "outline_operations",
    "chapter_preview",
    "chapter_to_dict",
    "content_preview",
    "outline_preview",
    "outline_to_dict",
]
