"""Tests for the chapter and outline persistence operations."""

from unittest.mock import patch

from django.db import IntegrityError
from django.test import TestCase

from novel.models import Chapter, Outline, count_words
from novel.services import (
    PREVIEW_LENGTH,
    ChapterNumberConflict,
    chapter_operations,
    chapter_preview,
    chapter_to_dict,
    content_preview,
    outline_operations,
)


class CountWordsTests(TestCase):
    def test_ignores_whitespace(self):
        self.assertEqual(count_words("她 走进\n灯塔。"), 6)
        self.assertEqual(count_words("two words"), 8)

    def test_empty(self):
        self.assertEqual(count_words(""), 0)
        self.assertEqual(count_words(None), 0)


class ContentPreviewTests(TestCase):
    def test_short_text_unchanged(self):
        self.assertEqual(content_preview("short"), "short")

    def test_exact_limit_not_marked(self):
        text = "x" * PREVIEW_LENGTH
        self.assertEqual(content_preview(text), text)

    def test_long_text_truncated_with_marker(self):
        text = "y" * (PREVIEW_LENGTH + 1)
        self.assertEqual(content_preview(text), "y" * PREVIEW_LENGTH + "...")

    def test_empty(self):
        self.assertEqual(content_preview(None), "")


class ChapterOperationsTests(TestCase):
    def test_add_assigns_next_number(self):
        first = chapter_operations.add("Arrival", "Mara arrives.")
        second = chapter_operations.add("Storm", "The storm hits.", "Rain.")
        self.assertEqual(first.number, 1)
        self.assertEqual(second.number, 2)
        self.assertEqual(second.word_count, 5)

    def test_add_after_gap_uses_max_plus_one(self):
        Chapter.objects.create(number=7, title="Late")
        self.assertEqual(chapter_operations.add("Next", "").number, 8)

    def test_add_retries_number_collision(self):
        real_create = Chapter.objects.create
        calls = []

        def flaky_create(**kwargs):
            calls.append(kwargs["number"])
            if len(calls) == 1:
                raise IntegrityError("UNIQUE constraint failed: novel_chapter.number")
            return real_create(**kwargs)

        with patch.object(Chapter.objects, "create", side_effect=flaky_create):
            with self.assertLogs("novel.services", level="WARNING"):
                chapter = chapter_operations.add("Retry", "")
        self.assertEqual(len(calls), 2)
        self.assertEqual(chapter.number, 1)

    def test_add_gives_up_after_repeated_collisions(self):
        with patch.object(Chapter.objects, "create", side_effect=IntegrityError("dup")):
            with self.assertLogs("novel.services", level="WARNING"):
                with self.assertRaises(ChapterNumberConflict):
                    chapter_operations.add("Never", "")

    def test_update_patches_only_given_fields(self):
        chapter = chapter_operations.add("Old", "old prompt", "abc")
        changed = chapter_operations.update(chapter.id, title="New", prompt=None)
        self.assertEqual(changed, 1)
        chapter.refresh_from_db()
        self.assertEqual(chapter.title, "New")
        self.assertEqual(chapter.prompt, "old prompt")
        self.assertEqual(chapter.content, "abc")

    def test_update_content_recomputes_word_count(self):
        chapter = chapter_operations.add("T", "", "abc")
        chapter_operations.update(chapter.id, content="a b c d e")
        chapter.refresh_from_db()
        self.assertEqual(chapter.word_count, 5)

    def test_update_missing_id_returns_zero(self):
        self.assertEqual(chapter_operations.update(999, title="x"), 0)

    def test_update_without_fields_returns_zero(self):
        chapter = chapter_operations.add("T", "")
        self.assertEqual(chapter_operations.update(chapter.id, title=None, bogus="x"), 0)

    def test_update_to_taken_number_raises_conflict(self):
        chapter_operations.add("One", "")
        two = chapter_operations.add("Two", "")
        with self.assertRaises(ChapterNumberConflict):
            chapter_operations.update(two.id, number=1)

    def test_delete(self):
        chapter = chapter_operations.add("Doomed", "")
        self.assertEqual(chapter_operations.delete(chapter.id), 1)
        self.assertEqual(chapter_operations.delete(chapter.id), 0)
        self.assertIsNone(chapter_operations.get_by_id(chapter.id))

    def test_get_by_number(self):
        chapter_operations.add("One", "")
        two = chapter_operations.add("Two", "")
        self.assertEqual(chapter_operations.get_by_number(2), two)
        self.assertIsNone(chapter_operations.get_by_number(3))

    def test_ranges_are_inclusive_and_ordered(self):
        chapters = [chapter_operations.add(f"C{i}", "") for i in range(1, 6)]
        by_number = chapter_operations.get_by_range(2, 4)
        self.assertEqual([c.number for c in by_number], [2, 3, 4])
        by_id = chapter_operations.get_by_id_range(chapters[3].id, chapters[4].id)
        self.assertEqual([c.id for c in by_id], [chapters[3].id, chapters[4].id])
        self.assertEqual(chapter_operations.get_by_range(9, 10), [])

    def test_latest_returns_highest_numbers_first(self):
        for i in range(1, 8):
            chapter_operations.add(f"C{i}", "")
        self.assertEqual([c.number for c in chapter_operations.latest(3)], [7, 6, 5])

    def test_stats(self):
        self.assertEqual(chapter_operations.stats()["total"], 0)
        a = chapter_operations.add("A", "")
        b = chapter_operations.add("B", "")
        stats = chapter_operations.stats()
        self.assertEqual(stats["total"], 2)
        self.assertEqual((stats["min_id"], stats["max_id"]), (a.id, b.id))
        self.assertEqual((stats["min_number"], stats["max_number"]), (1, 2))

    def test_serializers(self):
        chapter = chapter_operations.add("A", "p", "z" * 250)
        full = chapter_to_dict(chapter)
        self.assertEqual(len(full["content"]), 250)
        self.assertEqual(full["word_count"], 250)
        preview = chapter_preview(chapter)
        self.assertEqual(preview["contentPreview"], "z" * 200 + "...")
        self.assertNotIn("content", preview)


class OutlineOperationsTests(TestCase):
    def test_add_and_get(self):
        outline = outline_operations.add("Lighthouse Isle", "world", "p", "A rocky island.")
        self.assertEqual(outline_operations.get_by_id(outline.id), outline)
        self.assertEqual(outline_operations.get_all(), [outline])
        self.assertIsNone(outline_operations.get_by_id(outline.id + 1))

    def test_update(self):
        outline = outline_operations.add("Mara", "character")
        self.assertEqual(outline_operations.update(outline.id, content="Keeper's daughter."), 1)
        outline.refresh_from_db()
        self.assertEqual(outline.content, "Keeper's daughter.")
        self.assertEqual(outline.type, "character")
        self.assertEqual(outline_operations.update(outline.id), 0)

    def test_str(self):
        self.assertEqual(str(Outline(name="Mara", type="character")), "[character] Mara")
