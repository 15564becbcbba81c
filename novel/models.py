from __future__ import annotations

from django.db import models


def count_words(text: str | None) -> int:
    """Length of ``text`` ignoring whitespace; CJK prose has no word separators."""
    if not text:
        return 0
    return len("".join(text.split()))


class Outline(models.Model):
    """A piece of story setting: world, characters, plot line, etc."""

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=64, blank=True)
    prompt = models.TextField(blank=True)
    content = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"[{self.type}] {self.name}" if self.type else self.name


class Chapter(models.Model):
    number = models.PositiveIntegerField(unique=True)
    title = models.CharField(max_length=255)
    prompt = models.TextField(blank=True)
    content = models.TextField(blank=True)
    word_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["number"]

    def save(self, *args, **kwargs):
        self.word_count = count_words(self.content)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "content" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"word_count"}
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"Chapter {self.number}: {self.title}"
