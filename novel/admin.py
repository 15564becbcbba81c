from django.contrib import admin

from .models import Chapter, Outline


@admin.register(Chapter)
class ChapterAdmin(admin.ModelAdmin):
    list_display = ("number", "title", "word_count", "created_at", "updated_at")
    search_fields = ("title", "prompt", "content")
    readonly_fields = ("word_count", "created_at", "updated_at")
    ordering = ("number",)


@admin.register(Outline)
class OutlineAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "created_at", "updated_at")
    list_filter = ("type",)
    search_fields = ("name", "content")
    readonly_fields = ("created_at", "updated_at")
