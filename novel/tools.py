"""Chapter and outline tools exposed to the model.

Each tool validates its arguments with a pydantic model, goes through
``novel.services`` for storage and returns JSON text for the model to read.
Missing records raise ``ToolFailure``; the dispatcher turns that into a tool
result so the model can correct itself.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from django.db import DatabaseError
from pydantic import BaseModel, ConfigDict, Field, model_validator

from llm.service.errors import ToolFailure
from llm.tools import get_tool_registry
from llm.types.context import RunContext

from .services import (
    ChapterNumberConflict,
    chapter_operations,
    chapter_preview,
    chapter_to_dict,
    outline_operations,
    outline_preview,
)

logger = logging.getLogger(__name__)


def _dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


# -- argument models ----------------------------------------------------------


class ChapterDraft(BaseModel):
    title: str = Field(min_length=1, description="Chapter title.")
    prompt: str = Field(description="Writing prompt used to generate the chapter.")
    content: Optional[str] = Field(default=None, description="Chapter body (optional).")


class CreateChapterArgs(BaseModel):
    items: List[ChapterDraft] = Field(
        min_length=1, description="Chapters to create; one or many."
    )


class ChapterPatch(BaseModel):
    id: int = Field(ge=1, description="Chapter id.")
    title: Optional[str] = Field(default=None, description="New title (optional).")
    prompt: Optional[str] = Field(default=None, description="New writing prompt (optional).")
    number: Optional[int] = Field(default=None, ge=1, description="New chapter number (optional).")
    content: Optional[str] = Field(default=None, description="New chapter body (optional).")

    @model_validator(mode="after")
    def _has_changes(self) -> "ChapterPatch":
        if all(getattr(self, f) is None for f in ("title", "prompt", "number", "content")):
            raise ValueError("at least one of title, prompt, number, content is required")
        return self


class UpdateChapterArgs(BaseModel):
    items: List[ChapterPatch] = Field(
        min_length=1, description="Chapters to update; one or many."
    )


class ChapterRef(BaseModel):
    id: int = Field(ge=1, description="Chapter id.")


class DeleteChapterArgs(BaseModel):
    items: List[ChapterRef] = Field(
        min_length=1, description="Chapters to delete; one or many."
    )


class GetChapterByIdArgs(BaseModel):
    id: int = Field(ge=1, description="Chapter id.")


class GetChapterArgs(BaseModel):
    number: int = Field(ge=1, description="Chapter number, starting at 1.")


class ChapterIdRangeArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_id: int = Field(alias="startId", ge=1, description="First chapter id.")
    end_id: int = Field(alias="endId", ge=1, description="Last chapter id (inclusive).")

    @model_validator(mode="after")
    def _ordered(self) -> "ChapterIdRangeArgs":
        if self.end_id < self.start_id:
            raise ValueError("endId must be greater than or equal to startId")
        return self


class ChapterNumberRangeArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_number: int = Field(alias="startNumber", ge=1, description="First chapter number, starting at 1.")
    end_number: int = Field(alias="endNumber", ge=1, description="Last chapter number (inclusive).")

    @model_validator(mode="after")
    def _ordered(self) -> "ChapterNumberRangeArgs":
        if self.end_number < self.start_number:
            raise ValueError("endNumber must be greater than or equal to startNumber")
        return self


class NoArgs(BaseModel):
    pass


# -- tools --------------------------------------------------------------------


class CreateChapterTool:
    """Create one or more chapters, appended after the current last chapter."""

    name = "create_chapter"
    description = (
        "Create one or more new chapters. Each item needs a title and a writing prompt; "
        "content is optional. Chapters are numbered after the current last chapter."
    )
    args_schema = CreateChapterArgs

    def run(self, args: CreateChapterArgs, context: RunContext) -> str:
        logger.info("[CreateChapterTool] creating %d chapter(s)", len(args.items))
        created: List[int] = []
        errors: List[str] = []
        for item in args.items:
            try:
                chapter = chapter_operations.add(item.title, item.prompt, item.content)
            except (ChapterNumberConflict, DatabaseError) as exc:
                logger.warning("[CreateChapterTool] could not create %r: %s", item.title, exc)
                errors.append(f"{item.title}: {exc}")
                continue
            created.append(chapter.id)
        if not created:
            raise ToolFailure(self.name, "No chapter was created: " + "; ".join(errors))
        result: dict = {"created": len(created), "ids": created}
        if errors:
            result["errors"] = errors
        return _dumps(result)


class UpdateChapterTool:
    """Patch chapters by id; omitted fields are left unchanged."""

    name = "update_chapter"
    description = (
        "Update one or more existing chapters by id. Only the fields given are changed "
        "(title, prompt, number, content)."
    )
    args_schema = UpdateChapterArgs

    def run(self, args: UpdateChapterArgs, context: RunContext) -> str:
        logger.info("[UpdateChapterTool] updating %d chapter(s)", len(args.items))
        changed = 0
        missing: List[int] = []
        errors: List[str] = []
        for item in args.items:
            try:
                count = chapter_operations.update(
                    item.id,
                    title=item.title,
                    prompt=item.prompt,
                    number=item.number,
                    content=item.content,
                )
            except (ChapterNumberConflict, DatabaseError) as exc:
                logger.warning("[UpdateChapterTool] could not update id=%d: %s", item.id, exc)
                if len(args.items) == 1:
                    raise ToolFailure(self.name, str(exc)) from exc
                errors.append(f"id {item.id}: {exc}")
                continue
            if count:
                changed += count
            else:
                missing.append(item.id)
        if len(args.items) == 1 and missing:
            raise ToolFailure(self.name, f"Chapter with id {missing[0]} not found")
        result: dict = {"requested": len(args.items), "updated": changed}
        if missing:
            result["not_found"] = missing
        if errors:
            result["errors"] = errors
        return _dumps(result)


class DeleteChapterTool:
    """Delete chapters by id."""

    name = "delete_chapter"
    description = "Delete one or more chapters by id."
    args_schema = DeleteChapterArgs

    def run(self, args: DeleteChapterArgs, context: RunContext) -> str:
        logger.info("[DeleteChapterTool] deleting %d chapter(s)", len(args.items))
        deleted = 0
        missing: List[int] = []
        errors: List[str] = []
        for item in args.items:
            try:
                count = chapter_operations.delete(item.id)
            except DatabaseError as exc:
                logger.warning("[DeleteChapterTool] could not delete id=%d: %s", item.id, exc)
                if len(args.items) == 1:
                    raise ToolFailure(self.name, str(exc)) from exc
                errors.append(f"id {item.id}: {exc}")
                continue
            if count:
                deleted += 1
            else:
                missing.append(item.id)
        if len(args.items) == 1 and missing:
            raise ToolFailure(self.name, f"Chapter with id {missing[0]} not found")
        result: dict = {"requested": len(args.items), "deleted": deleted}
        if missing:
            result["not_found"] = missing
        if errors:
            result["errors"] = errors
        return _dumps(result)


class GetChapterByIdTool:
    name = "get_chapter_by_id"
    description = "Get the full content of one chapter by its id."
    args_schema = GetChapterByIdArgs

    def run(self, args: GetChapterByIdArgs, context: RunContext) -> str:
        logger.info("[GetChapterByIdTool] fetching chapter id=%d", args.id)
        chapter = chapter_operations.get_by_id(args.id)
        if chapter is None:
            raise ToolFailure(self.name, f"Chapter with id {args.id} not found")
        return _dumps(chapter_to_dict(chapter))


class GetChapterTool:
    name = "get_chapter"
    description = "Get the full content of one chapter by its chapter number (starting at 1)."
    args_schema = GetChapterArgs

    def run(self, args: GetChapterArgs, context: RunContext) -> str:
        logger.info("[GetChapterTool] fetching chapter number=%d", args.number)
        chapter = chapter_operations.get_by_number(args.number)
        if chapter is None:
            raise ToolFailure(self.name, f"Chapter number {args.number} not found")
        return _dumps(chapter_to_dict(chapter))


class GetChaptersByIdRangeTool:
    name = "get_chapters_by_id_range"
    description = (
        "Get the title, prompt and first 200 characters of every chapter whose id lies "
        "in [startId, endId], plus the total chapter count and the id bounds present."
    )
    args_schema = ChapterIdRangeArgs

    def run(self, args: ChapterIdRangeArgs, context: RunContext) -> str:
        logger.info("[GetChaptersByIdRangeTool] fetching ids %d-%d", args.start_id, args.end_id)
        chapters = chapter_operations.get_by_id_range(args.start_id, args.end_id)
        stats = chapter_operations.stats()
        return _dumps({
            "chapters": [chapter_preview(c) for c in chapters],
            "context": {
                "total": stats["total"],
                "minId": stats["min_id"],
                "maxId": stats["max_id"],
            },
        })


class GetChaptersByRangeTool:
    name = "get_chapters_by_range"
    description = (
        "Get the title, prompt and first 200 characters of every chapter numbered "
        "startNumber to endNumber (inclusive), plus the total chapter count and the "
        "number bounds present."
    )
    args_schema = ChapterNumberRangeArgs

    def run(self, args: ChapterNumberRangeArgs, context: RunContext) -> str:
        logger.info(
            "[GetChaptersByRangeTool] fetching numbers %d-%d", args.start_number, args.end_number
        )
        chapters = chapter_operations.get_by_range(args.start_number, args.end_number)
        stats = chapter_operations.stats()
        return _dumps({
            "chapters": [chapter_preview(c) for c in chapters],
            "context": {
                "total": stats["total"],
                "minNumber": stats["min_number"],
                "maxNumber": stats["max_number"],
            },
        })


class ListOutlinesTool:
    name = "list_outlines"
    description = "List every outline (world setting, characters, plot, ...) with a content preview."
    args_schema = NoArgs

    def run(self, args: NoArgs, context: RunContext) -> str:
        outlines = outline_operations.get_all()
        logger.info("[ListOutlinesTool] %d outline(s)", len(outlines))
        return _dumps([outline_preview(o) for o in outlines])


CHAPTER_TOOLS = (
    CreateChapterTool(),
    UpdateChapterTool(),
    DeleteChapterTool(),
    GetChapterByIdTool(),
    GetChapterTool(),
    GetChaptersByIdRangeTool(),
    GetChaptersByRangeTool(),
    ListOutlinesTool(),
)
CHAPTER_TOOL_NAMES = [tool.name for tool in CHAPTER_TOOLS]

# Register on import
_registry = get_tool_registry()
for _tool in CHAPTER_TOOLS:
    _registry.register_tool(_tool)
