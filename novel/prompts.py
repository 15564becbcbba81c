"""
Prompt assembly for the novel AI endpoints.
"""

from __future__ import annotations

from typing import List, Optional

from llm.types import Message

from .models import Chapter, Outline
from .services import chapter_operations, outline_operations

# How many of the most recent chapters are shown to the chapter planner.
LATEST_CHAPTERS_CONTEXT = 5

# The model is told to create at most this many chapters per tool call.
MAX_CHAPTERS_PER_BATCH = 10

CHAPTER_PLANNER_INSTRUCTIONS = f"""You are a professional novelist's assistant. Plan new chapters for the novel \
as the user asks and create them with the create_chapter tool.

1. Generate exactly the number of new chapters requested. Each chapter has a title and a prompt.
2. Titles and prompts must be rich and coherent. Do not put the chapter number in the title.
3. When many chapters are requested, create them in batches of at most {MAX_CHAPTERS_PER_BATCH} per call.
4. The prompt is written for an AI writer: design it as a good generation prompt for that chapter.
5. The prompt describes the chapter's content and theme: the characters involved, the setting, \
the main action and 3-5 key plot points.
6. Chapters must flow into each other. When a chapter ties back to earlier ones, say which in its prompt.
7. Once all chapters are created, finish without asking the user anything else.
8. Taken together, the chapter list should tell the whole story of the outline, from beginning to end."""

CHAPTER_PLANNER_RECOVERY = """If a tool call fails, retry with a smaller request (fewer chapters per call, \
more calls). Check which chapters already exist so you never create duplicates, and create exactly \
the number of chapters the user asked for."""

OUTLINE_WRITER_INSTRUCTIONS = """You are a professional novelist's assistant. Write the content of one \
outline entry (world setting, character, plot line, ...) for a novel, following the user's request. \
Stay consistent with the other outline entries. Reply with the outline content only, without preamble."""


def format_outline(outline: Outline) -> str:
    return f"[{outline.type}] {outline.name}: {outline.content or '(no content yet)'}"


def format_chapter(chapter: Chapter) -> str:
    return f"Chapter {chapter.number} {chapter.title}: {chapter.prompt or '(no prompt)'}"


def _story_context(exclude_outline_id: Optional[int] = None) -> str:
    outlines = [o for o in outline_operations.get_all() if o.id != exclude_outline_id]
    if outlines:
        lines = ["Existing outline settings:"]
        lines.extend(format_outline(o) for o in outlines)
    else:
        lines = ["There are no outline settings yet."]
    return "\n".join(lines)


def chapter_planner_system_prompt() -> str:
    """System prompt with the current outlines and the latest chapters inlined."""
    latest = chapter_operations.latest(LATEST_CHAPTERS_CONTEXT)
    if latest:
        chapters = (
            f"The latest {len(latest)} existing chapters:\n"
            + "\n".join(format_chapter(c) for c in latest)
            + "\nKeep the new chapters consistent in logic and style with the outline and these chapters."
        )
    else:
        chapters = "No chapters exist yet; plan the new chapters directly from the outline."
    return "\n\n".join([
        CHAPTER_PLANNER_INSTRUCTIONS,
        _story_context(),
        chapters,
        CHAPTER_PLANNER_RECOVERY,
    ])


def build_generate_chapters_messages(
    count: int,
    outline: Optional[Outline] = None,
    extra_prompt: Optional[str] = None,
) -> List[Message]:
    messages = [
        Message(role="system", content=chapter_planner_system_prompt()),
        Message(
            role="user",
            content=f"Continuing after the existing chapters, create {count} new chapter(s).",
        ),
    ]
    if outline is not None:
        messages.append(Message(
            role="user",
            content=f"Pay particular attention to this outline setting:\n{format_outline(outline)}",
        ))
    if extra_prompt:
        messages.append(Message(role="user", content=f"Additional requirements: {extra_prompt}"))
    return messages


def build_outline_content_messages(
    outline: Outline,
    prompt_text: str,
    old_content: Optional[str] = None,
) -> List[Message]:
    """Messages asking the model to (re)write ``outline``'s content."""
    system = "\n\n".join([OUTLINE_WRITER_INSTRUCTIONS, _story_context(exclude_outline_id=outline.id)])
    request = [f"Outline entry: [{outline.type}] {outline.name}"]
    if old_content:
        request.append(f"Current content:\n{old_content}")
    request.append(f"Request: {prompt_text}")
    return [
        Message(role="system", content=system),
        Message(role="user", content="\n\n".join(request)),
    ]


__all__ = [
    "CHAPTER_PLANNER_INSTRUCTIONS",
    "LATEST_CHAPTERS_CONTEXT",
    "build_generate_chapters_messages",
    "build_outline_content_messages",
    "chapter_planner_system_prompt",
]
