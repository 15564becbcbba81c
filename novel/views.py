import json
import logging
import re
from typing import List, Optional, Tuple

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from llm import get_llm_service
from llm.core.langchain_utils import check_tool_linkage
from llm.service.errors import LLMError, LLMPolicyDenied, ProtocolError
from llm.service.sse import sse_response
from llm.tools.dispatcher import describe_validation_error
from llm.types import ChatRequest, Message, RunContext

from .prompts import build_generate_chapters_messages, build_outline_content_messages
from .services import (
    ChapterNumberConflict,
    chapter_operations,
    chapter_to_dict,
    outline_operations,
    outline_to_dict,
)
from .tools import CHAPTER_TOOL_NAMES

logger = logging.getLogger(__name__)

PIPELINE_ID = "tool_chat"

_THINK_RE = re.compile(r"<think>(.*?)(?:</think>|$)", re.DOTALL)


class BadRequest(Exception):
    pass


# -- request bodies -------------------------------------------------------------


class ChapterBody(BaseModel):
    title: str = Field(min_length=1)
    prompt: str = ""
    content: Optional[str] = None


class ChapterPatchBody(BaseModel):
    title: Optional[str] = None
    prompt: Optional[str] = None
    number: Optional[int] = Field(default=None, ge=1)
    content: Optional[str] = None


class OutlineBody(BaseModel):
    name: str = Field(min_length=1)
    type: str = ""
    prompt: str = ""
    content: Optional[str] = None


class OutlinePatchBody(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    prompt: Optional[str] = None
    content: Optional[str] = None


class ChatBody(BaseModel):
    messages: List[Message] = Field(min_length=1)
    stream: bool = False
    model: Optional[str] = None


class GenerateChaptersBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auto_generate_count: int = Field(alias="autoGenerateCount", ge=1)
    outline_id: Optional[int] = Field(default=None, alias="outlineId")
    prompt: Optional[str] = None


class GenerateOutlineContentBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    outline_id: int = Field(alias="outlineId", ge=1)
    prompt_text: str = Field(alias="promptText", min_length=1)
    old_content: Optional[str] = Field(default=None, alias="oldContent")


# -- helpers --------------------------------------------------------------------


def _parse_body(request, schema):
    """Decode the JSON body and validate it against ``schema``. Raises BadRequest."""
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadRequest(f"Invalid JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise BadRequest(describe_validation_error(exc)) from exc


def _llm_error_response(exc: LLMError) -> JsonResponse:
    if isinstance(exc, LLMPolicyDenied):
        status = 403
    elif isinstance(exc, ProtocolError):
        status = 400
    else:
        status = 500
    return JsonResponse({"error": str(exc) or type(exc).__name__}, status=status)


def split_think(text: str) -> Tuple[str, str]:
    """Split ``<think>...</think>`` blocks out of ``text``; returns (content, think)."""
    thoughts = [m.strip() for m in _THINK_RE.findall(text or "")]
    content = _THINK_RE.sub("", text or "").strip()
    return content, "\n".join(t for t in thoughts if t)


def _answer_response(response) -> JsonResponse:
    """``{content, thinkText}``; provider reasoning comes before inline think blocks."""
    content, think = split_think(response.message.content)
    reasoning = response.metadata.get("reasoning") or ""
    return JsonResponse({
        "content": content,
        "thinkText": "\n".join(t for t in (reasoning, think) if t),
    })


# -- chapters -------------------------------------------------------------------


@csrf_exempt
@require_http_methods(["GET", "POST"])
def chapter_list(request):
    if request.method == "GET":
        return JsonResponse([chapter_to_dict(c) for c in chapter_operations.get_all()], safe=False)
    try:
        body = _parse_body(request, ChapterBody)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    try:
        chapter = chapter_operations.add(body.title, body.prompt, body.content)
    except ChapterNumberConflict as exc:
        return JsonResponse({"error": str(exc)}, status=409)
    return JsonResponse({"success": True, "id": chapter.id}, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
def chapter_detail(request, chapter_id):
    if request.method == "GET":
        chapter = chapter_operations.get_by_id(chapter_id)
        if chapter is None:
            return JsonResponse({"error": "Chapter not found"}, status=404)
        return JsonResponse(chapter_to_dict(chapter))
    if request.method == "DELETE":
        if not chapter_operations.delete(chapter_id):
            return JsonResponse({"error": "Chapter not found"}, status=404)
        return JsonResponse({"success": True})
    try:
        body = _parse_body(request, ChapterPatchBody)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    try:
        changed = chapter_operations.update(chapter_id, **body.model_dump())
    except ChapterNumberConflict as exc:
        return JsonResponse({"error": str(exc)}, status=409)
    if not changed and chapter_operations.get_by_id(chapter_id) is None:
        return JsonResponse({"error": "Chapter not found"}, status=404)
    return JsonResponse({"success": True, "changes": changed})


# -- outlines -------------------------------------------------------------------


@csrf_exempt
@require_http_methods(["GET", "POST"])
def outline_list(request):
    if request.method == "GET":
        return JsonResponse([outline_to_dict(o) for o in outline_operations.get_all()], safe=False)
    try:
        body = _parse_body(request, OutlineBody)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    outline = outline_operations.add(body.name, body.type, body.prompt, body.content)
    return JsonResponse({"success": True, "id": outline.id}, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH"])
def outline_detail(request, outline_id):
    outline = outline_operations.get_by_id(outline_id)
    if outline is None:
        return JsonResponse({"error": "Outline not found"}, status=404)
    if request.method == "GET":
        return JsonResponse(outline_to_dict(outline))
    try:
        body = _parse_body(request, OutlinePatchBody)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    changed = outline_operations.update(outline_id, **body.model_dump())
    return JsonResponse({"success": True, "changes": changed})


# -- AI -------------------------------------------------------------------------


@csrf_exempt
@require_POST
def ai_chat(request):
    """Tool-enabled chat over the chapter catalog; JSON reply or SSE when ``stream`` is set."""
    try:
        body = _parse_body(request, ChatBody)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    try:
        check_tool_linkage(body.messages)
    except ProtocolError as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    chat_request = ChatRequest(
        messages=body.messages,
        stream=body.stream,
        model=body.model,
        tools=CHAPTER_TOOL_NAMES,
        context=RunContext.create(),
    )
    service = get_llm_service()
    if body.stream:
        return sse_response(service.stream(PIPELINE_ID, chat_request))

    try:
        response = service.run(PIPELINE_ID, chat_request)
    except LLMError as exc:
        logger.exception("AI chat failed")
        return _llm_error_response(exc)
    return _answer_response(response)


@csrf_exempt
@require_POST
def generate_chapters(request):
    """Ask the model to plan and create ``autoGenerateCount`` chapters via the tools."""
    try:
        body = _parse_body(request, GenerateChaptersBody)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    logger.info(
        "generate-chapters count=%d outline_id=%s prompt=%r",
        body.auto_generate_count,
        body.outline_id,
        body.prompt,
    )

    outline = outline_operations.get_by_id(body.outline_id) if body.outline_id else None
    chat_request = ChatRequest(
        messages=build_generate_chapters_messages(body.auto_generate_count, outline, body.prompt),
        tools=CHAPTER_TOOL_NAMES,
        context=RunContext.create(),
    )
    try:
        response = get_llm_service().run(PIPELINE_ID, chat_request)
    except LLMError as exc:
        logger.exception("Generating chapters failed")
        return _llm_error_response(exc)

    return _answer_response(response)


@csrf_exempt
@require_POST
def generate_outline_content(request):
    """Stream newly written content for one outline entry as SSE."""
    try:
        body = _parse_body(request, GenerateOutlineContentBody)
    except BadRequest as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    outline = outline_operations.get_by_id(body.outline_id)
    if outline is None:
        return JsonResponse({"error": "Outline not found"}, status=404)

    chat_request = ChatRequest(
        messages=build_outline_content_messages(outline, body.prompt_text, body.old_content),
        stream=True,
        context=RunContext.create(conversation_id=outline.id),
    )
    return sse_response(get_llm_service().stream(PIPELINE_ID, chat_request))
