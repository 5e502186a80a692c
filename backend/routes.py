"""
HTTP routes for the keepsake API.

Each request gets fresh controllers over the shared gateway; mutations answer
with the fully reloaded list.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from backend.config import Settings
from backend.controllers import (
    MemoriesController,
    PhrasesController,
    ReminderRefused,
    RemindersController,
    SharedMemoryController,
    ViewController,
)
from backend.controllers.shared_link import is_shared_surface, share_links
from backend.dependencies import (
    get_memories_controller,
    get_phrases_controller,
    get_reminders_controller,
    get_settings_dep,
    get_shared_memory_controller,
)
from backend.gateway import Envelope
from backend.schemas import (
    CompleteRequest,
    ImportantRequest,
    MemoryListResponse,
    MemoryMutationResponse,
    MemorySchema,
    PhraseDetailResponse,
    PhraseListResponse,
    PhraseSchema,
    ReminderCreateRequest,
    ReminderEditRequest,
    ReminderListResponse,
    ReminderSchema,
    ShareLinkResponse,
    SharedMemoryResponse,
    SurfaceResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

FULL_PANELS = ["phrases", "memories", "reminders"]
SHARED_PANELS = ["shared_memory"]


def _raise_for_error(controller: ViewController) -> None:
    panel = controller.error
    if panel is None:
        return
    status_code = 404 if panel.not_found else 502
    if status_code == 502:
        logger.warning("Answering 502: %s", panel.message)
    raise HTTPException(status_code=status_code, detail=panel.message)


def _raise_for_failure(controller: ViewController, result: Envelope) -> None:
    """
    Maps a failed mutation to an HTTP error. Validation failures leave no
    error panel and answer 422.
    """
    if result.success:
        return
    if controller.error is None:
        raise HTTPException(status_code=422, detail=result.error)
    _raise_for_error(controller)


def _raise_for_refusal(e: ReminderRefused) -> None:
    if e.not_found:
        status_code = 404
    elif e.forbidden:
        status_code = 403
    else:
        status_code = 422
    logger.info("Reminder change refused (%d): %s", status_code, e)
    raise HTTPException(status_code=status_code, detail=str(e)) from e


async def _read_image(image: Optional[UploadFile]) -> Optional[bytes]:
    if image is None:
        return None
    data = await image.read()
    return data or None


def _memories(controller: MemoriesController) -> list[MemorySchema]:
    return [MemorySchema(**m.as_dict()) for m in controller.memories]


def _mutated_memories(
    controller: MemoriesController, result: Envelope
) -> MemoryMutationResponse:
    # A saved change whose reload failed still answers 200.
    return MemoryMutationResponse(
        memory=MemorySchema(**result.data.as_dict()) if result.data else None,
        memories=_memories(controller),
        notice=controller.notice,
        reload_failed=controller.error is not None,
    )


def _reminders(controller: RemindersController) -> ReminderListResponse:
    return ReminderListResponse(
        reminders=[ReminderSchema(**r.as_dict()) for r in controller.visible_reminders],
        notice=controller.notice,
        reload_failed=controller.error is not None,
    )


@router.get("/surface", response_model=SurfaceResponse)
def surface(share: Optional[str] = Query(None)):
    if is_shared_surface(share):
        return SurfaceResponse(mode="shared", panels=SHARED_PANELS)
    return SurfaceResponse(mode="full", panels=FULL_PANELS)


@router.get("/share-link", response_model=ShareLinkResponse)
def share_link(settings: Settings = Depends(get_settings_dep)):
    return ShareLinkResponse(**share_links(settings.share_base_url))


# Phrases


@router.get("/phrases", response_model=PhraseListResponse)
async def list_phrases(
    controller: PhrasesController = Depends(get_phrases_controller),
):
    await controller.load()
    _raise_for_error(controller)
    return PhraseListResponse(
        phrases=[PhraseSchema(**p.as_dict()) for p in controller.visible_phrases]
    )


@router.get("/phrases/{phrase_id}", response_model=PhraseDetailResponse)
async def get_phrase(
    phrase_id: int,
    controller: PhrasesController = Depends(get_phrases_controller),
):
    phrase = await controller.show_detail(phrase_id)
    if phrase is None:
        _raise_for_error(controller)
    return PhraseDetailResponse(phrase=PhraseSchema(**phrase.as_dict()))


# Memories


@router.get("/memories", response_model=MemoryListResponse)
async def list_memories(
    controller: MemoriesController = Depends(get_memories_controller),
):
    await controller.load()
    _raise_for_error(controller)
    return MemoryListResponse(memories=_memories(controller))


@router.post("/memories", response_model=MemoryMutationResponse, status_code=201)
async def create_memory(
    title: str = Form(""),
    content: str = Form(""),
    date: str = Form(""),
    image: Optional[UploadFile] = File(None),
    controller: MemoriesController = Depends(get_memories_controller),
):
    controller.show_add_form()
    controller.select_image(await _read_image(image))
    result = await controller.submit_new(title, content, date)
    _raise_for_failure(controller, result)
    return _mutated_memories(controller, result)


@router.put("/memories/{memory_id}", response_model=MemoryMutationResponse)
async def update_memory(
    memory_id: str,
    title: str = Form(""),
    content: str = Form(""),
    date: str = Form(""),
    image: Optional[UploadFile] = File(None),
    controller: MemoriesController = Depends(get_memories_controller),
):
    await controller.load()
    _raise_for_error(controller)
    controller.show_edit_form(memory_id)
    _raise_for_error(controller)
    controller.select_image(await _read_image(image))
    result = await controller.submit_update(memory_id, title, content, date)
    _raise_for_failure(controller, result)
    return _mutated_memories(controller, result)


@router.delete("/memories/{memory_id}", response_model=MemoryMutationResponse)
async def delete_memory(
    memory_id: str,
    controller: MemoriesController = Depends(get_memories_controller),
):
    result = await controller.delete(memory_id)
    _raise_for_failure(controller, result)
    return _mutated_memories(controller, result)


@router.post("/shared/memories", response_model=SharedMemoryResponse, status_code=201)
async def create_shared_memory(
    name: str = Form(""),
    title: str = Form(""),
    content: str = Form(""),
    date: str = Form(""),
    image: Optional[UploadFile] = File(None),
    controller: SharedMemoryController = Depends(get_shared_memory_controller),
):
    result = await controller.submit(
        name, title, content, date, await _read_image(image)
    )
    _raise_for_failure(controller, result)
    return SharedMemoryResponse(
        memory=MemorySchema(**result.data.as_dict()), message=controller.notice
    )


# Reminders


async def _loaded(controller: RemindersController) -> RemindersController:
    await controller.load()
    _raise_for_error(controller)
    return controller


@router.get("/reminders", response_model=ReminderListResponse)
async def list_reminders(
    controller: RemindersController = Depends(get_reminders_controller),
):
    return _reminders(await _loaded(controller))


@router.post("/reminders", response_model=ReminderListResponse, status_code=201)
async def create_reminder(
    payload: ReminderCreateRequest,
    controller: RemindersController = Depends(get_reminders_controller),
):
    try:
        result = await controller.add(payload.content)
    except ReminderRefused as e:
        _raise_for_refusal(e)
    _raise_for_failure(controller, result)
    return _reminders(controller)


@router.patch("/reminders/{reminder_id}", response_model=ReminderListResponse)
async def edit_reminder(
    reminder_id: str,
    payload: ReminderEditRequest,
    controller: RemindersController = Depends(get_reminders_controller),
):
    await _loaded(controller)
    try:
        result = await controller.edit(reminder_id, payload.content)
    except ReminderRefused as e:
        _raise_for_refusal(e)
    _raise_for_failure(controller, result)
    return _reminders(controller)


@router.post("/reminders/{reminder_id}/important", response_model=ReminderListResponse)
async def mark_reminder_important(
    reminder_id: str,
    payload: ImportantRequest,
    controller: RemindersController = Depends(get_reminders_controller),
):
    await _loaded(controller)
    try:
        result = await controller.set_important(reminder_id, payload.is_important)
    except ReminderRefused as e:
        _raise_for_refusal(e)
    _raise_for_failure(controller, result)
    return _reminders(controller)


@router.post("/reminders/{reminder_id}/complete", response_model=ReminderListResponse)
async def complete_reminder(
    reminder_id: str,
    payload: CompleteRequest,
    controller: RemindersController = Depends(get_reminders_controller),
):
    await _loaded(controller)
    try:
        result = await controller.set_completed(reminder_id, payload.is_completed)
    except ReminderRefused as e:
        _raise_for_refusal(e)
    _raise_for_failure(controller, result)
    return _reminders(controller)


@router.delete("/reminders/{reminder_id}", response_model=ReminderListResponse)
async def delete_reminder(
    reminder_id: str,
    controller: RemindersController = Depends(get_reminders_controller),
):
    await _loaded(controller)
    try:
        result = await controller.delete(reminder_id)
    except ReminderRefused as e:
        _raise_for_refusal(e)
    _raise_for_failure(controller, result)
    return _reminders(controller)
