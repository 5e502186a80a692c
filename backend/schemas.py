"""
Pydantic schemas for the keepsake HTTP API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class SurfaceResponse(BaseModel):
    mode: Literal["full", "shared"]
    panels: list[str]


class ShareLinkResponse(BaseModel):
    share_url: str
    whatsapp_url: str


class PhraseSchema(BaseModel):
    id: int
    phrase_number: int
    title: str
    text: str
    response: Optional[str] = None


class PhraseListResponse(BaseModel):
    phrases: list[PhraseSchema]


class PhraseDetailResponse(BaseModel):
    phrase: PhraseSchema


class MemorySchema(BaseModel):
    id: str
    title: str
    content: str
    date: str
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    created_at: Optional[float] = None
    updated_at: Optional[float] = None


class MemoryListResponse(BaseModel):
    memories: list[MemorySchema]
    notice: Optional[str] = None


class MemoryMutationResponse(BaseModel):
    memory: Optional[MemorySchema] = None
    memories: list[MemorySchema]
    notice: Optional[str] = None
    # The change was saved but the list could not be reloaded.
    reload_failed: bool = False


class SharedMemoryResponse(BaseModel):
    memory: MemorySchema
    message: str


class ReminderSchema(BaseModel):
    id: str
    content: str
    is_important: bool = False
    important_at: Optional[float] = None
    is_completed: bool = False
    is_example: bool = False
    created_at: Optional[float] = None
    updated_at: Optional[float] = None


class ReminderListResponse(BaseModel):
    reminders: list[ReminderSchema]
    notice: Optional[str] = None
    reload_failed: bool = False


class ReminderCreateRequest(BaseModel):
    content: str = Field(..., max_length=1000)


class ReminderEditRequest(BaseModel):
    content: str = Field(..., max_length=1000)


class ImportantRequest(BaseModel):
    is_important: bool


class CompleteRequest(BaseModel):
    is_completed: bool
