"""
Dependency wiring for the FastAPI app.

The gateway is built once by create_app and kept on app.state; routes reach it
through these dependencies rather than through module globals.
"""

from __future__ import annotations

from fastapi import Request

from backend.config import Settings
from backend.controllers import (
    MemoriesController,
    PhrasesController,
    RemindersController,
    SharedMemoryController,
)
from backend.db import DbClient, InMemoryDbClient, SqlDbClient
from backend.gateway import DataGateway
from backend.memories import MemoryLifecycle
from backend.storage import InMemoryStorageClient, S3StorageClient, StorageClient


def build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.database_url:
        return InMemoryDbClient()
    return SqlDbClient(settings.database_url)


def build_storage_client(settings: Settings) -> StorageClient:
    if settings.use_in_memory_backends or not settings.storage_bucket:
        return InMemoryStorageClient()
    return S3StorageClient(
        bucket=settings.storage_bucket,
        region=settings.storage_region or "",
        endpoint=settings.storage_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
        public_base_url=settings.storage_public_base_url or "",
    )


def build_gateway(settings: Settings) -> DataGateway:
    return DataGateway(build_db_client(settings), build_storage_client(settings))


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> DataGateway:
    return request.app.state.gateway


def get_lifecycle(request: Request) -> MemoryLifecycle:
    settings: Settings = request.app.state.settings
    return MemoryLifecycle(
        request.app.state.gateway,
        max_dimension=settings.image_max_dimension,
        quality=settings.image_quality,
    )


def get_phrases_controller(request: Request) -> PhrasesController:
    return PhrasesController(get_gateway(request))


def get_memories_controller(request: Request) -> MemoriesController:
    return MemoriesController(get_gateway(request), get_lifecycle(request))


def get_reminders_controller(request: Request) -> RemindersController:
    return RemindersController(get_gateway(request))


def get_shared_memory_controller(request: Request) -> SharedMemoryController:
    return SharedMemoryController(get_gateway(request), get_lifecycle(request))
