"""FastAPI dependencies resolving the objects create_app() put on app.state."""

from fastapi import Request

from file_manager.config import Settings
from file_manager.storage import StorageGateway


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageGateway:
    return request.app.state.storage
