from __future__ import annotations

from fastapi import Request

from core.document_service import DocumentService
from core.settings import Settings
from core.storage import DocumentStore


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


__all__ = ["get_document_service", "get_settings_dep", "get_store"]
