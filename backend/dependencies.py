"""FastAPI dependencies resolving the collaborators built by ``create_app``."""
from __future__ import annotations

from fastapi import Request

from .notifications.queue import EmailQueue
from .payments.service import PaymentService
from .storage.document_store import DocumentStore
from .storage.object_store import ObjectStore


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def get_email_queue(request: Request) -> EmailQueue:
    return request.app.state.email_queue


def get_payment_service(request: Request) -> PaymentService:
    return request.app.state.payment_service
