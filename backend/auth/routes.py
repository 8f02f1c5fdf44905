from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from ..dependencies import get_email_queue, get_store
from ..notifications.queue import EmailQueue, queue_password_reset_email, queue_verification_otp
from ..storage.document_store import DocumentStore
from . import users
from .dependencies import require_user
from .models import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    PublicUser,
    RegisterRequest,
    ResetPasswordRequest,
    User,
    VerifyEmailRequest,
)
from .rate_limit import rate_limited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
password_router = APIRouter(prefix="/password", tags=["auth"])


def _send_otp(queue: EmailQueue, store: DocumentStore, user: User) -> None:
    try:
        otp = users.issue_verification_otp(store, user)
        queue_verification_otp(queue, user.email, user.name, otp)
    except Exception:
        logger.exception("Could not queue verification code for user %s", user.id)


@router.post("/register", status_code=201, dependencies=[Depends(rate_limited("register"))])
async def register(
    body: RegisterRequest,
    request: Request,
    store: DocumentStore = Depends(get_store),
    queue: EmailQueue = Depends(get_email_queue),
) -> dict:
    user = await run_in_threadpool(users.register, store, body)
    _send_otp(queue, store, user)
    request.session["user"] = user.session_payload()
    return {"status": "ok", "user": PublicUser.of(user).model_dump(by_alias=True)}


@router.post("/login", dependencies=[Depends(rate_limited("login"))])
async def login(
    body: LoginRequest,
    request: Request,
    store: DocumentStore = Depends(get_store),
) -> dict:
    user = await run_in_threadpool(users.authenticate, store, body.email, body.password)
    request.session["user"] = user.session_payload()
    return {"status": "ok", "user": PublicUser.of(user).model_dump(by_alias=True)}


@router.post("/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@router.get("/me", response_model=PublicUser)
def auth_me(
    current: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> PublicUser:
    return PublicUser.of(users.get_user(store, current["id"]))


@router.post("/verify-email/send")
async def send_verification_email(
    current: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
    queue: EmailQueue = Depends(get_email_queue),
) -> dict:
    user = users.get_user(store, current["id"])
    otp = users.issue_verification_otp(store, user)
    try:
        queue_verification_otp(queue, user.email, user.name, otp)
    except Exception:
        logger.exception("Could not queue verification code for user %s", user.id)
    return {"status": "ok", "message": "Verification code sent"}


@router.post("/verify-email")
def verify_email(
    body: VerifyEmailRequest,
    current: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    user = users.verify_email(store, users.get_user(store, current["id"]), body.otp)
    return {"status": "ok", "user": PublicUser.of(user).model_dump(by_alias=True)}


# ── Password management ──────────────────────────────────────────────────


@password_router.patch("/change")
async def change_password(
    body: ChangePasswordRequest,
    current: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    user = users.get_user(store, current["id"])
    await run_in_threadpool(
        users.change_password, store, user, body.current_password, body.password
    )
    return {"status": "ok", "message": "Password updated"}


@password_router.post("/forgot", dependencies=[Depends(rate_limited("forgot-password"))])
async def forgot_password(
    body: ForgotPasswordRequest,
    store: DocumentStore = Depends(get_store),
    queue: EmailQueue = Depends(get_email_queue),
) -> dict:
    user, token = users.issue_reset_token(store, body.email)
    try:
        queue_password_reset_email(queue, user.email, token)
    except Exception:
        logger.exception("Could not queue password reset for user %s", user.id)
    return {"status": "ok", "message": "Password reset link sent to your email"}


@password_router.post("/reset/{token}")
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    store: DocumentStore = Depends(get_store),
) -> dict:
    await run_in_threadpool(users.reset_password, store, token, body.password)
    return {"status": "ok", "message": "Password has been reset"}
