from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth.dependencies import require_admin
from ..dependencies import get_email_queue
from .queue import EmailQueue

router = APIRouter(prefix="/admin/email-queue", tags=["admin"])


@router.get("/status")
def queue_status(
    queue: EmailQueue = Depends(get_email_queue),
    admin: dict = Depends(require_admin),
) -> dict:
    status = queue.status()
    return {
        "success": True,
        "queueLength": status["queue_length"],
        "active": status["active"],
        "counts": {
            "waiting": status["waiting"],
            "processing": status["processing"],
            "retrying": status["retrying"],
            "failed": status["failed"],
        },
    }


@router.post("/clear")
def clear_queue(
    queue: EmailQueue = Depends(get_email_queue),
    admin: dict = Depends(require_admin),
) -> dict:
    dropped = queue.clear()
    return {"success": True, "message": "Email queue cleared", "cleared": dropped}
