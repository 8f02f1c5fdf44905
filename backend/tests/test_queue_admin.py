from __future__ import annotations

from backend.notifications.queue import queue_password_reset_email


def test_queue_status_requires_admin(client, login):
    assert client.get("/admin/email-queue/status").status_code == 401
    login()
    assert client.get("/admin/email-queue/status").status_code == 403
    assert client.post("/admin/email-queue/clear").status_code == 403


def test_queue_status(client, login, email_queue):
    queue_password_reset_email(email_queue, "a@example.com", "tok-a")
    queue_password_reset_email(email_queue, "b@example.com", "tok-b")
    login("admin")

    resp = client.get("/admin/email-queue/status")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "queueLength": 2,
        "active": False,
        "counts": {"waiting": 2, "processing": 0, "retrying": 0, "failed": 0},
    }


def test_clear_queue(client, login, email_queue, email_transport):
    queue_password_reset_email(email_queue, "a@example.com", "tok-a")
    login("admin")

    body = client.post("/admin/email-queue/clear").json()
    assert body["success"] is True
    assert body["cleared"] == 1
    assert len(email_queue) == 0
    assert client.get("/admin/email-queue/status").json()["queueLength"] == 0
    assert email_transport.sent_emails == []
