"""Fake email adapter that records sent emails for tests and local runs."""
from __future__ import annotations

from uuid import uuid4

from .transport import EmailPort


class FakeEmailAdapter(EmailPort):
    def __init__(self) -> None:
        self.sent_emails: list[dict] = []
        self.attempts = 0
        self.should_succeed = True
        self.fail_times = 0
        self.failure_reason = "Email delivery failed"

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Email delivery failed",
        fail_times: int = 0,
    ) -> None:
        """``fail_times`` makes the next N sends fail before succeeding again."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_times = fail_times

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        self.attempts += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            return {"message_id": None, "status": "failed", "error": self.failure_reason}
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {
                "message_id": message_id,
                "to": to,
                "subject": subject,
                "body": body,
                "html_body": html_body,
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self) -> None:
        self.sent_emails.clear()
        self.attempts = 0
        self.should_succeed = True
        self.fail_times = 0
        self.failure_reason = "Email delivery failed"
