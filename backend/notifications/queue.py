"""
In-process email job queue.

Responsibilities:
- Accept jobs from request handlers without blocking them (fire-and-forget).
- Drain jobs one at a time on a single asyncio worker task.
- Retry failed sends with linear backoff, then drop them for good.
- Pace outbound mail with a fixed pause between processed jobs.

Ordering: the queue is re-sorted by priority on every enqueue (lower number
drains first). ``list.sort`` is stable, so jobs of equal priority keep their
arrival order. A delayed or retried job waits at the tail and loses its
priority position until the next enqueue re-sorts the queue.

The queue lives for the whole process and is owned by the application's
composition root; nothing here is persisted. Jobs still waiting when the
process stops are lost, as are jobs that exhaust their attempts.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping

from ..orders.models import Order
from .config import DEFAULT_QUEUE_CONFIG, QueueConfig
from .jobs import (
    EmailPaymentType,
    Job,
    JobPayload,
    JobStatus,
    JobType,
    OrderConfirmationPayload,
    PasswordResetPayload,
    VerificationOtpPayload,
)

logger = logging.getLogger(__name__)

JobHandler = Callable[[JobPayload], Awaitable[object]]


class EmailQueue:
    def __init__(
        self,
        handlers: Mapping[JobType, JobHandler],
        config: QueueConfig = DEFAULT_QUEUE_CONFIG,
        autostart: bool = True,
    ) -> None:
        missing = set(JobType) - set(handlers)
        if missing:
            raise ValueError(f"No handler for job types: {sorted(t.value for t in missing)}")
        self._handlers = dict(handlers)
        self.max_attempts = config.max_attempts
        self.retry_delay_ms = config.retry_delay_ms
        self.pacing_ms = config.pacing_ms
        self.autostart = autostart

        self._jobs: list[Job] = []
        self._current: Job | None = None
        self._worker: asyncio.Task | None = None
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._wakeup = asyncio.Event()
        self.processing = False

    # ── Mutation entry points ────────────────────────────────────────────

    def enqueue(
        self,
        job_type: JobType,
        payload: JobPayload,
        *,
        priority: int = 5,
        max_attempts: int | None = None,
        delay: int = 0,
    ) -> str:
        """Queue a job and return its id immediately."""
        job = Job(
            type=job_type,
            payload=payload,
            priority=priority,
            max_attempts=max_attempts or self.max_attempts,
            delay=delay,
        )
        self._jobs.append(job)
        self._jobs.sort(key=lambda j: j.priority)
        logger.info("Email queued: %s for %s (id=%s)", job.type.value, job.recipient, job.id)

        self._wakeup.set()
        if self.autostart:
            self._ensure_worker()
        return job.id

    def clear(self) -> int:
        """Drop every queued job. A job already being sent is not interrupted."""
        dropped = len(self._jobs)
        self._jobs.clear()
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._wakeup.set()
        logger.info("Email queue cleared (%d jobs dropped)", dropped)
        return dropped

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def status(self) -> dict:
        queued = list(self._jobs)
        if self._current is not None:
            queued.append(self._current)
        counts = {s.value: 0 for s in JobStatus}
        for job in queued:
            counts[job.status.value] += 1
        return {
            "queue_length": len(self._jobs),
            "active": self.processing,
            "waiting": counts["waiting"],
            "processing": counts["processing"],
            "retrying": counts["retrying"],
            "failed": counts["failed"],
        }

    # ── Worker ───────────────────────────────────────────────────────────

    def _ensure_worker(self) -> None:
        if self.processing or not self._jobs:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; %d jobs wait for drain()", len(self._jobs))
            return
        self.processing = True
        self._wakeup = asyncio.Event()
        self._worker = loop.create_task(self._process_queue())

    async def drain(self) -> None:
        """Run the worker (if needed) and wait until the queue is empty."""
        self._ensure_worker()
        while self._worker is not None:
            await self._worker

    async def shutdown(self) -> None:
        """Stop the worker and timers; queued jobs are abandoned."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        worker, self._worker = self._worker, None
        if worker is not None and not worker.done():
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
        self.processing = False
        if self._jobs:
            logger.warning("Email queue stopped with %d unsent jobs", len(self._jobs))

    async def _process_queue(self) -> None:
        logger.info("Processing email queue (%d emails pending)", len(self._jobs))
        try:
            while self._jobs:
                job = self._jobs.pop(0)

                if job.delay > 0:
                    self._schedule_release(job)
                    self._jobs.append(job)
                    if all(j.delay > 0 for j in self._jobs):
                        # Nothing is eligible; sleep until a timer or enqueue wakes us.
                        for waiting in self._jobs:
                            self._schedule_release(waiting)
                        self._wakeup.clear()
                        await self._wakeup.wait()
                    continue

                await self._run(job)
                await asyncio.sleep(self.pacing_ms / 1000)
        finally:
            self.processing = False
            self._worker = None
        logger.info("Email queue processing completed")

    def _schedule_release(self, job: Job) -> None:
        if job.id in self._timers:
            return
        loop = asyncio.get_running_loop()
        self._timers[job.id] = loop.call_later(job.delay / 1000, self._release, job)

    def _release(self, job: Job) -> None:
        self._timers.pop(job.id, None)
        job.delay = 0
        self._wakeup.set()

    async def _run(self, job: Job) -> None:
        self._current = job
        job.status = JobStatus.processing
        job.attempts += 1
        try:
            await self._handlers[job.type](job.payload)
        except Exception as exc:
            job.status = JobStatus.failed
            logger.error(
                "Email failed: %s (attempt %d/%d): %s",
                job.type.value, job.attempts, job.max_attempts, exc,
            )
            if job.attempts < job.max_attempts:
                job.status = JobStatus.retrying
                job.delay = self.retry_delay_ms * job.attempts
                self._jobs.append(job)
                logger.info("Retrying email in %dms: %s (id=%s)", job.delay, job.type.value, job.id)
            else:
                logger.error(
                    "Email permanently failed after %d attempts: %s to %s (id=%s)",
                    job.max_attempts, job.type.value, job.recipient, job.id,
                )
        else:
            job.status = JobStatus.completed
            logger.info("Email sent successfully: %s (id=%s)", job.type.value, job.id)
        finally:
            self._current = None


# ── Enqueue helpers used by the business flows ───────────────────────────


def queue_order_confirmation_email(
    queue: EmailQueue,
    email: str,
    name: str,
    order: Order,
    payment_type: EmailPaymentType,
) -> str:
    payload = OrderConfirmationPayload(
        email=email, name=name, order=order.model_copy(deep=True), payment_type=payment_type,
    )
    return queue.enqueue(JobType.order_confirmation, payload, priority=1, max_attempts=3)


def queue_password_reset_email(queue: EmailQueue, email: str, reset_token: str) -> str:
    payload = PasswordResetPayload(email=email, reset_token=reset_token)
    return queue.enqueue(JobType.password_reset, payload, priority=2, max_attempts=3)


def queue_verification_otp(queue: EmailQueue, email: str, name: str, otp_code: str) -> str:
    payload = VerificationOtpPayload(email=email, name=name, otp_code=otp_code)
    return queue.enqueue(JobType.verification_otp, payload, priority=2, max_attempts=3)
