"""Follow a long-running optimization job over its event stream.

A ``StreamingJobTracker`` opens the job's channel, relays every progress
frame to the caller's sink in arrival order and settles exactly once: with the
``result`` of a ``complete`` frame, or with one of the ``TrackingError``
subclasses. Transport failures are retried with linear backoff; an absolute
deadline bounds the whole job regardless of reconnects.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from ..config import Settings, get_settings
from ..schemas import JobRequest, ProgressEvent, StreamFrame, TerminalResult
from .errors import (
    CancelledTrackingError,
    ProtocolError,
    RetriesExhaustedError,
    ServerReportedError,
    TrackingTimeoutError,
    TransportError,
)
from .transport import Channel, HttpxTransport, Transport, build_job_url

COMPLETE_STEP = "complete"
ERROR_STEP = "error"

ProgressSink = Callable[[ProgressEvent], None]
Sleep = Callable[[float], Awaitable[None]]


class TrackerState(str, enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    timeout: float = 120.0  # seconds, for the whole job

    def delay_for(self, attempt: int) -> float:
        """Linear backoff: attempt n (1-indexed) waits n * base_delay."""
        return self.base_delay * attempt

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.retry_delay,
            timeout=settings.timeout,
        )


class StreamingJobTracker:
    def __init__(
        self,
        request: JobRequest,
        on_progress: ProgressSink,
        *,
        transport: Transport,
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
        url: Optional[str] = None,
    ):
        self.request = request
        self.url = url or build_job_url(request.subject_id, request.target_reference)
        self.policy = policy or RetryPolicy()
        self.state = TrackerState.CONNECTING
        self.attempts = 0
        self.outcome: Optional[TerminalResult] = None
        self.logger = logger or logging.getLogger(__name__)

        self._on_progress = on_progress
        self._transport = transport
        self._sleep = sleep
        self._channel: Optional[Channel] = None
        self._future: Optional[asyncio.Future] = None
        self._error: Optional[BaseException] = None
        self._timer: Optional[asyncio.Task] = None
        self._worker: Optional[asyncio.Task] = None
        self._started = False

    @property
    def done(self) -> bool:
        return self.outcome is not None

    async def run(self) -> Any:
        """Track the job until it ends. Returns the ``complete`` frame's result."""
        if self._started:
            raise RuntimeError("a tracker can only be run once")
        self._started = True

        if self._error is not None:
            # cancelled before it ever started
            raise self._error

        self._future = asyncio.get_running_loop().create_future()
        self.logger.info(f"Tracking job stream {self.url}")
        self._timer = asyncio.create_task(self._expire())
        self._worker = asyncio.create_task(self._drive())
        try:
            return await self._future
        except asyncio.CancelledError:
            self._settle(error=CancelledTrackingError("Tracking cancelled: waiting task was cancelled"))
            raise
        finally:
            await self._shutdown()

    def cancel(self, reason: str = "cancelled by caller") -> bool:
        """Abandon the job. Returns False if it had already settled.

        The pending result is rejected right away. The open channel is closed
        by the worker task as it unwinds from the cancellation, which always
        happens before ``run()`` returns control to its caller.
        """
        settled = self._settle(error=CancelledTrackingError(f"Tracking cancelled: {reason}"))
        if settled:
            self.logger.info(f"Stopped tracking {self.url}: {reason}")
        return settled

    # -- settlement --

    def _settle(self, *, result: Any = None, error: Optional[BaseException] = None) -> bool:
        if self.outcome is not None:
            return False
        self.state = TrackerState.TERMINATED
        if error is None:
            self.outcome = TerminalResult.success(result)
        else:
            self.outcome = TerminalResult.failure(str(error))
            self._error = error

        if self._future is not None and not self._future.done():
            if error is None:
                self._future.set_result(result)
            else:
                self._future.set_exception(error)

        for task in (self._timer, self._worker):
            if task is not None and not task.done() and task is not asyncio.current_task():
                task.cancel()
        return True

    async def _shutdown(self) -> None:
        # _settle has already cancelled whichever task did not settle;
        # the one that did is left to finish closing the channel.
        tasks = [t for t in (self._timer, self._worker) if t is not None]
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _close_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            await self._transport.close(channel)

    # -- timers --

    async def _expire(self) -> None:
        await self._sleep(self.policy.timeout)
        self.logger.error(f"Job stream {self.url} timed out after {self.policy.timeout:g}s")
        self._settle(error=TrackingTimeoutError(
            f"Connection timeout: no result after {self.policy.timeout:g}s"
        ))

    # -- channel --

    async def _drive(self) -> None:
        try:
            while self.outcome is None:
                self.state = TrackerState.CONNECTING
                try:
                    await self._listen()
                except TransportError as e:
                    await self._close_channel()
                    if self.outcome is not None:
                        return
                    self.logger.warning(f"Job stream error: {e}")
                    if self.attempts >= self.policy.max_retries:
                        self.logger.error(f"Max retries reached for {self.url}, giving up")
                        self._settle(error=RetriesExhaustedError(
                            "Failed to connect to optimization service: "
                            f"exhausted retries after {self.policy.max_retries} attempts ({e})"
                        ))
                        return
                    self.attempts += 1
                    delay = self.policy.delay_for(self.attempts)
                    self.state = TrackerState.RECONNECTING
                    self.logger.info(
                        f"Retrying ({self.attempts}/{self.policy.max_retries}) in {delay:g}s..."
                    )
                    await self._sleep(delay)
        except Exception as e:
            # Errors raised by the progress sink end up here
            self._settle(error=e)
        finally:
            await self._close_channel()

    async def _listen(self) -> None:
        self._channel = await self._transport.open(self.url)
        self.state = TrackerState.OPEN
        self.attempts = 0
        self.logger.debug(f"Job stream {self.url} open")

        async for data in self._channel:
            if await self._dispatch(data) or self.outcome is not None:
                return
        raise TransportError("stream closed before the job finished")

    async def _dispatch(self, data: str) -> bool:
        """Handle one message. Returns True once the job has settled."""
        try:
            frame = StreamFrame.model_validate_json(data)
        except ValidationError as e:
            self.logger.error(f"Error parsing job stream message: {data[:200]!r}")
            self._settle(error=ProtocolError(f"Could not parse job stream message (parse error): {e}"))
            await self._close_channel()
            return True

        if frame.step is None:
            if frame.type == "heartbeat":
                self.logger.debug("Job stream heartbeat")
                return False
            self._settle(error=ProtocolError(
                f"Could not parse job stream message (parse error): no step in {data[:200]!r}"
            ))
            await self._close_channel()
            return True

        if frame.step == COMPLETE_STEP:
            self.logger.info(f"Optimization complete, closing {self.url}")
            self._settle(result=frame.result)
            await self._close_channel()
            return True

        if frame.step == ERROR_STEP:
            message = str(frame.error) if frame.error else "Unknown error occurred"
            self.logger.error(f"Server reported error: {message}")
            self._settle(error=ServerReportedError(message))
            await self._close_channel()
            return True

        self._on_progress(ProgressEvent(step=frame.step, status=frame.status, details=frame.details))
        return False


async def track(
    request: JobRequest,
    on_progress: ProgressSink,
    *,
    transport: Optional[Transport] = None,
    settings: Optional[Settings] = None,
    **kwargs,
) -> Any:
    """Track one job to completion.

    Without an explicit ``transport`` an ``HttpxTransport`` is opened against
    ``settings.base_url`` for the duration of the call.
    """
    settings = settings or get_settings()
    kwargs.setdefault("policy", settings.retry_policy())
    if transport is not None:
        return await StreamingJobTracker(request, on_progress, transport=transport, **kwargs).run()
    async with HttpxTransport(settings.base_url) as owned:
        return await StreamingJobTracker(request, on_progress, transport=owned, **kwargs).run()
