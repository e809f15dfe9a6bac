import asyncio
import json
import time
from typing import Any, AsyncGenerator, Dict, Optional, Union

from pydantic import BaseModel

from ..schemas import StreamFrame

TERMINAL_STEPS = {"complete", "error"}

Frame = Union[StreamFrame, Dict[str, Any]]

def encode_frame(frame: Frame) -> bytes:
    payload = frame.model_dump(exclude_none=True) if isinstance(frame, BaseModel) else frame
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")

def heartbeat_frame() -> StreamFrame:
    return StreamFrame(type="heartbeat", timestamp=int(time.time() * 1000))

class ProgressBus:
    """Per-job queues bridging the optimization runner and its SSE response.

    A job must be registered with ``open()`` before frames for it are kept.
    Once its stream ends the job is forgotten and later frames are dropped.
    """

    def __init__(self):
        self._queues: Dict[str, "asyncio.Queue[Frame]"] = {}

    def open(self, job_key: str) -> "asyncio.Queue[Frame]":
        if job_key not in self._queues:
            self._queues[job_key] = asyncio.Queue()
        return self._queues[job_key]

    def __contains__(self, job_key: str) -> bool:
        return job_key in self._queues

    async def emit(self, job_key: str, frame: Frame):
        q = self._queues.get(job_key)
        if q is None:
            return
        await q.put(frame)

    def discard(self, job_key: str):
        self._queues.pop(job_key, None)

    async def stream(self, job_key: str, heartbeat_interval: Optional[float] = None,
                     runner: Optional["asyncio.Task[Any]"] = None) -> AsyncGenerator[bytes, None]:
        """Encoded frames for one job, ending after its terminal frame.

        While the job is quiet a heartbeat frame goes out every
        ``heartbeat_interval`` seconds so proxies keep the connection open.
        If the stream ends early (client gone) ``runner`` is cancelled.
        """
        q = self.open(job_key)
        try:
            while True:
                try:
                    frame = await asyncio.wait_for(q.get(), timeout=heartbeat_interval)
                except asyncio.TimeoutError:
                    yield encode_frame(heartbeat_frame())
                    continue
                yield encode_frame(frame)
                step = frame.step if isinstance(frame, StreamFrame) else frame.get("step")
                if step in TERMINAL_STEPS:
                    return
        finally:
            self.discard(job_key)
            if runner is not None and not runner.done():
                runner.cancel()

PROGRESS_BUS = ProgressBus()
