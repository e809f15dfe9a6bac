import asyncio
import logging
import uuid
from typing import Optional, Set

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from ..config import Settings, get_settings
from ..jobs import fetch_job_posting
from ..runners.optimization import run_optimization
from ..runners.progress_bus import PROGRESS_BUS
from ..schemas import ResumeIn, ResumeOut, StreamFrame
from ..storage import RESUME_STORE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploaded-resumes", tags=["optimization"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable proxy buffering
}

# Strong references so running jobs are not garbage collected
_RUNNING: Set[asyncio.Task] = set()

@router.post("", response_model=ResumeOut)
def upload_resume(body: ResumeIn):
    return RESUME_STORE.add(body)

@router.get("/{resume_id}", response_model=ResumeOut)
def get_resume(resume_id: int):
    resume = RESUME_STORE.get(resume_id)
    if not resume:
        raise HTTPException(404, "resume not found")
    return resume

@router.get("/{resume_id}/optimize")
async def optimize_resume(resume_id: int, jobUrl: Optional[str] = None,
                          settings: Settings = Depends(get_settings)):
    if not jobUrl or not jobUrl.strip():
        raise HTTPException(400, "jobUrl is required")

    job_key = uuid.uuid4().hex
    PROGRESS_BUS.open(job_key)
    task = None
    resume = RESUME_STORE.get(resume_id)
    if not resume:
        logger.warning(f"Optimization requested for unknown resume {resume_id}")
        await PROGRESS_BUS.emit(job_key, StreamFrame(step="error", error="Resume not found"))
    else:
        task = asyncio.create_task(
            run_optimization(job_key, resume, jobUrl, PROGRESS_BUS, fetch=fetch_job_posting)
        )
        _RUNNING.add(task)
        task.add_done_callback(_RUNNING.discard)

    return StreamingResponse(
        PROGRESS_BUS.stream(job_key, heartbeat_interval=settings.heartbeat_interval, runner=task),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
