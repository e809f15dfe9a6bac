import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..jobs import fetch_job_posting
from ..schemas import ResumeOut, StreamFrame
from ..tailor import (
    draft_cover_letter,
    extract_keywords,
    make_diff_html,
    match_score,
    missing_keywords,
    optimize_resume_text,
)
from .progress_bus import ProgressBus

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[Dict[str, str]]]

STEPS = ["fetching_job", "analyzing_description", "optimizing_resume", "generating_cover_letter"]

class OptimizationError(Exception):
    def __init__(self, message: str, step: str):
        super().__init__(message)
        self.step = step

async def run_optimization(
    job_key: str,
    resume: ResumeOut,
    job_url: str,
    bus: ProgressBus,
    fetch: Fetcher = fetch_job_posting,
):
    """Optimize one resume for one posting, reporting each step on ``bus``.

    Always ends the job's stream with exactly one ``complete`` or ``error``
    frame.
    """
    async def progress(step: str, status: str, details: Optional[Dict[str, Any]] = None):
        details = {"index": STEPS.index(step) + 1, "total": len(STEPS), **(details or {})}
        await bus.emit(job_key, StreamFrame(step=step, status=status, details=details))

    try:
        await progress("fetching_job", "Fetching job posting", {"url": job_url})
        posting = await fetch(job_url)
        description = posting.get("description", "")
        if not description:
            raise OptimizationError("Could not read a job description from the posting", step="fetching_job")

        await progress("analyzing_description", "Extracting key requirements", {"title": posting.get("title", "")})
        keywords = extract_keywords(description, top_k=15)
        missing = missing_keywords(resume.content, keywords)

        await progress("optimizing_resume", "Optimizing resume", {"keywords": keywords, "missing": missing})
        optimized = optimize_resume_text(resume.content, keywords)
        metrics = {
            "before": match_score(resume.content, keywords),
            "after": match_score(optimized, keywords),
        }

        await progress("generating_cover_letter", "Drafting cover letter", {"metrics": metrics})
        cover_letter = draft_cover_letter(resume.content, keywords, job_title=posting.get("title") or None)

        result = {
            "resumeId": resume.id,
            "jobUrl": job_url,
            "jobTitle": posting.get("title", ""),
            "keywords": keywords,
            "missingKeywords": missing,
            "optimizedContent": optimized,
            "diffHtml": make_diff_html(resume.content, keywords),
            "coverLetter": cover_letter,
            "metrics": metrics,
        }
        await bus.emit(job_key, StreamFrame(step="complete", status="Optimization complete", result=result))
        logger.info(f"Optimization {job_key} complete for resume {resume.id}")
    except Exception as e:
        step = getattr(e, "step", "unknown")
        logger.error(f"Optimization {job_key} failed in {step} step: {e}")
        await bus.emit(job_key, StreamFrame(step="error", error=str(e) or "Optimization failed",
                                            details={"failedStep": step}))
