import logging
from typing import Dict

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 120000

def parse_job_posting(html: str) -> Dict[str, str]:
    """Pull a title and the readable description text out of a posting page."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    heading = soup.select_one("h1") or soup.title
    title = " ".join(heading.get_text(" ", strip=True).split()) if heading else ""

    cont = soup.select_one("main, .content, #content, .job, article") or soup
    txt = cont.get_text(" ", strip=True)
    return {"title": title, "description": " ".join(txt.split())[:MAX_DESCRIPTION_CHARS]}

async def fetch_job_posting(url: str) -> Dict[str, str]:
    try:
        async with httpx.AsyncClient(timeout=30, follow_redirects=True) as client:
            r = await client.get(url)
            r.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Fetching job posting {url} failed: {e}")
        return {"title": "", "description": ""}
    return parse_job_posting(r.text)
