import logging
from pathlib import Path

import httpx
from fastapi import APIRouter, Depends, HTTPException

from mangareader.config import Settings, get_settings
from mangareader.deps.admin import require_user
from mangareader.schemas.tool_schemas import ScrapeRequest, ScrapeResult
from mangareader.scraper import scrape_images
from mangareader.utils.token_utils import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tool", tags=["tools"])


@router.post("/scrape", response_model=ScrapeResult)
async def scraping_images(
    payload: ScrapeRequest,
    identity: Identity = Depends(require_user),
    settings: Settings = Depends(get_settings),
):
    try:
        outcome = await scrape_images(
            str(payload.url),
            Path(settings.scrape_path),
            selector=payload.selector,
            cleanup_after=settings.scrape_cleanup_seconds,
        )
    except httpx.HTTPError as e:
        logger.warning("Scrape of %s failed: %s", payload.url, e)
        raise HTTPException(status_code=502, detail=f"Scraping failed: {e}")

    return ScrapeResult(message="success", folder=outcome.folder.name, count=len(outcome.files))
