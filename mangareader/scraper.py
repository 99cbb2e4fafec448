"""
One-off image scraper.

Fetches a page, collects the `src` of every element matching a CSS selector,
names the batch after the first <h2> on the page and downloads the images
into a fresh throwaway folder (`<name>-<random>`) that is removed again
after a fixed delay, whether or not every download succeeded.
"""
from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from mangareader.utils.slug import slugify

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 15.0
DEFAULT_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; mangareader-scraper/1.0)"}
FALLBACK_NAME = "scrape"

# Strong references so pending cleanup tasks are not garbage collected.
_cleanup_tasks: Set[asyncio.Task] = set()


@dataclass
class ScrapeOutcome:
    folder: Path
    files: List[Path]


def parse_page(html: str, base_url: str, selector: str = "img") -> tuple[List[str], str]:
    """Return (absolute image URLs, slug for the batch)."""
    soup = BeautifulSoup(html, "html.parser")

    image_urls: List[str] = []
    for element in soup.select(selector):
        src = element.get("src")
        if src and src.strip():
            image_urls.append(urljoin(base_url, src.strip()))

    heading = soup.find("h2")
    name = slugify(heading.get_text(" ", strip=True)) if heading else ""
    return image_urls, name or FALLBACK_NAME


async def download_image(client: httpx.AsyncClient, url: str, target: Path) -> None:
    async with client.stream("GET", url) as response:
        response.raise_for_status()
        with target.open("wb") as fh:
            async for chunk in response.aiter_bytes():
                fh.write(chunk)


async def remove_folder_later(folder: Path, delay: float) -> None:
    await asyncio.sleep(delay)
    try:
        shutil.rmtree(folder)
        logger.info("Deleted folder %s", folder)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to delete scrape folder %s: %s", folder, e)


def schedule_cleanup(folder: Path, delay: float) -> asyncio.Task:
    """Detached timer; not cancelled on shutdown."""
    task = asyncio.create_task(remove_folder_later(folder, delay))
    _cleanup_tasks.add(task)
    task.add_done_callback(_cleanup_tasks.discard)
    return task


async def scrape_images(
    url: str,
    root: Path,
    selector: str = "img",
    cleanup_after: Optional[float] = 60,
    client: Optional[httpx.AsyncClient] = None,
) -> ScrapeOutcome:
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            headers=DEFAULT_HEADERS, follow_redirects=True, timeout=FETCH_TIMEOUT
        )
    try:
        page = await client.get(url)
        page.raise_for_status()
        image_urls, name = parse_page(page.text, str(page.url), selector)

        Path(root).mkdir(parents=True, exist_ok=True)
        # unique per run; each timer removes only its own folder
        folder = Path(tempfile.mkdtemp(prefix=f"{name}-", dir=root))

        files: List[Path] = []
        try:
            for i, image_url in enumerate(image_urls):
                target = folder / f"{name}-{i}-{uuid.uuid4()}.webp"
                await download_image(client, image_url, target)
                files.append(target)
                logger.info("Downloaded %s", target.name)
        finally:
            if cleanup_after is not None:
                schedule_cleanup(folder, cleanup_after)
    finally:
        if owns_client:
            await client.aclose()

    return ScrapeOutcome(folder=folder, files=files)
