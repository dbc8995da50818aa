"""HTTP helpers: fetching pages and downloading resources referenced by field values."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urljoin, urlparse

import requests

from html_entity_parser.logger import get_module_logger

logger = get_module_logger("download")

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def resolve_url(url: str, base_url: Optional[str]) -> str:
    if base_url and not urlparse(url).scheme:
        return urljoin(base_url, url)
    return url


def fetch_html(url: str, *, timeout: float = 60.0, session: Optional[requests.Session] = None) -> str:
    """GET a page and return its decoded text; HTTP errors raise `requests.HTTPError`."""
    getter = session.get if session is not None else requests.get
    resp = getter(url, headers=DEFAULT_HEADERS, timeout=timeout, allow_redirects=True)
    resp.raise_for_status()
    logger.debug("Fetched %s (%d bytes)", url, len(resp.content))
    return resp.text


def filename_from_url(url: str) -> str:
    """Last path segment of the URL, or a stable hash when it has none."""
    name = unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1])
    name = re.sub(r"[^a-zA-Z0-9._-]", "_", name)
    if not name or name in (".", ".."):
        return hashlib.sha256(url.encode()).hexdigest()[:16]
    return name


class ResourceDownloader:
    """
    Default handler of `download()` fields: saves the resource under
    `directory` and returns the path of the written file as a string.
    """

    def __init__(
        self,
        directory: Path,
        *,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.directory = Path(directory)
        self.base_url = base_url
        self.timeout = timeout
        self.session = session

    def __call__(self, url: str) -> str:
        url = resolve_url(url, self.base_url)
        getter = self.session.get if self.session is not None else requests.get
        resp = getter(url, headers=DEFAULT_HEADERS, timeout=self.timeout, allow_redirects=True)
        resp.raise_for_status()

        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / filename_from_url(url)
        target.write_bytes(resp.content)
        logger.info("Downloaded %s -> %s (%d bytes)", url, target, len(resp.content))
        return str(target)
