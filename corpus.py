from __future__ import annotations

import logging
from typing import Protocol, Sequence

import httpx

logger = logging.getLogger(__name__)

CONTEXT_LIMIT = 5000
TRUNCATION_MARKER = " [CONTEXT TRUNCATED]"
CONTEXT_UNAVAILABLE = "Reference context could not be loaded."
CONTEXT_ERROR = "Reference context could not be loaded due to an unexpected error."


class CorpusLookup(Protocol):
    async def lookup(self, urls: Sequence[str]) -> str | None: ...


class HttpCorpusLookup:
    """Fetches reference documents over plain HTTP and joins their text."""

    def __init__(self, http_client: httpx.AsyncClient | None = None, timeout: float = 10.0):
        self._http_client = http_client
        self._timeout = timeout

    async def lookup(self, urls: Sequence[str]) -> str | None:
        if self._http_client is not None:
            return await self._fetch_all(self._http_client, urls)
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            return await self._fetch_all(client, urls)

    async def _fetch_all(self, client: httpx.AsyncClient, urls: Sequence[str]) -> str | None:
        chunks: list[str] = []
        for url in urls:
            r = await client.get(url)
            r.raise_for_status()
            if r.text.strip():
                chunks.append(r.text.strip())
        return "\n\n".join(chunks) or None


def truncate_context(text: str, limit: int = CONTEXT_LIMIT) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


async def fetch_reference_context(
    corpus: CorpusLookup | None, urls: Sequence[str]
) -> str:
    """
    Best-effort prompt enrichment. Never raises:
      - no collaborator / no URLs  -> ""
      - nothing returned           -> placeholder text
      - lookup blew up             -> placeholder text (logged)
    """
    if corpus is None or not urls:
        return ""
    try:
        content = await corpus.lookup(urls)
    except Exception:
        logger.exception("Reference lookup failed for %s", list(urls))
        return CONTEXT_ERROR

    if not content:
        logger.warning("Reference lookup returned no content.")
        return CONTEXT_UNAVAILABLE

    context = truncate_context(content)
    logger.info("Reference context retrieved (length: %d)", len(context))
    return context
