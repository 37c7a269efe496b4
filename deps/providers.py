import os

from corpus import CorpusLookup, HttpCorpusLookup
from llm import DEFAULT_BASE_URL, DEFAULT_MODEL, GeminiClient
from store import SessionStore

# Load once at module import
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL)
REFERENCE_URLS = [u.strip() for u in os.getenv("REFERENCE_URLS", "").split(",") if u.strip()]


def get_llm() -> GeminiClient:
    return GeminiClient(api_key=GOOGLE_API_KEY, model=GEMINI_MODEL, base_url=GEMINI_BASE_URL)


def get_store() -> SessionStore:
    return SessionStore()


def get_corpus() -> CorpusLookup | None:
    """
    Reference lookup is optional. Without configured URLs there is nothing to
    look up, so no collaborator is handed out.
    """
    if not REFERENCE_URLS:
        return None
    return HttpCorpusLookup()


def get_reference_urls() -> list[str]:
    return REFERENCE_URLS
