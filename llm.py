from __future__ import annotations

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-preview-05-20"

FieldKind = Literal["string", "number", "string_array"]
Sleep = Callable[[float], Awaitable[Any]]

_SCHEMA_TYPES = {"string": "STRING", "number": "NUMBER"}


class GenerationError(RuntimeError):
    """Raised when every attempt against the generative API failed."""


class PayloadError(ValueError):
    """The model answered, but not with the declared shape."""


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    description: str = ""
    # arrays only: reject []
    non_empty: bool = False


@dataclass(frozen=True)
class ResponseShape:
    fields: tuple[FieldSpec, ...]

    def to_schema(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for f in self.fields:
            if f.kind == "string_array":
                prop: dict[str, Any] = {"type": "ARRAY", "items": {"type": "STRING"}}
            else:
                prop = {"type": _SCHEMA_TYPES[f.kind]}
            if f.description:
                prop["description"] = f.description
            properties[f.name] = prop
        return {
            "type": "OBJECT",
            "properties": properties,
            "required": [f.name for f in self.fields],
            "propertyOrdering": [f.name for f in self.fields],
        }

    def validate(self, payload: Any) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise PayloadError("Expected a JSON object.")
        out: dict[str, Any] = {}
        for f in self.fields:
            if f.name not in payload:
                raise PayloadError(f"Missing field: {f.name}")
            value = payload[f.name]
            if not _matches(f.kind, value):
                raise PayloadError(f"Field {f.name} is not a valid {f.kind}.")
            if f.non_empty and not value:
                raise PayloadError(f"Field {f.name} is empty.")
            out[f.name] = value
        return out


def _matches(kind: FieldKind, value: Any) -> bool:
    if kind == "string":
        return isinstance(value, str)
    if kind == "number":
        # bool is an int subclass; JSON true is not a number here
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        try:
            return math.isfinite(value)
        except OverflowError:
            # ints past float range, e.g. a 400-digit answer
            return False
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


class Generator(Protocol):
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        shape: ResponseShape,
        max_attempts: int = ...,
    ) -> dict[str, Any]: ...


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed attempt number `attempt` (0-based)."""
    return float(2**attempt)


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._sleep = sleep

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(
        self, system_prompt: str, user_prompt: str, shape: ResponseShape
    ) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": user_prompt}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": shape.to_schema(),
            },
        }

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        shape: ResponseShape,
        max_attempts: int = 5,
    ) -> dict[str, Any]:
        payload = self.build_payload(system_prompt, user_prompt, shape)

        if self._http_client is not None:
            return await self._run(self._http_client, payload, shape, max_attempts)
        # no timeout: the retry budget is the only bound
        async with httpx.AsyncClient(timeout=None) as client:
            return await self._run(client, payload, shape, max_attempts)

    async def _run(
        self,
        client: httpx.AsyncClient,
        payload: dict[str, Any],
        shape: ResponseShape,
        max_attempts: int,
    ) -> dict[str, Any]:
        last_error: Exception | None = None
        for attempt in range(max_attempts):
            try:
                return await self._attempt(client, payload, shape)
            except (httpx.HTTPError, ValueError) as e:  # PayloadError is a ValueError
                last_error = e
                logger.warning("Gemini attempt %d/%d failed: %s", attempt + 1, max_attempts, e)
                if attempt == max_attempts - 1:
                    break
                await self._sleep(backoff_delay(attempt))

        raise GenerationError(
            f"Generative API failed after {max_attempts} attempts."
        ) from last_error

    async def _attempt(
        self, client: httpx.AsyncClient, payload: dict[str, Any], shape: ResponseShape
    ) -> dict[str, Any]:
        resp = await client.post(
            self.url,
            params={"key": self.api_key},
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        resp.raise_for_status()

        text = _candidate_text(resp.json())
        if not text:
            raise PayloadError("Gemini response was empty or malformed.")
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise PayloadError(f"Gemini did not return valid JSON: {text[:200]}") from e
        return shape.validate(parsed)


def _candidate_text(body: Any) -> str | None:
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text.strip() else None
