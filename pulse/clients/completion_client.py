# pulse/clients/completion_client.py
#
# Single integration layer for the chat-completions service.
# - Endpoint, key, model and temperature come from the store on every call.
# - One HTTP attempt per call: the trigger guard's cooldown is the retry policy.
# - Observability without leaking secrets.

import random
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
import openai
from openai import AsyncOpenAI

from pulse.memory.models import CompletionConfig
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"


class CompletionConfigError(RuntimeError):
    """Endpoint or key missing/invalid; raised before any network call."""


class CompletionServiceError(RuntimeError):
    """Non-success status, transport failure, or malformed success body."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# URL normalization
# ---------------------------------------------------------------------------

def strip_outer_quotes(s: str) -> str:
    """
    Safeguard: users sometimes store config JSON-encoded ("https://...").
    This removes a single pair of matching outer quotes.
    """
    s2 = (s or "").strip()
    if len(s2) >= 2 and ((s2[0] == s2[-1]) and s2[0] in ("'", '"')):
        return s2[1:-1].strip()
    return s2


def split_endpoint(raw: Optional[str]) -> Tuple[str, Dict[str, str]]:
    """
    Split a configured endpoint into (base, query).

    `base` is what the SDK appends /chat/completions to; it accepts both a
    base (https://host/v1) and a full endpoint
    (https://host/v1/chat/completions). Query parameters such as
    ?api-version=... are returned separately so they ride on every request.
    """
    url = strip_outer_quotes(raw or "")
    if not url:
        raise CompletionConfigError("API not configured: endpoint URL is missing")

    if not (url.startswith("http://") or url.startswith("https://")):
        raise CompletionConfigError(f"API endpoint is invalid (missing scheme): {url!r}")

    parts = urlsplit(url)
    path = parts.path
    if CHAT_COMPLETIONS_PATH in path:
        path = path.split(CHAT_COMPLETIONS_PATH)[0]
    path = path.rstrip("/")

    base = urlunsplit((parts.scheme, parts.netloc, path, "", ""))
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    return base, query


def normalize_base_url(raw: Optional[str]) -> str:
    return split_endpoint(raw)[0]


def completions_url(raw: Optional[str]) -> str:
    base, query = split_endpoint(raw)
    url = base + CHAT_COMPLETIONS_PATH
    if query:
        url += "?" + urlencode(query)
    return url


# ---------------------------------------------------------------------------
# Diagnostics helpers
# ---------------------------------------------------------------------------

def _mk_req_id(prefix: str = "req") -> str:
    return f"{prefix}_{int(time.time()*1000)}_{random.randint(1000, 9999)}"


def _safe_host_from_url(url: str) -> str:
    try:
        u = url.strip()
        u = u.replace("https://", "").replace("http://", "")
        host = u.split("/")[0]
        return host
    except Exception:
        return "unknown-host"


def _classify_status(code: Optional[int]) -> str:
    if code is None:
        return "network"
    if code in (401, 403):
        return "auth"
    if code == 404:
        return "not_found"
    if code == 429:
        return "rate_limit"
    if code in (408, 504):
        return "timeout"
    if code >= 500:
        return "server"
    return "client"


def _error_message_from_status_error(e: "openai.APIStatusError") -> str:
    """
    Prefer the service's `error.message`; fall back to the status line.
    The SDK may hand us either the whole body or its inner `error` object.
    """
    body: Any = getattr(e, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and isinstance(inner.get("message"), str) and inner["message"]:
            return inner["message"]

    response = getattr(e, "response", None)
    if response is not None:
        return f"{response.status_code} {response.reason_phrase}".strip()
    return str(e)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class CompletionClient:
    """
    Async chat-completions caller. `complete` returns the raw content string
    of the first choice; interpretation is the caller's business.
    """

    def __init__(
        self,
        timeout_seconds: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    def _make_client(self, config: CompletionConfig) -> AsyncOpenAI:
        if not config.api_url or not config.api_key:
            raise CompletionConfigError("API not configured: endpoint URL and API key are required")

        base_url, query = split_endpoint(config.api_url)
        kwargs: Dict[str, Any] = {
            "api_key": config.api_key,
            "base_url": base_url,
            "timeout": self.timeout_seconds,
            "max_retries": 0,
        }
        if query:
            kwargs["default_query"] = query
        if self._http_client is not None:
            kwargs["http_client"] = self._http_client
        return AsyncOpenAI(**kwargs)

    async def complete(self, messages: List[Dict[str, str]], config: CompletionConfig) -> str:
        client = self._make_client(config)

        req_id = _mk_req_id("chat")
        host = _safe_host_from_url(config.api_url or "")
        logger.info("[chat] req_id=%s start model=%s host=%s msg_count=%d temperature=%s",
                    req_id, config.model, host, len(messages), config.temperature)

        t0 = time.monotonic()
        try:
            resp = await client.chat.completions.create(
                model=config.model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=config.temperature,
            )
        except openai.APIStatusError as e:
            dt_ms = int((time.monotonic() - t0) * 1000)
            message = _error_message_from_status_error(e)
            logger.warning("[chat] req_id=%s FAIL status=%d code=%s latency_ms=%d err=%s",
                           req_id, e.status_code, _classify_status(e.status_code), dt_ms, message)
            raise CompletionServiceError(message, status_code=e.status_code) from e
        except openai.APIError as e:
            dt_ms = int((time.monotonic() - t0) * 1000)
            logger.warning("[chat] req_id=%s FAIL code=%s latency_ms=%d err=%s",
                           req_id, _classify_status(None), dt_ms, str(e))
            raise CompletionServiceError(str(e) or e.__class__.__name__) from e
        finally:
            if self._http_client is None:
                await client.close()

        dt_ms = int((time.monotonic() - t0) * 1000)

        choices = getattr(resp, "choices", None)
        if not choices:
            logger.warning("[chat] req_id=%s malformed body (no choices) latency_ms=%d", req_id, dt_ms)
            raise CompletionServiceError("Malformed completion response: no choices")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            logger.warning("[chat] req_id=%s malformed body (no content) latency_ms=%d", req_id, dt_ms)
            raise CompletionServiceError("Malformed completion response: no message content")

        snippet = content[:240] + ("..." if len(content) > 240 else "")
        logger.info("[chat] req_id=%s OK latency_ms=%d model=%s reply=%r",
                    req_id, dt_ms, config.model, snippet)
        return content
