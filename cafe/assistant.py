"""Ask-AI: one question, one answer from the text-completion API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from cafe.config import ASSISTANT_API_KEY, ASSISTANT_API_URL, ASSISTANT_TIMEOUT_SECONDS
from cafe.errors import AssistantError

logger = logging.getLogger(__name__)

USER_MESSAGES = {
    AssistantError.INVALID_CREDENTIAL: "The assistant API key is invalid. Please check the configuration.",
    AssistantError.NETWORK: "A network error occurred. Please check your internet connection and try again.",
    AssistantError.OTHER: "An unexpected error occurred while contacting the assistant.",
}


def classify_failure(status: int | None, message: str) -> str:
    text = message.lower()
    if status in (401, 403) or "api key not valid" in text or "api_key_invalid" in text:
        return AssistantError.INVALID_CREDENTIAL
    if "failed to fetch" in text or "network" in text:
        return AssistantError.NETWORK
    return AssistantError.OTHER


def user_message(error: AssistantError) -> str:
    return USER_MESSAGES.get(error.kind, USER_MESSAGES[AssistantError.OTHER])


def extract_text(payload: dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


class AssistantClient:
    def __init__(self, api_key: str = ASSISTANT_API_KEY, url: str = ASSISTANT_API_URL, timeout: float = ASSISTANT_TIMEOUT_SECONDS) -> None:
        self.api_key = api_key
        self.url = url
        self.timeout = timeout

    async def complete(self, prompt: str) -> str:
        if not prompt.strip():
            raise AssistantError(AssistantError.OTHER, "Please enter a question.")
        if not self.api_key:
            raise AssistantError(AssistantError.INVALID_CREDENTIAL, "No assistant API key is configured.")

        body = {"contents": [{"parts": [{"text": prompt}]}]}
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, params={"key": self.api_key}, json=body) as response:
                    if response.status >= 400:
                        detail = await response.text()
                        kind = classify_failure(response.status, detail)
                        logger.error("assistant_failed status=%d kind=%s", response.status, kind)
                        raise AssistantError(kind, f"HTTP {response.status}: {detail[:200]}")
                    payload = await response.json()
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as exc:
            logger.error("assistant_network_error error=%s", exc)
            raise AssistantError(AssistantError.NETWORK, f"Network error: {exc}") from exc
        except aiohttp.ClientError as exc:
            kind = classify_failure(None, str(exc))
            logger.error("assistant_client_error kind=%s error=%s", kind, exc)
            raise AssistantError(kind, str(exc)) from exc

        text = extract_text(payload)
        logger.info("assistant_answered chars=%d", len(text))
        return text
