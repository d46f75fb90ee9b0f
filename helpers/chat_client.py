"""Clients for the remote chat-completion backends.

Both clients raise ``ChatBackendError`` on any failure. The message text is
part of the contract: callers tell a missing provider key apart from a
misconfigured backend by looking for ``"API key"`` and
``"Supabase configuration"`` in it.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import requests

from helpers.settings import ChatSettings

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
GEMINI_HISTORY_TURNS = 5
GEMINI_GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}

MODEL_MARKER_PATTERN = re.compile(r"^\[model:([^\]]+)\]\s*", re.IGNORECASE)


class ChatBackendError(Exception):
    """Raised when a remote chat backend cannot produce a reply."""


class ChatBackend(Protocol):
    def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]], model_identifier: str) -> str:
        ...

    @property
    def default_model(self) -> str:
        ...


def parse_model_marker(text: str) -> Tuple[str, Optional[str]]:
    """Split an optional leading ``[model:<id>]`` marker from ``text``."""

    match = MODEL_MARKER_PATTERN.match(text or "")
    if not match:
        return text, None
    return text[match.end():].strip(), match.group(1).strip()


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(payload, dict):
        parts = [str(payload[key]) for key in ("error", "message") if payload.get(key)]
        if parts:
            return " - ".join(parts)
    return response.text.strip()


class SupabaseEdgeClient:
    """Calls the ``openai-chat`` Supabase Edge Function over HTTPS."""

    def __init__(self, settings: ChatSettings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self._session = session or requests.Session()

    @property
    def default_model(self) -> str:
        return self.settings.backend_model

    @property
    def function_url(self) -> str:
        return f"{self.settings.supabase_url.rstrip('/')}/functions/v1/{self.settings.edge_function}"

    def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]], model_identifier: str) -> str:
        if not self.settings.supabase_configured:
            logger.error("Supabase URL or anon key is missing")
            raise ChatBackendError(
                "Supabase configuration is incomplete. Please check your environment variables."
            )

        logger.info(
            "Invoking %s edge function with model %s (%d prompt chars, %d messages)",
            self.settings.edge_function,
            model_identifier,
            len(system_prompt),
            len(messages),
        )
        body = {"systemPrompt": system_prompt, "messages": list(messages), "modelName": model_identifier}
        headers = {
            "Authorization": f"Bearer {self.settings.supabase_anon_key}",
            "apikey": self.settings.supabase_anon_key,
            "Content-Type": "application/json",
        }
        started = time.monotonic()
        try:
            response = self._session.post(
                self.function_url, json=body, headers=headers, timeout=self.settings.request_timeout
            )
        except requests.Timeout as exc:
            raise ChatBackendError(
                "The AI request timed out. Please try again with a shorter prompt or fewer messages."
            ) from exc
        except requests.RequestException as exc:
            raise ChatBackendError(f"Failed to get AI response via Supabase: {exc}") from exc
        logger.debug("Edge function completed in %.0fms", (time.monotonic() - started) * 1000)

        if response.status_code == 404:
            raise ChatBackendError(
                f"The {self.settings.edge_function} Edge Function is not deployed. Please deploy it first."
            )
        if not response.ok:
            raise ChatBackendError(
                f"Failed to get AI response via Supabase ({response.status_code}): {_error_detail(response)}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ChatBackendError("The AI service did not return valid JSON.") from exc
        text = payload.get("response") if isinstance(payload, dict) else None
        if not text:
            raise ChatBackendError("The AI service returned an empty response")
        logger.info("Retrieved edge function response of %d characters", len(text))
        return str(text)


class GeminiDirectClient:
    """Calls the Gemini REST API directly with a user-supplied key."""

    def __init__(self, settings: ChatSettings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self._session = session or requests.Session()

    @property
    def default_model(self) -> str:
        return self.settings.gemini_model

    @staticmethod
    def flatten_prompt(system_prompt: str, messages: Sequence[Dict[str, str]]) -> str:
        """Collapse the chat into a single prompt; only the last few turns are kept."""

        dialogue = [msg for msg in messages if msg.get("role") != "system"]
        if not dialogue:
            return f"{system_prompt}\n\nAssistant:"
        current = dialogue[-1]
        history = dialogue[:-1][-GEMINI_HISTORY_TURNS:]
        lines: List[str] = [
            f"{'User' if msg['role'] == 'user' else 'Assistant'}: {msg['content']}" for msg in history
        ]
        prompt = system_prompt + "\n\n"
        if lines:
            prompt += "Previous conversation:\n" + "\n\n".join(lines) + "\n\n"
        return prompt + f"User: {current['content']}\n\nAssistant:"

    def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]], model_identifier: str) -> str:
        if not self.settings.gemini_api_key:
            raise ChatBackendError("Gemini API key is not configured")

        prompt = self.flatten_prompt(system_prompt, messages)
        url = f"{GEMINI_API_BASE}/{model_identifier}:generateContent"
        body: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": dict(GEMINI_GENERATION_CONFIG),
        }
        logger.info("Calling Gemini model %s (%d prompt chars)", model_identifier, len(prompt))
        try:
            response = self._session.post(
                url,
                params={"key": self.settings.gemini_api_key},
                json=body,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as exc:
            raise ChatBackendError(f"Gemini request failed: {exc}") from exc

        if not response.ok:
            raise ChatBackendError(f"Gemini API Error ({response.status_code}): {_error_detail(response)}")

        try:
            payload = response.json()
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ChatBackendError("Gemini API returned an unexpected payload.") from exc
        return f"[model:{model_identifier}] {text}"


def build_chat_backend(settings: ChatSettings, session: Optional[requests.Session] = None) -> ChatBackend:
    """Direct Gemini access when a key is configured, the edge function otherwise."""

    if settings.gemini_configured:
        return GeminiDirectClient(settings, session=session)
    return SupabaseEdgeClient(settings, session=session)


__all__ = [
    "ChatBackend",
    "ChatBackendError",
    "GeminiDirectClient",
    "SupabaseEdgeClient",
    "build_chat_backend",
    "parse_model_marker",
]
