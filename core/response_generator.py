"""Chat pipeline: domain gate, prompt composition, remote call and fallbacks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from core.catalog import AIResponse, ConversationTurn, ModelCategory, ModelDescriptor
from core.conversation import ConversationStore
from core.domain_classifier import classify, refusal_message
from core.prompts import build_messages, build_system_prompt
from core.templates import template_response
from helpers.chat_client import ChatBackend, parse_model_marker
from helpers.settings import ChatSettings

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    OUT_OF_DOMAIN = "out_of_domain"
    NOT_READY = "not_ready"
    CREDENTIAL_MISSING = "credential_missing"
    BACKEND_UNREACHABLE = "backend_unreachable"
    UNKNOWN_REMOTE_FAILURE = "unknown_remote_failure"
    INTERNAL_FAILURE = "internal_failure"


CREDENTIAL_MISSING_MESSAGE = (
    "I'm currently unable to process your request because the Gemini API key is not configured. "
    "Please set your API key in the settings."
)
BACKEND_UNREACHABLE_MESSAGE = (
    "I can't reach the AI service right now because the backend configuration is incomplete. "
    "Please check the Supabase project URL and anon key, then try again."
)
_OFFLINE_APOLOGIES: Dict[ModelCategory, str] = {
    ModelCategory.DEVELOPMENT: (
        "I'm having trouble reaching my coding backend right now. "
        "Please try again in a moment; your code snippet will still be here."
    ),
    ModelCategory.TEXT_GENERATION: (
        "I'm having trouble reaching my writing backend right now. "
        "Please try again in a moment and I'll pick up your draft where we left off."
    ),
    ModelCategory.DATA_ANALYSIS: (
        "I'm having trouble reaching my analysis backend right now. "
        "Please try again in a moment and we'll continue with your data."
    ),
}
GENERIC_APOLOGY = "I'm having trouble connecting to my knowledge base right now. Please try again in a moment."
EMPTY_REPLY_MESSAGE = "I'm sorry, I couldn't generate a response."


def not_ready_message(model: ModelDescriptor) -> str:
    return f"{model.name} is still training. Please wait for training to finish before starting a chat."


def offline_apology(model: ModelDescriptor) -> str:
    kind = model.kind
    if kind is None:
        return GENERIC_APOLOGY
    return _OFFLINE_APOLOGIES.get(kind, GENERIC_APOLOGY)


def classify_error(error: BaseException) -> FailureKind:
    message = str(error)
    if "API key" in message:
        return FailureKind.CREDENTIAL_MISSING
    if "Supabase configuration" in message or "supabaseUrl" in message:
        return FailureKind.BACKEND_UNREACHABLE
    return FailureKind.UNKNOWN_REMOTE_FAILURE


@dataclass
class ChatRequest:
    model: ModelDescriptor
    user_input: str
    system_prompt: str
    messages: List[Dict[str, str]]


@dataclass
class StrategyResult:
    """Outcome of one step in the fallback chain.

    A result with a ``response`` ends the chain; ``failure`` records why the
    step degraded, whether or not it still produced a message.
    """

    response: Optional[AIResponse] = None
    failure: Optional[FailureKind] = None
    error: Optional[BaseException] = field(default=None, repr=False)

    @property
    def resolved(self) -> bool:
        return self.response is not None


class RemoteCompletionStrategy:
    name = "remote"

    def __init__(self, backend: ChatBackend, model_identifier: str) -> None:
        self.backend = backend
        self.model_identifier = model_identifier

    def attempt(self, request: ChatRequest) -> StrategyResult:
        try:
            raw = self.backend.complete(request.system_prompt, request.messages, self.model_identifier)
        except Exception as exc:
            kind = classify_error(exc)
            logger.warning("Remote chat call for %s failed (%s): %s", request.model.name, kind.value, exc)
            if kind is FailureKind.CREDENTIAL_MISSING:
                return StrategyResult(
                    response=AIResponse(CREDENTIAL_MISSING_MESSAGE, False, "credential-missing"),
                    failure=kind,
                    error=exc,
                )
            if kind is FailureKind.BACKEND_UNREACHABLE:
                return StrategyResult(
                    response=AIResponse(BACKEND_UNREACHABLE_MESSAGE, False, "backend-unreachable"),
                    failure=kind,
                    error=exc,
                )
            return StrategyResult(failure=kind, error=exc)

        content, identifier = parse_model_marker(raw or "")
        if not content.strip():
            content = EMPTY_REPLY_MESSAGE
        if identifier:
            return StrategyResult(response=AIResponse(content, True, identifier))
        return StrategyResult(response=AIResponse(content, False, "local"))


class TemplateStrategy:
    name = "template"

    def attempt(self, request: ChatRequest) -> StrategyResult:
        return StrategyResult(response=AIResponse(template_response(request.model, request.user_input), False, "template"))


class ResponseOrchestrator:
    """Turns one user message into one displayable reply.

    ``get_ai_response`` never raises: every failure mode ends in a message the
    chat UI can show. With a ``store`` attached the user turn is appended
    before any dispatch and the assistant turn after the reply is settled.
    """

    def __init__(
        self,
        chat_backend: Optional[ChatBackend] = None,
        store: Optional[ConversationStore] = None,
        settings: Optional[ChatSettings] = None,
        model_identifier: Optional[str] = None,
    ) -> None:
        self.settings = settings or ChatSettings()
        self.store = store
        self.chat_backend = chat_backend
        identifier = model_identifier or getattr(chat_backend, "default_model", None) or self.settings.backend_model
        self.strategies: List[Any] = []
        if chat_backend is not None:
            self.strategies.append(RemoteCompletionStrategy(chat_backend, identifier))
        self.strategies.append(TemplateStrategy())
        self.last_failure: Optional[FailureKind] = None

    # ------------------------------------------------------------------
    def get_response(
        self,
        model: ModelDescriptor,
        user_input: str,
        recent_turns: Optional[Iterable[Any]] = None,
    ) -> str:
        return self.get_ai_response(model, user_input, recent_turns).content

    def get_ai_response(
        self,
        model: ModelDescriptor,
        user_input: str,
        recent_turns: Optional[Iterable[Any]] = None,
    ) -> AIResponse:
        self.last_failure = None
        history = self._read_history(model, recent_turns)
        self._record(model, "user", user_input)
        try:
            response = self._resolve(model, user_input, history)
        except Exception:
            logger.exception("Unexpected failure while answering for %s", model.name)
            self.last_failure = FailureKind.INTERNAL_FAILURE
            response = AIResponse(offline_apology(model), False, "offline")
        self._record(model, "assistant", response.content)
        return response

    # Pipeline ----------------------------------------------------------
    def _resolve(self, model: ModelDescriptor, user_input: str, history: Sequence[Any]) -> AIResponse:
        decision = classify(model, user_input, history)
        if not decision.in_domain:
            logger.info("Message for %s is outside %s", model.name, decision.domain_label)
            self.last_failure = FailureKind.OUT_OF_DOMAIN
            return AIResponse(refusal_message(model), False, "refusal")

        if not model.is_ready:
            self.last_failure = FailureKind.NOT_READY
            return AIResponse(not_ready_message(model), False, "not-ready")

        system_prompt = build_system_prompt(model)
        request = ChatRequest(
            model=model,
            user_input=user_input,
            system_prompt=system_prompt,
            messages=build_messages(
                model,
                user_input,
                history,
                limit=self.settings.history_limit,
                system_prompt=system_prompt,
            ),
        )
        for strategy in self.strategies:
            result = strategy.attempt(request)
            if result.failure is not None:
                self.last_failure = result.failure
            if result.resolved:
                logger.debug("Reply for %s resolved by %s strategy", model.name, strategy.name)
                return result.response
        raise RuntimeError("no response strategy produced a reply")

    # History -----------------------------------------------------------
    def _read_history(self, model: ModelDescriptor, recent_turns: Optional[Iterable[Any]]) -> List[Any]:
        if recent_turns is not None:
            return list(recent_turns)
        if self.store is None:
            return []
        try:
            return self.store.get_recent_turns(model.id, self.settings.history_limit)
        except Exception:
            logger.exception("Could not read conversation history for %s", model.id)
            return []

    def _record(self, model: ModelDescriptor, role: str, content: str) -> Optional[ConversationTurn]:
        if self.store is None:
            return None
        try:
            return self.store.append_turn(model.id, role, content)
        except Exception:
            logger.exception("Could not persist %s turn for %s", role, model.id)
            return None


__all__ = [
    "BACKEND_UNREACHABLE_MESSAGE",
    "CREDENTIAL_MISSING_MESSAGE",
    "EMPTY_REPLY_MESSAGE",
    "FailureKind",
    "ResponseOrchestrator",
    "StrategyResult",
    "classify_error",
    "not_ready_message",
    "offline_apology",
]
