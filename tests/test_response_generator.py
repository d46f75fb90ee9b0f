from typing import Dict, List, Optional, Sequence

import pytest

from core.catalog import ConversationTurn, ModelDescriptor, ModelStatus
from core.conversation import ConversationStore
from core.prompts import build_system_prompt
from core.response_generator import (
    BACKEND_UNREACHABLE_MESSAGE,
    CREDENTIAL_MISSING_MESSAGE,
    EMPTY_REPLY_MESSAGE,
    GENERIC_APOLOGY,
    FailureKind,
    ResponseOrchestrator,
    classify_error,
    offline_apology,
)
from helpers.chat_client import ChatBackendError
from helpers.settings import ChatSettings


class FakeBackend:
    default_model = "fake-model"

    def __init__(self, reply: str = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, object]] = []

    def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]], model_identifier: str) -> str:
        self.calls.append(
            {"system_prompt": system_prompt, "messages": list(messages), "model_identifier": model_identifier}
        )
        if self.error is not None:
            raise self.error
        return self.reply


def _dev_model(status: ModelStatus = ModelStatus.READY) -> ModelDescriptor:
    return ModelDescriptor(
        id="101", name="CodePilot", category="Development", description="Pairs with you on code.", status=status
    )


def test_out_of_domain_refuses_without_network() -> None:
    backend = FakeBackend(reply="should not be used")
    orchestrator = ResponseOrchestrator(chat_backend=backend)
    reply = orchestrator.get_response(_dev_model(), "hello", [])
    assert "CodePilot" in reply
    assert "coding, debugging, and software topics" in reply
    assert backend.calls == []
    assert orchestrator.last_failure is FailureKind.OUT_OF_DOMAIN


def test_not_ready_model_is_refused_without_network() -> None:
    backend = FakeBackend(reply="nope")
    orchestrator = ResponseOrchestrator(chat_backend=backend)
    reply = orchestrator.get_response(_dev_model(ModelStatus.TRAINING), "debug this function", [])
    assert "still training" in reply
    assert backend.calls == []
    assert orchestrator.last_failure is FailureKind.NOT_READY


def test_marker_is_stripped_and_attributed() -> None:
    backend = FakeBackend(reply="[model:gemini-pro] Here is the fix.")
    response = ResponseOrchestrator(chat_backend=backend).get_ai_response(_dev_model(), "debug this function", [])
    assert response.content == "Here is the fix."
    assert response.is_real_ai is True
    assert response.source_label == "gemini-pro"


def test_unmarked_reply_is_returned_unmodified() -> None:
    backend = FakeBackend(reply="Plain answer about your function.")
    response = ResponseOrchestrator(chat_backend=backend).get_ai_response(_dev_model(), "debug this function", [])
    assert response.content == "Plain answer about your function."
    assert response.is_real_ai is False


@pytest.mark.parametrize(
    "raw, source_label",
    [("", "local"), ("   ", "local"), ("[model:gemini-pro] ", "gemini-pro")],
)
def test_blank_reply_is_replaced(raw: str, source_label: str) -> None:
    store = ConversationStore()
    orchestrator = ResponseOrchestrator(chat_backend=FakeBackend(reply=raw), store=store)
    response = orchestrator.get_ai_response(_dev_model(), "debug this function", [])
    assert response.content == EMPTY_REPLY_MESSAGE
    assert response.source_label == source_label
    assert store.history("101")[-1].content == EMPTY_REPLY_MESSAGE


def test_dispatch_payload() -> None:
    backend = FakeBackend(reply="ok")
    history = [ConversationTurn(role="user", content=f"python question {idx}") for idx in range(12)]
    ResponseOrchestrator(chat_backend=backend).get_response(_dev_model(), "debug this function", history)
    assert len(backend.calls) == 1
    call = backend.calls[0]
    assert call["model_identifier"] == "fake-model"
    assert call["system_prompt"] == build_system_prompt(_dev_model())
    messages = call["messages"]
    assert messages[0]["role"] == "system"
    assert len(messages) == 12
    assert messages[1]["content"] == "python question 2"
    assert messages[-1] == {"role": "user", "content": "debug this function"}


def test_model_identifier_is_configurable() -> None:
    backend = FakeBackend(reply="ok")
    ResponseOrchestrator(chat_backend=backend, model_identifier="gemini-1.5-flash").get_response(
        _dev_model(), "debug this function", []
    )
    assert backend.calls[0]["model_identifier"] == "gemini-1.5-flash"


def test_credential_error_returns_offline_message() -> None:
    backend = FakeBackend(error=ChatBackendError("Gemini API key is not configured"))
    orchestrator = ResponseOrchestrator(chat_backend=backend)
    reply = orchestrator.get_response(_dev_model(), "debug this function", [])
    assert reply == CREDENTIAL_MISSING_MESSAGE
    assert "Gemini API key is not configured" in reply
    assert len(backend.calls) == 1
    assert orchestrator.last_failure is FailureKind.CREDENTIAL_MISSING


@pytest.mark.parametrize(
    "message",
    [
        "Supabase configuration is incomplete. Please check your environment variables.",
        "supabaseUrl is required.",
    ],
)
def test_backend_unreachable_returns_offline_message(message: str) -> None:
    orchestrator = ResponseOrchestrator(chat_backend=FakeBackend(error=ChatBackendError(message)))
    assert orchestrator.get_response(_dev_model(), "debug this function", []) == BACKEND_UNREACHABLE_MESSAGE
    assert orchestrator.last_failure is FailureKind.BACKEND_UNREACHABLE


def test_other_remote_errors_fall_back_to_templates() -> None:
    orchestrator = ResponseOrchestrator(chat_backend=FakeBackend(error=RuntimeError("socket closed")))
    response = orchestrator.get_ai_response(_dev_model(), "debug this function", [])
    assert response.content.startswith("Here's the code implementation")
    assert response.source_label == "template"
    assert orchestrator.last_failure is FailureKind.UNKNOWN_REMOTE_FAILURE


def test_without_backend_templates_answer() -> None:
    response = ResponseOrchestrator().get_ai_response(_dev_model(), "optimize my sql query", [])
    assert response.content.startswith("I've optimized your code")


def test_unknown_category_template_uses_generic_sentence() -> None:
    model = ModelDescriptor(id="5", name="Chef", category="Cooking", description="Plans weekly menus.")
    reply = ResponseOrchestrator(chat_backend=FakeBackend(error=RuntimeError("boom"))).get_response(
        model, "what should I cook", []
    )
    assert reply.startswith("I'm Chef, an AI assistant trained on your specific requirements.")
    assert "Plans weekly menus." in reply


def test_internal_failure_never_escapes(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(model):
        raise ValueError("prompt template broke")

    monkeypatch.setattr("core.response_generator.build_system_prompt", explode)
    orchestrator = ResponseOrchestrator(chat_backend=FakeBackend(reply="ok"))
    reply = orchestrator.get_response(_dev_model(), "debug this function", [])
    assert reply == offline_apology(_dev_model())
    assert orchestrator.last_failure is FailureKind.INTERNAL_FAILURE


def test_offline_apology_flavours() -> None:
    assert "coding" in offline_apology(_dev_model())
    assert "writing" in offline_apology(ModelDescriptor(id="1", name="W", category="Text Generation"))
    assert "analysis" in offline_apology(ModelDescriptor(id="1", name="D", category="Data Analysis"))
    assert offline_apology(ModelDescriptor(id="1", name="A", category="Audio")) == GENERIC_APOLOGY
    assert offline_apology(ModelDescriptor(id="1", name="X", category="Cooking")) == GENERIC_APOLOGY


@pytest.mark.parametrize(
    "message, expected",
    [
        ("OpenAI API key is not configured", FailureKind.CREDENTIAL_MISSING),
        ("Supabase configuration is incomplete", FailureKind.BACKEND_UNREACHABLE),
        ("supabaseUrl is required.", FailureKind.BACKEND_UNREACHABLE),
        ("api key missing", FailureKind.UNKNOWN_REMOTE_FAILURE),
        ("The AI request timed out.", FailureKind.UNKNOWN_REMOTE_FAILURE),
    ],
)
def test_classify_error(message: str, expected: FailureKind) -> None:
    assert classify_error(ChatBackendError(message)) is expected


def test_history_appends_one_turn_per_role_in_order() -> None:
    store = ConversationStore()
    store.append_turn("101", "user", "my python build fails")
    store.append_turn("101", "assistant", "Share the traceback.")
    backend = FakeBackend(reply="[model:gpt-4o] Try pinning the dependency.")
    orchestrator = ResponseOrchestrator(chat_backend=backend, store=store)

    reply = orchestrator.get_response(_dev_model(), "it still happens")

    assert reply == "Try pinning the dependency."
    # History was read before the new user turn was stored.
    sent = [msg["content"] for msg in backend.calls[0]["messages"][1:]]
    assert sent == ["my python build fails", "Share the traceback.", "it still happens"]
    turns = store.history("101")
    assert [(turn.role, turn.content) for turn in turns[2:]] == [
        ("user", "it still happens"),
        ("assistant", "Try pinning the dependency."),
    ]


def test_refusals_are_recorded_too() -> None:
    store = ConversationStore()
    orchestrator = ResponseOrchestrator(chat_backend=FakeBackend(reply="x"), store=store)
    reply = orchestrator.get_response(_dev_model(), "hello")
    assert [(turn.role, turn.content) for turn in store.history("101")] == [("user", "hello"), ("assistant", reply)]


def test_store_failures_do_not_escape() -> None:
    class BrokenStore:
        def get_recent_turns(self, model_id, limit=None):
            raise OSError("disk gone")

        def append_turn(self, model_id, role, content):
            raise OSError("disk gone")

    orchestrator = ResponseOrchestrator(chat_backend=FakeBackend(reply="fine"), store=BrokenStore())
    assert orchestrator.get_response(_dev_model(), "debug this function") == "fine"


def test_history_limit_comes_from_settings() -> None:
    backend = FakeBackend(reply="ok")
    history = [ConversationTurn(role="user", content="python") for _ in range(6)]
    ResponseOrchestrator(chat_backend=backend, settings=ChatSettings(history_limit=2)).get_response(
        _dev_model(), "debug this function", history
    )
    assert len(backend.calls[0]["messages"]) == 4
