# app.py

'''
Marketplace Model Chat - Streamlit sandbox

Features:
1. Sidebar model picker fed by the YAML model registry.
2. Greeting in the model's own voice, followed by the stored conversation.
3. Messages routed through the ResponseOrchestrator (domain gate, remote backend, template fallback).
4. Replies served by a real backend are captioned with the serving model.
5. Optional file attachment, forwarded as an "[Uploaded name]" prefix.
'''

import os

import streamlit as st  # type: ignore

from core.conversation import ConversationStore, format_user_message
from core.response_generator import ResponseOrchestrator
from core.templates import greeting_for
from helpers.chat_client import build_chat_backend
from helpers.model_registry import ModelRegistry
from helpers.settings import load_settings

MODELS_PATH = os.environ.get("MODEL_REGISTRY", "config/models.yaml")
CONFIG_PATH = os.environ.get("CHAT_CONFIG", "config/chat.yaml")


@st.cache_resource
def load_registry():
    return ModelRegistry.load(MODELS_PATH)


def get_orchestrator():
    if "orchestrator" not in st.session_state:
        settings = load_settings(CONFIG_PATH)
        st.session_state.orchestrator = ResponseOrchestrator(
            chat_backend=build_chat_backend(settings),
            store=ConversationStore(),
            settings=settings,
        )
    return st.session_state.orchestrator


st.set_page_config(page_title="Model Marketplace Chat", layout="wide")
st.title("Model Marketplace Chat")

registry = load_registry()
models = registry.all()
if not models:
    st.warning(f"No models found in {MODELS_PATH}.")
    st.stop()

orchestrator = get_orchestrator()

# --- Sidebar Controls ---
st.sidebar.markdown("### Model")
labels = {f"{model.name} ({model.category})": model for model in models}
model = labels[st.sidebar.selectbox("Chat with", list(labels))]
st.sidebar.caption(model.description)
st.sidebar.caption(f"Status: {model.status.value}")
if st.sidebar.button("🗑️ Clear Chat"):
    orchestrator.store.clear(model.id)
    st.session_state.pop("attribution", None)
    st.rerun()

attachment = st.sidebar.file_uploader("Attach a file", key=f"upload-{model.id}")

if "attribution" not in st.session_state:
    st.session_state.attribution = {}

# --- Conversation ---
with st.chat_message("assistant"):
    st.markdown(greeting_for(model))

for idx, turn in enumerate(orchestrator.store.history(model.id)):
    with st.chat_message(turn.role):
        st.markdown(turn.content)
        source = st.session_state.attribution.get((model.id, idx))
        if source:
            st.caption(f"Answered by {source}")

given_input = st.chat_input("Type your message...", disabled=not model.is_ready)
if not model.is_ready:
    st.info(f"{model.name} is still training.")

if given_input:
    message = format_user_message(given_input.strip(), attachment.name if attachment else None)
    with st.chat_message("user"):
        st.markdown(message)
    with st.spinner("Thinking..."):
        reply = orchestrator.get_ai_response(model, message)
    with st.chat_message("assistant"):
        st.markdown(reply.content)
        if reply.is_real_ai:
            st.caption(f"Answered by {reply.source_label}")
    if reply.is_real_ai:
        last_index = len(orchestrator.store.history(model.id)) - 1
        st.session_state.attribution[(model.id, last_index)] = reply.source_label
