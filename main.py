# main.py

'''
Command-line chat with a marketplace model

This module implements:

1. Model selection:
   - Loads model listings from a YAML registry and picks one by id.

2. Backend wiring:
   - Builds settings from an optional YAML file plus environment variables.
   - Uses direct Gemini access when a key is configured, the Supabase edge function otherwise.

3. Interactive loop:
   - Prints the model's greeting, then one reply per input line.
   - Replies attributed to a real backend are tagged with the serving model.
   - 'exit' or 'quit' ends the session.
'''

import argparse
import logging
import sys

import yaml

from core.conversation import ConversationStore
from core.response_generator import ResponseOrchestrator
from core.templates import greeting_for
from helpers.chat_client import build_chat_backend
from helpers.model_registry import ModelNotFoundError, ModelRegistry
from helpers.settings import SettingsError, load_settings

EXIT_WORDS = {"exit", "quit"}


def build_parser():
    parser = argparse.ArgumentParser(description="Chat with a marketplace model from the terminal")
    parser.add_argument('--models', type=str, default='config/models.yaml',
                        help='YAML registry of model listings')
    parser.add_argument('--model-id', type=str, required=True,
                        help='Id of the model to chat with')
    parser.add_argument('--config', type=str, default='config/chat.yaml',
                        help='Optional YAML settings file')
    parser.add_argument('--history', type=str, default=None,
                        help='JSON file used to persist the conversation')
    parser.add_argument('--debug', action='store_true')
    return parser


def run_chat(orchestrator, model, read_line=input, write=print):
    write(greeting_for(model))
    while True:
        try:
            line = read_line("> ")
        except EOFError:
            break
        text = line.strip()
        if not text:
            continue
        if text.lower() in EXIT_WORDS:
            break
        reply = orchestrator.get_ai_response(model, text)
        if reply.is_real_ai:
            write(f"[{reply.source_label}] {reply.content}")
        else:
            write(reply.content)


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config)
    except SettingsError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if (args.debug or settings.debug) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        model = ModelRegistry.load(args.models).get(args.model_id)
    except (OSError, ValueError, yaml.YAMLError, ModelNotFoundError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    orchestrator = ResponseOrchestrator(
        chat_backend=build_chat_backend(settings),
        store=ConversationStore(args.history),
        settings=settings,
    )
    run_chat(orchestrator, model)
    return 0


if __name__ == '__main__':
    sys.exit(main())
