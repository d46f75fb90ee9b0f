"""Per-model conversation history."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from core.catalog import ConversationTurn

logger = logging.getLogger(__name__)


def format_user_message(text: str, attachment_name: Optional[str] = None) -> str:
    """Prefix the message with the uploaded file name, as the chat box does."""

    if attachment_name:
        return f"[Uploaded {attachment_name}] {text}"
    return text


class ConversationStore:
    """Ordered, append-only turn lists keyed by model id.

    When ``path`` is given the whole store is mirrored to a JSON file after
    every append, mirroring the storefront's browser-local message history.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = Path(path).expanduser() if path else None
        self._turns: Dict[str, List[ConversationTurn]] = {}
        self._load()

    # ------------------------------------------------------------------
    def append_turn(self, model_id: str, role: str, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=role, content=content)
        self._turns.setdefault(str(model_id), []).append(turn)
        self._save()
        return turn

    def get_recent_turns(self, model_id: str, limit: Optional[int] = None) -> List[ConversationTurn]:
        turns = self._turns.get(str(model_id), [])
        if limit is None:
            return list(turns)
        if limit <= 0:
            return []
        return list(turns[-limit:])

    def history(self, model_id: str) -> List[ConversationTurn]:
        return self.get_recent_turns(model_id)

    def clear(self, model_id: str) -> None:
        self._turns.pop(str(model_id), None)
        self._save()

    # Persistence -------------------------------------------------------
    def _load(self) -> None:
        if not self._path or not self._path.exists():
            return
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle) or {}
            loaded = {
                str(model_id): [ConversationTurn.from_dict(item) for item in turns]
                for model_id, turns in payload.items()
            }
        except (OSError, ValueError, TypeError, AttributeError, KeyError) as exc:
            logger.warning("Ignoring unreadable conversation history %s: %s", self._path, exc)
            return
        self._turns.update(loaded)
        logger.debug("Loaded conversation history for %d model(s) from %s", len(self._turns), self._path)

    def _save(self) -> None:
        if not self._path:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {model_id: [turn.to_dict() for turn in turns] for model_id, turns in self._turns.items()}
        with self._path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)


__all__ = ["ConversationStore", "format_user_message"]
