"""Marketplace model listings and the chat records derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ModelCategory(str, Enum):
    TEXT_GENERATION = "Text Generation"
    IMAGE_GENERATION = "Image Generation"
    AUDIO = "Audio"
    DEVELOPMENT = "Development"
    DATA_ANALYSIS = "Data Analysis"
    COMPUTER_VISION = "Computer Vision"
    # Not offered on the creation form; reachable only programmatically.
    FINANCE = "Finance"

    @classmethod
    def parse(cls, raw: object) -> Optional["ModelCategory"]:
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        cleaned = raw.strip()
        for member in cls:
            if member.value == cleaned:
                return member
        return None

    @classmethod
    def selectable(cls) -> List["ModelCategory"]:
        return [member for member in cls if member is not cls.FINANCE]


class ModelStatus(str, Enum):
    TRAINING = "training"
    READY = "ready"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ModelDescriptor:
    """A model listing as supplied by the registry.

    ``category`` keeps the raw string so that listings with a category outside
    the known set still flow through the chat pipeline unchanged.
    """

    id: str
    name: str
    category: str
    description: str = ""
    status: ModelStatus = ModelStatus.READY
    image_url: Optional[str] = None
    training_progress: int = 0
    rating: float = 0.0
    reviews: int = 0

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Model name must be a non-empty string.")
        if not isinstance(self.status, ModelStatus):
            object.__setattr__(self, "status", ModelStatus(str(self.status).strip().lower()))
        if isinstance(self.category, ModelCategory):
            object.__setattr__(self, "category", self.category.value)

    @property
    def kind(self) -> Optional[ModelCategory]:
        return ModelCategory.parse(self.category)

    @property
    def is_ready(self) -> bool:
        return self.status is ModelStatus.READY

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ModelDescriptor":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name", "")),
            category=str(payload.get("category", "")),
            description=str(payload.get("description") or ""),
            status=ModelStatus(str(payload.get("status", ModelStatus.READY.value)).strip().lower()),
            image_url=payload.get("image_url") or payload.get("imageUrl"),
            training_progress=int(payload.get("training_progress", payload.get("trainingProgress", 0)) or 0),
            rating=float(payload.get("rating", 0.0) or 0.0),
            reviews=int(payload.get("reviews", 0) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "status": self.status.value,
            "image_url": self.image_url,
            "training_progress": self.training_progress,
            "rating": self.rating,
            "reviews": self.reviews,
        }


@dataclass
class ConversationTurn:
    role: str
    content: str
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.role not in {"user", "assistant"}:
            raise ValueError(f"Unsupported conversation role: {self.role}")

    def to_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ConversationTurn":
        raw_ts = payload.get("timestamp")
        timestamp = datetime.fromisoformat(raw_ts) if isinstance(raw_ts, str) and raw_ts else _utcnow()
        return cls(role=str(payload["role"]), content=str(payload.get("content", "")), timestamp=timestamp)


@dataclass(frozen=True)
class ClassificationDecision:
    in_domain: bool
    domain_label: str


@dataclass(frozen=True)
class AIResponse:
    content: str
    is_real_ai: bool = False
    source_label: str = "local"


__all__ = [
    "AIResponse",
    "ClassificationDecision",
    "ConversationTurn",
    "ModelCategory",
    "ModelDescriptor",
    "ModelStatus",
]
