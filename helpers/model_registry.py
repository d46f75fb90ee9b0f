"""Model listings loaded from a YAML registry file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml

from core.catalog import ModelCategory, ModelDescriptor


class ModelNotFoundError(KeyError):
    """Raised when a model id is not present in the registry."""


@dataclass
class ModelRegistry:
    models: Dict[str, ModelDescriptor] = field(default_factory=dict)

    @classmethod
    def from_iterable(cls, descriptors: Iterable[ModelDescriptor]) -> "ModelRegistry":
        return cls(models={descriptor.id: descriptor for descriptor in descriptors})

    @classmethod
    def load(cls, path: Path) -> "ModelRegistry":
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        raw_models = (data.get("models") or []) if isinstance(data, dict) else data
        if not isinstance(raw_models, list):
            raise ValueError(f"Registry {path} must hold a list under 'models'.")
        return cls.from_iterable(ModelDescriptor.from_dict(item) for item in raw_models if item)

    def get(self, model_id: object) -> ModelDescriptor:
        key = str(model_id)
        try:
            return self.models[key]
        except KeyError:
            raise ModelNotFoundError(f"unknown model id: {key}") from None

    def all(self) -> List[ModelDescriptor]:
        return list(self.models.values())

    def by_category(self, category: object) -> List[ModelDescriptor]:
        wanted: Optional[ModelCategory] = ModelCategory.parse(category)
        if wanted is None:
            return [model for model in self.models.values() if model.category == str(category)]
        return [model for model in self.models.values() if model.kind is wanted]


__all__ = ["ModelNotFoundError", "ModelRegistry"]
