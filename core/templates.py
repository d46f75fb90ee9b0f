"""Canned per-category replies used when no remote backend answers.

Each responder scans the lowercased message for an ordered list of trigger
words; the first trigger group that matches picks the reply, otherwise a
generic sentence for the category is returned. Trigger order is significant.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Optional, Sequence, Tuple

from core.catalog import ModelCategory, ModelDescriptor

Responder = Callable[[ModelDescriptor, str], str]
TriggerTable = Sequence[Tuple[Tuple[str, ...], str]]

_PLACEHOLDER_CODE = (
    "Here's the code implementation based on your requirements:\n\n"
    "```javascript\n"
    "// Example code would appear here\n"
    "function exampleFunction() {\n"
    "  console.log('This is a placeholder for actual generated code');\n"
    "  return 'Success';\n"
    "}\n"
    "```\n\n"
    "Is this what you were looking for?"
)

_IMAGE_TRIGGERS: TriggerTable = (
    (
        ("generate", "create", "make"),
        "I've generated an image based on your description. "
        "[In a real implementation, an actual image would be displayed here]",
    ),
    (
        ("style", "artistic"),
        "I've created an artistic interpretation using the style you specified. "
        "[In a real implementation, an actual image would be displayed here]",
    ),
    (
        ("edit", "modify"),
        "I've modified the image according to your instructions. "
        "[In a real implementation, the edited image would be displayed here]",
    ),
    (
        ("upload",),
        "I've received your image and can now make modifications or use it as a reference for generating new images.",
    ),
)
_AUDIO_TRIGGERS: TriggerTable = (
    (
        ("voice", "speak"),
        "I've generated the requested voice clip. [In a real implementation, audio would be playable here]",
    ),
    (
        ("translate", "language"),
        "I've translated your audio to the requested language. "
        "[In a real implementation, translated audio would be playable here]",
    ),
    (
        ("accent", "tone"),
        "I've adjusted the accent and tone as requested. "
        "[In a real implementation, modified audio would be playable here]",
    ),
)
_DEVELOPMENT_TRIGGERS: TriggerTable = (
    (("code", "function"), _PLACEHOLDER_CODE),
    (
        ("debug", "error"),
        "I've analyzed your code and found the following issues:\n\n"
        "1. [Example issue description]\n2. [Another example issue]\n\n"
        "Here's the corrected version:\n\n```javascript\n// Corrected code would appear here\n```",
    ),
    (
        ("optimize", "improve"),
        "I've optimized your code for better performance. Here's the improved version:\n\n"
        "```javascript\n// Optimized code would appear here\n```\n\n"
        "This should run approximately 30% faster than the original.",
    ),
)
_DATA_ANALYSIS_TRIGGERS: TriggerTable = (
    (
        ("upload", "file"),
        "I've received your data file and analyzed its contents. "
        "[In a real implementation, a summary of the uploaded data would appear here]",
    ),
    (
        ("graph", "chart", "visualization"),
        "I've created the requested data visualization. "
        "[In a real implementation, the graph/chart would be displayed here]",
    ),
    (
        ("predict", "forecast"),
        "Based on the data patterns, here's my prediction for future trends:\n\n"
        "[Generated forecast details would appear here]",
    ),
    (
        ("correlate", "relationship"),
        "I've analyzed the correlation between the variables you specified. Here's what I found:\n\n"
        "[Generated correlation analysis would appear here]",
    ),
)
_COMPUTER_VISION_TRIGGERS: TriggerTable = (
    (
        ("upload", "image"),
        "I've analyzed the image you uploaded. [In a real implementation, the analysis results would appear here]",
    ),
    (
        ("detect", "find"),
        "I've detected the objects you specified in the image. "
        "[In a real implementation, marked-up image would be displayed here]",
    ),
    (
        ("segment", "separate"),
        "I've segmented the image as requested. [In a real implementation, segmented image would be displayed here]",
    ),
    (
        ("recognize", "identify"),
        "I've identified the following elements in the image:\n\n"
        "[Generated list of identified objects/features would appear here]",
    ),
)


def _first_trigger(lowered: str, table: TriggerTable) -> Optional[str]:
    for triggers, reply in table:
        if any(trigger in lowered for trigger in triggers):
            return reply
    return None


def text_generation_response(model: ModelDescriptor, user_input: str) -> str:
    lowered = user_input.lower()
    if "hello" in lowered or "hi" in lowered:
        return f"Hello! I'm {model.name}, ready to help with your text generation needs."
    if "how are you" in lowered:
        return "I'm functioning optimally, thank you for asking! How can I assist with your text needs today?"
    if "summarize" in lowered or "summary" in lowered:
        return (
            "I'd be happy to summarize that for you. Here's a concise version: "
            "[Generated summary based on your description would appear here]"
        )
    if "write" in lowered or "create" in lowered:
        return (
            "Here's a draft based on your request:\n\n[Generated text would appear here]\n\n"
            "Would you like me to refine this in any way?"
        )
    return (
        "Based on your input, I would generate high-quality text content tailored to your needs. "
        f"I've been trained specifically on {model.name}'s parameters to ensure the content matches "
        f'your description: "{model.description}".'
    )


def image_generation_response(model: ModelDescriptor, user_input: str) -> str:
    return _first_trigger(user_input.lower(), _IMAGE_TRIGGERS) or (
        "I can generate custom images based on your descriptions. What kind of image would you like me to create?"
    )


def audio_response(model: ModelDescriptor, user_input: str) -> str:
    return _first_trigger(user_input.lower(), _AUDIO_TRIGGERS) or (
        "I can generate voice recordings, analyze audio files, and perform various audio transformations. "
        "What would you like me to do?"
    )


def development_response(model: ModelDescriptor, user_input: str) -> str:
    return _first_trigger(user_input.lower(), _DEVELOPMENT_TRIGGERS) or (
        "I can help you with coding tasks, debugging, optimization, and software architecture. "
        "What specific development challenge are you facing?"
    )


def data_analysis_response(model: ModelDescriptor, user_input: str) -> str:
    return _first_trigger(user_input.lower(), _DATA_ANALYSIS_TRIGGERS) or (
        "I can help analyze data, create visualizations, identify patterns, and generate insights. "
        "Please upload your data or describe the analysis you'd like me to perform."
    )


def computer_vision_response(model: ModelDescriptor, user_input: str) -> str:
    return _first_trigger(user_input.lower(), _COMPUTER_VISION_TRIGGERS) or (
        "I can analyze images to detect objects, identify features, perform segmentation, and provide "
        "detailed visual descriptions. Please upload an image or describe what you'd like me to analyze."
    )


RESPONDERS: Dict[ModelCategory, Responder] = {
    ModelCategory.TEXT_GENERATION: text_generation_response,
    ModelCategory.IMAGE_GENERATION: image_generation_response,
    ModelCategory.AUDIO: audio_response,
    ModelCategory.DEVELOPMENT: development_response,
    ModelCategory.DATA_ANALYSIS: data_analysis_response,
    ModelCategory.COMPUTER_VISION: computer_vision_response,
}


def generic_response(model: ModelDescriptor) -> str:
    return (
        f"I'm {model.name}, an AI assistant trained on your specific requirements. "
        f'Based on your description "{model.description}", I can help you with your specialized tasks. '
        "How can I assist you today?"
    )


def template_response(model: ModelDescriptor, user_input: str) -> str:
    """Reply from the category's template bank, or the generic sentence."""

    kind = model.kind
    responder = RESPONDERS.get(kind) if kind is not None else None
    if responder is None:
        return generic_response(model)
    return responder(model, user_input)


# Greeting ----------------------------------------------------------------------
_FIRST_PERSON_REWRITES: Sequence[Tuple[re.Pattern, str]] = (
    (re.compile(r"\bYou are\b", re.IGNORECASE), "I am"),
    (re.compile(r"\byou're\b", re.IGNORECASE), "I'm"),
    (re.compile(r"\byou will\b", re.IGNORECASE), "I will"),
    (re.compile(r"\byou can\b", re.IGNORECASE), "I can"),
    (re.compile(r"\byou\b", re.IGNORECASE), "I"),
    (re.compile(r"\byour\b", re.IGNORECASE), "my"),
    (re.compile(r"\byours\b", re.IGNORECASE), "mine"),
    (re.compile(r"\byourself\b", re.IGNORECASE), "myself"),
)
_WHITESPACE = re.compile(r"\s+")


def to_first_person(text: str) -> str:
    rewritten = text or ""
    for pattern, replacement in _FIRST_PERSON_REWRITES:
        rewritten = pattern.sub(replacement, rewritten)
    return _WHITESPACE.sub(" ", rewritten).strip()


def greeting_for(model: ModelDescriptor) -> str:
    """Opening chat line introducing the model in its own voice."""

    return f"Hello! I'm {model.name}. {to_first_person(model.description)}".strip()


__all__ = [
    "RESPONDERS",
    "generic_response",
    "greeting_for",
    "template_response",
    "to_first_person",
]
