import pytest

from core.catalog import ModelCategory, ModelDescriptor
from core.templates import RESPONDERS, greeting_for, template_response, to_first_person


def _model(category: str, description: str = "Handles marketing copy.") -> ModelDescriptor:
    return ModelDescriptor(id="3", name="Scribe", category=category, description=description)


def test_every_selectable_category_has_a_responder() -> None:
    assert set(RESPONDERS) == set(ModelCategory.selectable())


@pytest.mark.parametrize(
    "category, text, expected_fragment",
    [
        ("Development", "write a function to sort", "Here's the code implementation"),
        ("Development", "I get an error when I debug", "found the following issues"),
        ("Development", "please optimize the loop", "optimized your code"),
        ("Development", "tell me about yourself", "What specific development challenge"),
        ("Text Generation", "hello there", "ready to help with your text generation needs"),
        ("Text Generation", "please summarize the report", "Here's a concise version"),
        ("Text Generation", "write an essay", "Here's a draft based on your request"),
        ("Image Generation", "make a logo", "I've generated an image"),
        ("Image Generation", "use an artistic look", "artistic interpretation"),
        ("Image Generation", "upload", "I've received your image"),
        ("Audio", "speak slowly", "voice clip"),
        ("Audio", "change the accent", "adjusted the accent and tone"),
        ("Audio", "hmm", "What would you like me to do?"),
        ("Data Analysis", "chart my sales", "data visualization"),
        ("Data Analysis", "forecast next quarter", "prediction for future trends"),
        ("Data Analysis", "any relationship between these", "correlation between the variables"),
        ("Computer Vision", "detect the dogs", "detected the objects"),
        ("Computer Vision", "segment the road", "segmented the image"),
        ("Computer Vision", "identify the brand", "identified the following elements"),
    ],
)
def test_trigger_words_pick_reply(category: str, text: str, expected_fragment: str) -> None:
    assert expected_fragment in template_response(_model(category), text)


def test_first_trigger_wins() -> None:
    # "code" is checked before "debug" and "error".
    reply = template_response(_model("Development"), "debug this code error")
    assert reply.startswith("Here's the code implementation")
    # "image" sits in the first group, ahead of "find".
    reply = template_response(_model("Computer Vision"), "find objects in the image")
    assert reply.startswith("I've analyzed the image you uploaded")


def test_text_generation_greeting_is_substring_based() -> None:
    # "hi" inside "this" still triggers the greeting reply.
    reply = template_response(_model("Text Generation"), "summarize this")
    assert reply == "Hello! I'm Scribe, ready to help with your text generation needs."


def test_text_generation_default_mentions_description() -> None:
    reply = template_response(_model("Text Generation"), "ok")
    assert "Scribe's parameters" in reply
    assert '"Handles marketing copy."' in reply


def test_unknown_category_uses_generic_sentence() -> None:
    reply = template_response(_model("Robotics"), "anything")
    assert reply.startswith("I'm Scribe, an AI assistant trained on your specific requirements.")
    assert 'Based on your description "Handles marketing copy."' in reply


def test_finance_category_falls_back_to_generic_sentence() -> None:
    reply = template_response(_model("Finance"), "budget")
    assert reply.startswith("I'm Scribe, an AI assistant")


def test_to_first_person() -> None:
    assert to_first_person("You are a coach.  You can review your   plans yourself.") == (
        "I am a coach. I can review my plans myself."
    )
    assert to_first_person("you're great and the work is yours") == "I'm great and the work is mine"


def test_greeting_for() -> None:
    model = _model("Text Generation", description="You will polish your emails.")
    assert greeting_for(model) == "Hello! I'm Scribe. I will polish my emails."
