"""Keyword heuristics deciding whether a chat message suits a model's domain.

The pattern tables below are literal and order-sensitive. Every verdict is a
pure function of the model listing, the message and the recent turns, so the
same triple always produces the same answer.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Pattern, Sequence

from core.catalog import ClassificationDecision, ModelCategory, ModelDescriptor

CONTEXT_WINDOW = 5
SHORT_PROMPT_MAX_TOKENS = 6

# Description roles -------------------------------------------------------------
MATH_ROLE_PATTERN = re.compile(r"math|algebra|geometry|calculus|probability|statistics|teacher")
FINANCE_ROLE_PATTERN = re.compile(
    r"finance|financial|budget|invest|investment|retire|mortgage|loan|savings|interest"
)
DEVELOPER_ROLE_PATTERN = re.compile(
    r"\b(developer|programmer|software engineer|engineer|coder|coding|programming|software)\b"
)

# Math topics -------------------------------------------------------------------
MATH_TOPIC_PATTERN = re.compile(
    r"\b(math|maths|mathematics|algebra|geometry|calculus|probability|statistics|equations?|"
    r"fractions?|decimals?|derivatives?|integrals?|integration|differentiat\w*|theorems?|proofs?|"
    r"polynomials?|quadratic|linear equation|arithmetic|trigonometry|sine|cosine|tangent|"
    r"matrix|matrices|vectors?|percent|percentage|ratios?|variance|standard deviation|"
    r"logarithms?|exponents?|square roots?|factorial|prime numbers?|angles?|triangles?|"
    r"circles?|perimeter|hypotenuse|pythagora\w*|solve for|simplify)\b"
)
ARITHMETIC_PATTERN = re.compile(r"\d\s*[-+*/^=]|[-+*/^=]\s*\d")
ARITHMETIC_WORD_PATTERN = re.compile(
    r"\b(sum|add|plus|minus|times|divide|divided|evaluate|multiply|multiplied|subtract)\b"
)

# Finance topics (checked against the current message only) -------------------
FINANCE_TOPIC_PATTERNS: Sequence[Pattern[str]] = (
    # budgeting and saving
    re.compile(
        r"\b(budget\w*|saving|savings|save money|emergency fund|expenses?|spending|income|"
        r"debt|debts|credit cards?|credit score|paycheck|salary)\b"
    ),
    # investing and portfolios
    re.compile(
        r"\b(invest\w*|portfolio\w*|stocks?|bonds?|etfs?|index funds?|mutual funds?|dividends?|"
        r"asset allocation|diversif\w*|compound interest|brokerage|shares|crypto\w*|bitcoin)\b"
    ),
    # retirement accounts
    re.compile(r"\b(retire\w*|ira|iras|roth|pension\w*|social security|annuit\w*)\b|\b401\(?k\)?"),
    # loans and mortgages
    re.compile(
        r"\b(loans?|mortgages?|refinanc\w*|apr|interest rates?|down payment|amorti[sz]\w*|"
        r"principal|lenders?|borrow\w*|heloc|credit line)\b"
    ),
    # macro and risk
    re.compile(
        r"\b(inflation|recession|federal reserve|fed rate|stock market|markets?|volatility|"
        r"risk tolerance|risk|hedg\w*|economy|economic|gdp|bear market|bull market)\b"
    ),
    # tax
    re.compile(
        r"\b(tax|taxes|taxable|deduct\w*|capital gains?|irs|tax brackets?|write-?offs?|"
        r"tax refund|withholding)\b"
    ),
)

# Category tables ---------------------------------------------------------------
DEVELOPMENT_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(code|coding|coder|program|programs|programming|function|functions|bug|bugs|"
        r"debug\w*|refactor\w*|compil\w*|syntax|algorithms?|api|apis|class|classes|"
        r"methods?|variables?|loops?|regex|database|sql|query|queries|scripts?|scripting|"
        r"deploy\w*|git|github|repository|repo|unit tests?|exceptions?|stack trace|"
        r"errors?|runtime|framework|library|libraries|packages?|dependency|dependencies|"
        r"frontend|backend|server|endpoints?|implement\w*|lint\w*|typescript|json)\b"
    ),
    re.compile(
        r"\b(python|javascript|java|golang|rust|ruby|php|swift|kotlin|scala|html|css|react|"
        r"vue|angular|svelte|node\.?js|django|flask|fastapi|spring|rails|laravel|docker|"
        r"kubernetes|bash|powershell|linux)\b|(?:^|[^\w])(?:c\+\+|c#)"
    ),
)
TEXT_GENERATION_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(write|writing|written|rewrite|draft\w*|blog\w*|essays?|articles?|story|stories|"
        r"poems?|poetry|summar\w*|paraphras\w*|edit|editing|proofread\w*|grammar|headlines?|"
        r"captions?|copywriting|emails?|letters?|outline|taglines?|slogans?|translate|"
        r"paragraphs?|sentences?|compose|narrative|rephrase|reword)\b"
    ),
)
DATA_ANALYSIS_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(data|dataset|datasets|csv|excel|spreadsheets?|tables?|regression|statistic\w*|"
        r"analy[sz]\w*|visuali[sz]\w*|charts?|graphs?|plots?|correlat\w*|trends?|"
        r"forecast\w*|predict\w*|median|average|variance|standard deviation|outliers?|"
        r"distribution|pandas|sql|dashboards?|metrics?|kpis?|cluster\w*|hypothesis|"
        r"samples?|pivot)\b"
    ),
)
IMAGE_GENERATION_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(image|images|picture|pictures|photo|photos|draw|drawing|paint|painting|"
        r"illustrat\w*|art|artwork|artistic|sketch\w*|render\w*|style|portrait|landscape|"
        r"logo|poster|wallpaper|cartoon|anime|watercolou?r|digital art|3d|photorealistic|"
        r"realistic|generate|create|design|concept art|scene|background|colou?rs?|"
        r"lighting|composition)\b"
    ),
)
COMPUTER_VISION_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(detect\w*|segment\w*|classif\w*|recogni[sz]\w*|identify|objects?|"
        r"bounding box\w*|image|images|photo|photos|picture|pictures|video|frames?|ocr|"
        r"faces?|facial|pose|keypoints?|yolo|opencv|cnn|convolution\w*|pixels?|camera|"
        r"scan\w*|label\w*|annotat\w*|track\w*)\b"
    ),
)
AUDIO_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(
        r"\b(audio|voice|voices|speech|speak\w*|spoken|transcri\w*|podcast\w*|music|songs?|"
        r"sounds?|tts|text-to-speech|speech-to-text|pronunciation|pronounce|accent|tone|"
        r"pitch|narrat\w*|record\w*|microphone|mp3|wav|noise|dictation|vocals?|dubbing)\b"
    ),
)

_CATEGORY_PATTERNS = {
    ModelCategory.DEVELOPMENT: DEVELOPMENT_PATTERNS,
    ModelCategory.TEXT_GENERATION: TEXT_GENERATION_PATTERNS,
    ModelCategory.DATA_ANALYSIS: DATA_ANALYSIS_PATTERNS,
    ModelCategory.IMAGE_GENERATION: IMAGE_GENERATION_PATTERNS,
    ModelCategory.COMPUTER_VISION: COMPUTER_VISION_PATTERNS,
    ModelCategory.AUDIO: AUDIO_PATTERNS,
}

# Labels ------------------------------------------------------------------------
MATH_LABEL = "math topics such as arithmetic, algebra, geometry, and problem solving"
FINANCE_LABEL = "personal finance topics such as budgeting, investing, retirement, loans, and taxes"
DEVELOPER_LABEL = "coding, debugging, and software topics"

_CATEGORY_LABELS = {
    ModelCategory.DEVELOPMENT: DEVELOPER_LABEL,
    ModelCategory.TEXT_GENERATION: "writing, editing, and text generation tasks",
    ModelCategory.DATA_ANALYSIS: "data analysis, statistics, and visualization questions",
    ModelCategory.IMAGE_GENERATION: "image generation prompts and visual art direction",
    ModelCategory.COMPUTER_VISION: "computer vision tasks such as detection, segmentation, and classification",
    ModelCategory.AUDIO: "audio, voice, and speech tasks",
    ModelCategory.FINANCE: FINANCE_LABEL,
}


def _turn_content(turn: Any) -> str:
    if isinstance(turn, dict):
        return str(turn.get("content", ""))
    return str(getattr(turn, "content", ""))


def _combined_context(text: str, recent_turns: Optional[Iterable[Any]]) -> str:
    turns = list(recent_turns or [])[-CONTEXT_WINDOW:]
    parts: List[str] = [text]
    parts.extend(_turn_content(turn).lower() for turn in turns)
    return "\n".join(parts)


def _any_match(patterns: Iterable[Pattern[str]], *texts: str) -> bool:
    return any(pattern.search(text) for pattern in patterns for text in texts)


def _matches_math(*texts: str) -> bool:
    return _any_match((MATH_TOPIC_PATTERN, ARITHMETIC_PATTERN, ARITHMETIC_WORD_PATTERN), *texts)


def _matches_finance(text: str) -> bool:
    return _any_match(FINANCE_TOPIC_PATTERNS, text)


def _token_count(text: str) -> int:
    return len(text.split())


def is_in_domain(model: ModelDescriptor, user_input: str, recent_turns: Optional[Iterable[Any]] = None) -> bool:
    """Return True when ``user_input`` belongs to the model's declared domain."""

    text = (user_input or "").lower()
    combined = _combined_context(text, recent_turns)
    description = (model.description or "").lower()
    kind = model.kind

    if MATH_ROLE_PATTERN.search(description) and kind is not ModelCategory.DEVELOPMENT:
        return _matches_math(text, combined)
    if FINANCE_ROLE_PATTERN.search(description):
        return _matches_finance(text)

    if DEVELOPER_ROLE_PATTERN.search(description) and _any_match(DEVELOPMENT_PATTERNS, text, combined):
        return True

    if kind not in _CATEGORY_PATTERNS:
        return True
    if kind is ModelCategory.TEXT_GENERATION and FINANCE_ROLE_PATTERN.search(description):
        return _matches_finance(text)
    if kind is ModelCategory.IMAGE_GENERATION and 0 < _token_count(text) <= SHORT_PROMPT_MAX_TOKENS:
        return True
    return _any_match(_CATEGORY_PATTERNS[kind], text, combined)


def domain_label(model: ModelDescriptor) -> str:
    """Describe the model's effective domain for refusal messages."""

    description = (model.description or "").lower()
    kind = model.kind
    if MATH_ROLE_PATTERN.search(description) and kind is not ModelCategory.DEVELOPMENT:
        return MATH_LABEL
    if FINANCE_ROLE_PATTERN.search(description):
        return FINANCE_LABEL
    if DEVELOPER_ROLE_PATTERN.search(description):
        return DEVELOPER_LABEL
    if kind is None:
        return f"{model.category or 'general'} tasks"
    return _CATEGORY_LABELS[kind]


def classify(
    model: ModelDescriptor,
    user_input: str,
    recent_turns: Optional[Iterable[Any]] = None,
) -> ClassificationDecision:
    return ClassificationDecision(
        in_domain=is_in_domain(model, user_input, recent_turns),
        domain_label=domain_label(model),
    )


def refusal_message(model: ModelDescriptor) -> str:
    return (
        f"I'm {model.name}, and I can only help with {domain_label(model)}. "
        "Could you rephrase your request so it fits that area?"
    )


__all__ = [
    "CONTEXT_WINDOW",
    "classify",
    "domain_label",
    "is_in_domain",
    "refusal_message",
]
