"""
Turn a free-text instruction into GenerationOptions.

Each keyword family (size, background, style, lighting) governs exactly one
field. Within a family the keyword that appears earliest in the instruction
wins: "白色背景，不要蓝色" gives a white background. Families are independent of
each other, so their order in the text does not matter.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Iterable, Optional, Pattern, Tuple

from idphotoshop.core.models import GenerationOptions

logger = logging.getLogger(__name__)

BACKGROUND_COLORS = {
    "blue": "#1e40af",
    "red": "#dc2626",
    "white": "#ffffff",
    "black": "#000000",
}

_SIZE_KEYWORDS = (
    ("2寸", "2inch"), ("二寸", "2inch"), ("2inch", "2inch"), ("2-inch", "2inch"), ("two inch", "2inch"),
    ("护照", "passport"), ("passport", "passport"),
    ("1寸", "1inch"), ("一寸", "1inch"), ("1inch", "1inch"), ("1-inch", "1inch"), ("one inch", "1inch"),
)

_BACKGROUND_KEYWORDS = (
    ("蓝色", BACKGROUND_COLORS["blue"]), ("蓝底", BACKGROUND_COLORS["blue"]), ("blue", BACKGROUND_COLORS["blue"]),
    ("红色", BACKGROUND_COLORS["red"]), ("红底", BACKGROUND_COLORS["red"]), ("red", BACKGROUND_COLORS["red"]),
    ("白色", BACKGROUND_COLORS["white"]), ("白底", BACKGROUND_COLORS["white"]), ("white", BACKGROUND_COLORS["white"]),
    ("黑色", BACKGROUND_COLORS["black"]), ("黑底", BACKGROUND_COLORS["black"]), ("black", BACKGROUND_COLORS["black"]),
)

_STYLE_KEYWORDS = (
    ("休闲", "casual"), ("casual", "casual"),
    ("传统", "traditional"), ("traditional", "traditional"),
    ("商务", "professional"), ("专业", "professional"), ("professional", "professional"),
)

_LIGHTING_KEYWORDS = (
    ("自然", "natural"), ("natural", "natural"),
    ("明亮", "bright"), ("bright", "bright"),
    ("影棚", "studio"), ("studio", "studio"),
)

_ACTION_VERBS = ("生成", "创建", "制作", "调整", "generate", "create", "make", "adjust")


def _keyword_pattern(keyword: str) -> str:
    escaped = re.escape(keyword)
    if keyword.isascii():
        # English words must not be part of a longer word ("bored" is not "red").
        return rf"(?<![a-z]){escaped}(?![a-z])"
    return escaped


def _compile_family(keywords: Iterable[Tuple[str, str]]) -> Tuple[Pattern[str], dict[str, str]]:
    table = {kw.lower(): value for kw, value in keywords}
    # re.search returns the leftmost match, which is the earliest keyword.
    pattern = re.compile("|".join(_keyword_pattern(kw) for kw in table))
    return pattern, table


_SIZE = _compile_family(_SIZE_KEYWORDS)
_BACKGROUND = _compile_family(_BACKGROUND_KEYWORDS)
_STYLE = _compile_family(_STYLE_KEYWORDS)
_LIGHTING = _compile_family(_LIGHTING_KEYWORDS)
_ACTION = re.compile("|".join(_keyword_pattern(v) for v in _ACTION_VERBS))


def _first_match(text: str, family: Tuple[Pattern[str], dict[str, str]]) -> Optional[str]:
    pattern, table = family
    m = pattern.search(text)
    if m is None:
        return None
    return table[m.group(0)]


def parse_instruction(instruction: Optional[str]) -> GenerationOptions:
    """
    Parse an instruction such as "生成2寸证件照，蓝色背景".

    Never fails: unrecognised text yields GenerationOptions() defaults.
    """
    options = GenerationOptions()
    text = (instruction or "").lower()
    if not text.strip():
        return options

    size = _first_match(text, _SIZE)
    if size is not None:
        options = replace(options, size=size)

    color = _first_match(text, _BACKGROUND)
    if color is not None:
        options = replace(options, background_color=color)

    style = _first_match(text, _STYLE)
    if style is not None:
        options = replace(options, style=style)

    lighting = _first_match(text, _LIGHTING)
    if lighting is not None:
        options = replace(options, lighting=lighting)

    logger.debug("Parsed instruction %r -> %s", instruction, options)
    return options


def is_action_intent(text: Optional[str]) -> bool:
    """True when the text asks for a photo to be generated or adjusted."""
    return bool(text) and _ACTION.search(text.lower()) is not None
