"""
Answer Formatter
================

Post-processing applied to every answer before it leaves the API:

    sanitize_answer   drop "Answer:" / "Question:" prefixes and an echoed question
    replace_nulls     standalone "null" -> "n/a"
    strip_non_ascii   keep printable ASCII, tabs and newlines
    ensure_sentence   terminal punctuation + leading capital

Offline answers additionally get `label: value` lines bolded.
"""

import math
import re
from typing import Optional, Union

NO_RESPONSE = "No response generated."

_NULL_RE = re.compile(r"\bnull\b", re.IGNORECASE)
_NON_ASCII_RE = re.compile(r"[^\x09\x0A\x0D\x20-\x7E]")
_LEADING_LOWER_RE = re.compile(r"^(\s*[\"'`(\[]?)([a-z])")
_PREFIX_RE = re.compile(r"^(?:answer|question):\s*", re.IGNORECASE)
_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_BOLD_LINE_RE = re.compile(r"^(.*?:)\s*([^:]+)$")


def ensure_sentence(text: Optional[str]) -> str:
    trimmed = (text or "").strip()
    if not trimmed:
        return NO_RESPONSE
    if trimmed[-1] not in ".!?":
        trimmed = f"{trimmed}."
    return _LEADING_LOWER_RE.sub(lambda m: m.group(1) + m.group(2).upper(), trimmed, count=1)


def sanitize_answer(raw: Optional[str], question: str) -> str:
    """Remove prompt scaffolding the engine sometimes echoes back."""
    normalized_question = (question or "").strip().lower()
    text = (raw or "").strip()
    text = re.sub(r"^answer:\s*", "", text, flags=re.IGNORECASE)
    text = re.sub(r"^question:\s*", "", text, flags=re.IGNORECASE)

    lines = re.split(r"\r?\n", text)
    if lines and normalized_question:
        first = lines[0].strip()
        if first.lower() == normalized_question:
            lines.pop(0)
        elif first.lower().startswith(normalized_question):
            rest = _PREFIX_RE.sub("", first[len(normalized_question):].strip())
            if rest:
                lines[0] = rest
            else:
                lines.pop(0)

    cleaned = (_INLINE_SPACE_RE.sub(" ", line).strip() for line in lines)
    return "\n".join(line for line in cleaned if line)


def replace_nulls(text: str) -> str:
    return _NULL_RE.sub("n/a", text or "")


def strip_non_ascii(text: str) -> str:
    return _NON_ASCII_RE.sub("", text or "")


def format_answer(raw: Optional[str], question: str) -> str:
    """Full pipeline for engine output."""
    sanitized = sanitize_answer(raw, question)
    return ensure_sentence(replace_nulls(strip_non_ascii(sanitized)))


def apply_offline_bold(text: str) -> str:
    """`Label: value` -> `Label: **value**` unless already bold."""
    out = []
    for line in text.split("\n"):
        match = _BOLD_LINE_RE.match(line) if ":" in line else None
        if not match:
            out.append(line)
            continue
        label, value = match.group(1), match.group(2).strip()
        if "**" in value and value.rstrip(".!?").endswith("**"):
            out.append(line)
        else:
            out.append(f"{label} **{value}**")
    return "\n".join(out)


def format_offline_answer(text: str) -> str:
    return ensure_sentence(replace_nulls(strip_non_ascii(text)))


def normalize_question(question: str) -> str:
    """
    Casing/number-insensitive key for the answer log.

    "What's my avg on Game 3?" -> "whats my avg on game x"
    """
    text = (question or "").strip().lower()
    text = re.sub(r"\d+", "x", text)
    text = re.sub(r"[^a-z0-9\s]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def format_number(value: Union[int, float, None]) -> str:
    """200.0 -> "200", 201.67 -> "201.67"."""
    if value is None:
        return "n/a"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_rate(value: Optional[float]) -> str:
    """0.333 -> "33%"."""
    if value is None:
        return "n/a"
    return f"{math.floor(value * 100 + 0.5)}%"


def format_timing(ms: float) -> str:
    if ms is None or ms < 0:
        return "0ms"
    if ms < 1000:
        return f"{int(round(ms))}ms"
    return f"{ms / 1000:.2f}s"


def format_label_list(labels) -> Optional[str]:
    """["A"] -> "A", ["A", "B"] -> "A and B", ["A", "B", "C"] -> "A, B, and C"."""
    labels = list(labels)
    if not labels:
        return None
    if len(labels) == 1:
        return labels[0]
    if len(labels) == 2:
        return f"{labels[0]} and {labels[1]}"
    return f"{', '.join(labels[:-1])}, and {labels[-1]}"
