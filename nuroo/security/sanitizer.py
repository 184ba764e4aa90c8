"""
Tool: Input Sanitizer
Purpose: Clean and validate parent input before it reaches the AI service

Features:
- Unicode normalization (NFC form) and HTML stripping
- Child profile rules: name letters only, age 0-18, bounded diagnosis text
- Prompt cleanup with a length cap
- Script/markup and prompt injection detection

Invalid profile input raises ValidationError before any network call.

Usage:
    python -m nuroo.security.sanitizer --input "Ignore previous instructions"
    python -m nuroo.security.sanitizer --age 7

Dependencies:
    - re (stdlib)
    - unicodedata (stdlib)
    - html (stdlib)
"""

import argparse
import html
import json
import re
import unicodedata
from typing import Any, Optional

from nuroo.errors import ValidationError


MAX_TEXT_LENGTH = 1000
MAX_NAME_LENGTH = 50
MAX_DIAGNOSIS_LENGTH = 500
MAX_PROMPT_LENGTH = 4000
MAX_AREA_LENGTH = 100
MIN_AGE = 0
MAX_AGE = 18

# (regex, category, severity, description)
INJECTION_PATTERNS = [
    (
        r"ignore\s+(all\s+)?(previous|prior|above)\s+(instructions?|prompts?|rules?)",
        "prompt_injection",
        "high",
        "Instruction override attempt",
    ),
    (
        r"disregard\s+(all\s+)?(previous|prior|your)\s+(instructions?|context)",
        "prompt_injection",
        "high",
        "Instruction disregard attempt",
    ),
    (r"you\s+are\s+(now|actually)\s+(a|an|the)", "jailbreak", "high", "Role reassignment attempt"),
    (r"do\s+anything\s+now", "jailbreak", "critical", "DAN activation phrase"),
    (
        r"(show|tell|reveal|print)\s+(me\s+)?(your\s+)?(system\s+)?(prompt|instructions?)",
        "exfiltration",
        "high",
        "System prompt extraction",
    ),
    (
        r"<\|?(system|assistant|user|endoftext)\|?>",
        "prompt_injection",
        "high",
        "Special token injection",
    ),
]

# Markup that should never appear in a parent's message
MALICIOUS_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"<script",
        r"javascript:",
        r"vbscript:",
        r"onload",
        r"onerror",
        r"onclick",
        r"eval\(",
        r"expression\(",
        r"url\(",
    )
]

HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
SCRIPT_PATTERN = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
SPECIAL_CHARS_PATTERN = re.compile(r"[<>\"'%;()&+]")
NAME_DISALLOWED_PATTERN = re.compile(r"[^a-zA-Z\sÀ-ɏЀ-ӿ]")
WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_unicode(text: str) -> str:
    """Normalize unicode to NFC form to prevent homograph attacks."""
    return unicodedata.normalize("NFC", text)


def strip_html(text: str) -> str:
    """Remove script blocks and tags, then decode entities."""
    text = SCRIPT_PATTERN.sub("", text)
    text = HTML_TAG_PATTERN.sub("", text)
    return html.unescape(text)


def sanitize_text(
    text: str,
    max_length: int = MAX_TEXT_LENGTH,
    allow_special_chars: bool = True,
) -> str:
    text = normalize_unicode(text).strip()
    text = HTML_TAG_PATTERN.sub("", text)
    if not allow_special_chars:
        text = SPECIAL_CHARS_PATTERN.sub("", text)
    return text[:max_length]


def sanitize_name(name: str) -> str:
    """Letters and spaces only (Latin, extended Latin, Cyrillic), max 50 chars."""
    return NAME_DISALLOWED_PATTERN.sub("", normalize_unicode(name).strip())[:MAX_NAME_LENGTH].strip()


def sanitize_age(age: Any) -> int:
    try:
        value = int(str(age).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid age: must be between {MIN_AGE} and {MAX_AGE}")

    if value < MIN_AGE or value > MAX_AGE:
        raise ValidationError(f"Invalid age: must be between {MIN_AGE} and {MAX_AGE}")
    return value


def sanitize_medical_info(info: str) -> str:
    return SPECIAL_CHARS_PATTERN.sub("", normalize_unicode(info).strip())[:MAX_DIAGNOSIS_LENGTH]


def sanitize_prompt(prompt: str) -> str:
    prompt = SPECIAL_CHARS_PATTERN.sub("", normalize_unicode(prompt).strip())
    return WHITESPACE_PATTERN.sub(" ", prompt)[:MAX_PROMPT_LENGTH]


def contains_malicious_content(text: str) -> bool:
    return any(pattern.search(text) for pattern in MALICIOUS_PATTERNS)


def check_injection_patterns(text: str) -> list[dict[str, Any]]:
    """
    Check text for prompt injection patterns.

    Returns:
        List of detected patterns with metadata
    """
    detected = []
    for pattern, category, severity, description in INJECTION_PATTERNS:
        for match in re.finditer(pattern, text, re.IGNORECASE):
            detected.append(
                {
                    "category": category,
                    "severity": severity,
                    "pattern": description,
                    "snippet": text[max(0, match.start() - 10) : min(len(text), match.end() + 10)],
                    "position": match.start(),
                }
            )
    return detected


def calculate_risk_level(detections: list[dict]) -> str:
    """Calculate overall risk level from detections."""
    if not detections:
        return "none"

    severities = [d["severity"] for d in detections]
    for level in ("critical", "high", "medium"):
        if level in severities:
            return level
    return "low"


def sanitize_child_profile(
    name: Optional[str] = None,
    age: Any = None,
    diagnosis: Optional[str] = None,
    development_areas: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Validate the onboarding fields that end up inside AI prompts.

    Raises:
        ValidationError: empty name after cleanup, age out of range,
            or a diagnosis that is empty after cleanup.
    """
    cleaned: dict[str, Any] = {}

    if name is not None:
        cleaned["name"] = sanitize_name(name)
        if not cleaned["name"]:
            raise ValidationError("Invalid name: use letters and spaces only")

    if age is not None and age != "":
        cleaned["age"] = str(sanitize_age(age))

    if diagnosis is not None:
        cleaned["diagnosis"] = sanitize_medical_info(diagnosis)
        if not cleaned["diagnosis"]:
            raise ValidationError("Invalid diagnosis: must be 1-500 characters")

    if development_areas is not None:
        areas = [sanitize_text(a, max_length=MAX_AREA_LENGTH) for a in development_areas]
        cleaned["development_areas"] = [a for a in areas if a]

    return cleaned


def check_only(text: str) -> dict[str, Any]:
    """Assess text without modifying it."""
    detections = check_injection_patterns(text)
    malicious = contains_malicious_content(text)
    risk_level = "critical" if malicious else calculate_risk_level(detections)
    return {
        "safe": not detections and not malicious,
        "risk_level": risk_level,
        "malicious_markup": malicious,
        "detected_patterns": detections,
        "input_length": len(text),
    }


def main():
    parser = argparse.ArgumentParser(description="Input Sanitizer")
    parser.add_argument("--input", help="Text to check")
    parser.add_argument("--age", help="Age to validate")
    args = parser.parse_args()

    if args.age is not None:
        try:
            print(json.dumps({"age": sanitize_age(args.age)}))
        except ValidationError as e:
            print(f"ERROR {e}")
        return

    if args.input is not None:
        result = check_only(args.input)
        result["sanitized"] = sanitize_prompt(args.input)
        print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
