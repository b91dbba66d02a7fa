# esgint/extract/quality.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class TextQuality:
    ok: bool
    reason: str
    metrics: Dict[str, Any]


def text_quality_ok(
    text: str,
    *,
    min_chars: int = 800,
    min_letter_ratio: float = 0.25,
) -> TextQuality:
    """
    Flag extracted text that is unlikely to carry a real report.

    A scanned PDF without a text layer yields almost nothing, and every
    criterion then scores 0. The flag is reported next to the scores so such
    a result can be told apart from a report that discloses nothing; it never
    changes a score.

    Letters are counted with str.isalpha so Polish diacritics count.
    """
    if not text:
        return TextQuality(ok=False, reason="empty_text", metrics={"chars": 0, "letters": 0, "letter_ratio": 0.0})

    chars = len(text)
    letters = sum(1 for ch in text if ch.isalpha())
    ratio = letters / max(1, chars)
    metrics = {"chars": chars, "letters": letters, "letter_ratio": round(ratio, 4)}

    if chars < min_chars:
        return TextQuality(ok=False, reason="too_short", metrics={**metrics, "min_chars": min_chars})

    if ratio < min_letter_ratio:
        return TextQuality(ok=False, reason="low_letter_ratio", metrics={**metrics, "min_letter_ratio": min_letter_ratio})

    return TextQuality(ok=True, reason="ok", metrics=metrics)
