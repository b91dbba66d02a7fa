# esgint/features/keywords.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from esgint.errors import ConfigurationError


def fold(text: str) -> str:
    """Case-fold text once per document so gate checks are plain substring tests."""
    return (text or "").casefold()


@dataclass(frozen=True)
class KeywordGate:
    """
    Cheap pre-filter for one criterion.

    Keywords are literal substrings matched case-insensitively. If none occurs,
    the criterion scores 0 without running a single pattern, so the keyword set
    must be an under-approximation: every tier that can score above 0 has to
    require at least one of these keywords.
    """
    keywords: Tuple[str, ...]

    def __post_init__(self) -> None:
        folded = tuple(fold(k) for k in self.keywords)
        if not folded or any(not k.strip() for k in folded):
            raise ConfigurationError(f"gate keywords must be non-empty strings: {self.keywords!r}")
        object.__setattr__(self, "keywords", folded)

    @classmethod
    def of(cls, *keywords: str) -> "KeywordGate":
        return cls(keywords=tuple(keywords))

    def is_open(self, folded_text: str) -> bool:
        return any(k in folded_text for k in self.keywords)

    def hits(self, folded_text: str) -> List[str]:
        return gate_hits(folded_text, self.keywords)


def gate_hits(folded_text: str, keywords: Iterable[str]) -> List[str]:
    """
    Which gate keywords occur in the (already folded) text.
    Diagnostics only; scoring uses KeywordGate.is_open.
    """
    return [k for k in keywords if k in folded_text]
