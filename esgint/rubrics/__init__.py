# esgint/rubrics/__init__.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from esgint.errors import ConfigurationError
from esgint.features.keywords import KeywordGate, fold
from esgint.features.patterns import Predicate


@dataclass(frozen=True)
class Document:
    """
    Immutable report text shared by every criterion of one analysis.
    The case-folded copy is computed once for the keyword gates.
    """
    text: str
    folded: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError(f"document text must be str, got {type(self.text).__name__}")
        object.__setattr__(self, "folded", fold(self.text))

    @classmethod
    def coerce(cls, value: Union["Document", str]) -> "Document":
        return value if isinstance(value, Document) else cls(value)


@dataclass
class TierAttempt:
    tier_index: int
    label: str
    matched: bool
    elapsed_ms: float


@dataclass
class CriterionTrace:
    """Per-criterion diagnostics of one analysis. Never affects the score."""
    criterion_id: str
    gate_open: Optional[bool] = None
    attempts: List[TierAttempt] = field(default_factory=list)
    score: Optional[float] = None
    elapsed_ms: float = 0.0

    @property
    def predicate_evaluations(self) -> int:
        return len(self.attempts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criterion_id": self.criterion_id,
            "gate_open": self.gate_open,
            "score": self.score,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "attempts": [
                {
                    "tier": a.tier_index,
                    "label": a.label,
                    "matched": a.matched,
                    "elapsed_ms": round(a.elapsed_ms, 3),
                }
                for a in self.attempts
            ],
        }


class CriterionEvaluator(Protocol):
    """Anything the analyzer can run for one criterion id."""
    criterion_id: str
    name: str

    def evaluate(self, document: Document, trace: Optional[CriterionTrace] = None, log: Any = None) -> float:
        ...


@dataclass(frozen=True)
class Tier:
    """One rung of a criterion's ladder: if `predicate` matches, score `score`."""
    predicate: Predicate
    score: float
    label: str = ""


@dataclass(frozen=True)
class CriterionDefinition:
    """
    Immutable definition of a hand-authored criterion: optional gate plus an
    ordered tier list. Tier order is the priority order; it is never sorted.
    """
    criterion_id: str
    name: str
    allowed_scores: Tuple[float, ...]
    tiers: Tuple[Tier, ...]
    gate: Optional[KeywordGate] = None
    description: str = ""

    def __post_init__(self) -> None:
        if 0.0 not in self.allowed_scores:
            raise ConfigurationError(f"{self.criterion_id}: allowed scores must include 0.0")
        if not self.tiers:
            raise ConfigurationError(f"{self.criterion_id}: at least one tier is required")
        for i, tier in enumerate(self.tiers):
            if tier.score not in self.allowed_scores:
                raise ConfigurationError(
                    f"{self.criterion_id}: tier {i} score {tier.score} not in {self.allowed_scores}"
                )

    @property
    def max_score(self) -> float:
        return max(self.allowed_scores)

    def evaluate(self, document: Document, trace: Optional[CriterionTrace] = None, log: Any = None) -> float:
        from esgint.rubrics.evaluator import evaluate_criterion

        return evaluate_criterion(self, document, trace=trace, log=log)

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.criterion_id,
            "name": self.name,
            "description": self.description,
            "allowed_scores": list(self.allowed_scores),
            "tiers": [{"label": t.label, "score": t.score} for t in self.tiers],
            "gate": list(self.gate.keywords) if self.gate else None,
        }
