# esgint/rubrics/result.py
"""
Result mapping of one analysis and the criterion-id -> field registry.

Field names follow one convention: `<criterion id lower-cased>_<slug>`, e.g.
`c4_emissions_scope` belongs to criterion C4. The registry is derived from the
dataclass fields once, at import, and every binding of an evaluator or a rule
file entry goes through it.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from esgint.errors import ConfigurationError
from esgint.logs import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ESGAnalysisResult:
    """Scores of one report. Built in one step from a complete score mapping."""
    c1_policy_strategy: float
    c2_risks_and_chances: float
    c3_climate_governance: float
    c4_emissions_scope: float
    c5_emissions_boundary: float
    c6_calculation_standard: float
    c7_gwp_sources: float
    c8_emissions_trend: float
    c9_intensity_indicator: float
    c10_numeric_consistency: float
    c11_unit_correctness: float
    c12_keyword_presence: float

    @classmethod
    def from_scores(cls, scores: Dict[str, float]) -> "ESGAnalysisResult":
        """
        Build a result from a criterion id -> score mapping that covers every
        field. A missing id is an error, never an implicit 0.
        """
        missing = [cid for cid in FIELD_REGISTRY if cid not in scores]
        if missing:
            raise ValueError(f"scores missing for criteria: {', '.join(missing)}")
        return cls(**{name: float(scores[cid]) for cid, name in FIELD_REGISTRY.items()})

    def score(self, criterion_id: str) -> float:
        return getattr(self, FIELD_REGISTRY[criterion_id.upper()])

    def scores(self) -> Dict[str, float]:
        return {cid: getattr(self, name) for cid, name in FIELD_REGISTRY.items()}

    def total_score(self) -> float:
        return total_of(self.scores())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scores": self.scores(),
            "total_score": round(self.total_score(), 4),
            "total_score_criteria": list(TOTAL_SCORE_CRITERIA),
        }


def criterion_id_for_field(field_name: str) -> str:
    """`c10_numeric_consistency` -> `C10`."""
    return field_name.split("_", 1)[0].upper()


def _build_registry() -> Dict[str, str]:
    registry: Dict[str, str] = {}
    for f in fields(ESGAnalysisResult):
        cid = criterion_id_for_field(f.name)
        if cid in registry:
            raise ConfigurationError(f"fields {registry[cid]!r} and {f.name!r} both bind to {cid}")
        registry[cid] = f.name
    return registry


FIELD_REGISTRY: Dict[str, str] = _build_registry()

# Criteria summed into the total score. C11 and C12 are scored and reported
# but not part of the total; pending product-owner confirmation.
TOTAL_SCORE_CRITERIA: Tuple[str, ...] = ("C1", "C2", "C3", "C4", "C5", "C6", "C7", "C8", "C9", "C10")


def total_of(scores: Dict[str, float], subset: Sequence[str] = TOTAL_SCORE_CRITERIA) -> float:
    return sum(scores[cid] for cid in subset)


def resolve_field(criterion_id: str) -> Optional[str]:
    return FIELD_REGISTRY.get((criterion_id or "").strip().upper())


def bind_evaluators(
    evaluators: Iterable[Any],
    *,
    strict: bool = False,
    log: Any = None,
) -> Dict[str, Any]:
    """
    Bind evaluators to result fields by criterion id.

    Ids without a field are reported as configuration warnings and left out
    (rule sets may describe more criteria than the result has). With
    `strict=True` they raise ConfigurationError instead. A later evaluator for
    the same id replaces an earlier one.
    """
    log = log or logger
    bound: Dict[str, Any] = {}
    unbound: List[str] = []

    for ev in evaluators:
        cid = (ev.criterion_id or "").strip().upper()
        if cid not in FIELD_REGISTRY:
            unbound.append(ev.criterion_id)
            continue
        bound[cid] = ev

    if unbound:
        if strict:
            raise ConfigurationError(f"no result field for criteria: {', '.join(unbound)}")
        for cid in unbound:
            log.warning("unbound_criterion", criterion=cid, known=sorted(FIELD_REGISTRY))

    return bound
