# esgint/rubrics/evaluator.py
"""
Gate + first-match-wins evaluation of one criterion.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from esgint.errors import CriterionEvaluationError
from esgint.logs import get_logger
from esgint.rubrics import CriterionDefinition, CriterionTrace, Document, TierAttempt

logger = get_logger(__name__)


def evaluate_criterion(
    definition: CriterionDefinition,
    document: Document,
    *,
    trace: Optional[CriterionTrace] = None,
    log: Any = None,
) -> float:
    """
    Score one document against one criterion.

    1. A configured gate with no keyword present short-circuits to 0.0.
    2. Otherwise tiers run in declared order and the first match wins,
       even if a later tier would also match with a higher score.
    3. No match -> 0.0.

    Exceptions from a predicate are re-raised as CriterionEvaluationError
    identifying the tier; they never become a 0.
    """
    log = log or logger
    cid = definition.criterion_id
    started = time.perf_counter()

    score = 0.0
    gate_open = True
    if definition.gate is not None:
        gate_open = definition.gate.is_open(document.folded)

    if trace is not None:
        trace.gate_open = gate_open

    if not gate_open:
        log.debug("criterion_gate_closed", criterion=cid)
    else:
        for idx, tier in enumerate(definition.tiers):
            t0 = time.perf_counter()
            try:
                matched = tier.predicate.matches(document.text)
            except Exception as e:
                raise CriterionEvaluationError(cid, idx, e) from e
            elapsed_ms = (time.perf_counter() - t0) * 1000

            if trace is not None:
                trace.attempts.append(TierAttempt(idx, tier.label, matched, elapsed_ms))
            log.debug(
                "tier_evaluated",
                criterion=cid,
                tier=idx,
                label=tier.label,
                matched=matched,
                elapsed_ms=round(elapsed_ms, 3),
            )

            if matched:
                score = tier.score
                break

    if trace is not None:
        trace.score = score
        trace.elapsed_ms = (time.perf_counter() - started) * 1000
    return score
