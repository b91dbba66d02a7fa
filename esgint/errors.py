# esgint/errors.py
"""
Error taxonomy for the scoring engine.

Configuration faults are raised while rules load (before any document is
seen). Evaluation faults and timeouts are raised per analysis and are never
folded into a 0 score.
"""

from __future__ import annotations

from typing import Optional


class ConfigurationError(Exception):
    """Invalid pattern, malformed rule file or unresolvable criterion binding."""


class PatternError(ConfigurationError):
    def __init__(self, label: str, source: str, reason: str):
        self.label = label
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid pattern {label!r}: {reason}")


class RuleFileError(ConfigurationError):
    def __init__(self, path: str, message: str, *, entry: Optional[int] = None, criterion_id: Optional[str] = None):
        self.path = path
        self.entry = entry
        self.criterion_id = criterion_id
        where = path
        if entry is not None:
            where += f" entry #{entry}"
        if criterion_id:
            where += f" ({criterion_id})"
        super().__init__(f"{where}: {message}")


class CriterionEvaluationError(Exception):
    """A predicate raised while matching. Identifies the criterion and tier."""

    def __init__(self, criterion_id: str, tier_index: Optional[int], cause: BaseException):
        self.criterion_id = criterion_id
        self.tier_index = tier_index
        self.cause = cause
        tier = "gate" if tier_index is None else f"tier {tier_index}"
        super().__init__(f"Criterion {criterion_id} failed at {tier}: {cause!r}")


class AnalysisTimeout(Exception):
    """The whole-document deadline expired before every criterion was scored."""

    def __init__(self, timeout_s: float, completed: int, total: int):
        self.timeout_s = timeout_s
        self.completed = completed
        self.total = total
        super().__init__(
            f"Analysis exceeded {timeout_s:.3f}s ({completed}/{total} criteria scored)"
        )
