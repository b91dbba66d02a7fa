# esgint/rubrics/analyzer.py
"""
Scoring orchestrator: runs every criterion once over one document.

Criteria are independent. They may run sequentially or on a thread pool; the
result is the same either way. Each criterion writes only to its own trace, and
the result object is built only after every score is in, so a caller sees a
complete ESGAnalysisResult or an exception, never a partial mapping.
"""

from __future__ import annotations

import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from esgint.errors import AnalysisTimeout, ConfigurationError
from esgint.logs import get_logger
from esgint.rubrics import CriterionTrace, Document
from esgint.rubrics.criteria import BUILTIN_CRITERIA
from esgint.rubrics.result import FIELD_REGISTRY, ESGAnalysisResult, bind_evaluators
from esgint.rubrics.variants import load_rule_file

logger = get_logger(__name__)


@dataclass
class AnalysisReport:
    """Result of one analysis plus per-criterion diagnostics."""
    result: ESGAnalysisResult
    traces: Dict[str, CriterionTrace] = field(default_factory=dict)
    elapsed_ms: float = 0.0

    @property
    def predicate_evaluations(self) -> int:
        return sum(t.predicate_evaluations for t in self.traces.values())

    def to_dict(self, *, include_traces: bool = False) -> Dict[str, Any]:
        out = self.result.to_dict()
        out["elapsed_ms"] = round(self.elapsed_ms, 2)
        if include_traces:
            out["traces"] = {cid: t.to_dict() for cid, t in self.traces.items()}
        return out


class ESGAnalyzer:
    """
    Holds the immutable, bound set of criterion evaluators.

    Safe to share between concurrent analyses: analyze() keeps all of its
    state in locals and in the per-call traces.
    """

    def __init__(
        self,
        evaluators: Sequence[Any],
        *,
        max_workers: int = 1,
        timeout_s: Optional[float] = None,
        strict: bool = False,
        log: Any = None,
    ):
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")
        if timeout_s is not None and timeout_s <= 0:
            raise ConfigurationError(f"timeout_s must be positive, got {timeout_s}")

        bound = bind_evaluators(evaluators, strict=strict, log=log)
        missing = [cid for cid in FIELD_REGISTRY if cid not in bound]
        if missing:
            raise ConfigurationError(f"no evaluator for criteria: {', '.join(missing)}")

        # Result-field order, not registration order.
        self.evaluators = {cid: bound[cid] for cid in FIELD_REGISTRY}
        self.max_workers = max_workers
        self.timeout_s = timeout_s

    def describe(self) -> List[Dict[str, Any]]:
        return [ev.describe() for ev in self.evaluators.values()]

    def analyze(
        self,
        document: Union[Document, str],
        *,
        log: Any = None,
        timeout_s: Optional[float] = None,
    ) -> AnalysisReport:
        """
        Score `document` against every criterion.

        Raises AnalysisTimeout when the deadline passes before all criteria are
        scored, and CriterionEvaluationError when a predicate fails.
        """
        log = log or logger
        document = Document.coerce(document)
        timeout_s = self.timeout_s if timeout_s is None else timeout_s
        started = time.monotonic()
        deadline = None if timeout_s is None else started + timeout_s

        traces = {cid: CriterionTrace(cid) for cid in self.evaluators}

        if self.max_workers == 1:
            scores = self._run_sequential(document, traces, deadline, timeout_s, log)
        else:
            scores = self._run_pooled(document, traces, deadline, timeout_s, log)

        result = ESGAnalysisResult.from_scores(scores)
        elapsed_ms = (time.monotonic() - started) * 1000
        log.info(
            "analysis_completed",
            chars=len(document.text),
            total_score=round(result.total_score(), 4),
            elapsed_ms=round(elapsed_ms, 2),
            workers=self.max_workers,
        )
        return AnalysisReport(result=result, traces=traces, elapsed_ms=elapsed_ms)

    def _run_sequential(self, document, traces, deadline, timeout_s, log) -> Dict[str, float]:
        # Deadline is checked after every criterion, the last one included.
        scores: Dict[str, float] = {}
        for cid, ev in self.evaluators.items():
            scores[cid] = ev.evaluate(document, trace=traces[cid], log=log)
            if deadline is not None and time.monotonic() > deadline:
                log.warning("analysis_timeout", completed=len(scores), total=len(self.evaluators))
                raise AnalysisTimeout(timeout_s, len(scores), len(self.evaluators))
        return scores

    def _run_pooled(self, document, traces, deadline, timeout_s, log) -> Dict[str, float]:
        """
        Run criteria on a thread pool and wait until the deadline.

        On timeout, queued criteria are cancelled but criteria already running
        cannot be interrupted: their threads finish in the background and
        their scores are discarded. RE2 matching bounds how long that takes.
        """
        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="esg-criterion")
        try:
            futures: Dict[Future, str] = {
                pool.submit(ev.evaluate, document, traces[cid], log): cid
                for cid, ev in self.evaluators.items()
            }
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            done, pending = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)

            # Surface predicate failures before anything else.
            for fut in done:
                if fut.exception() is not None:
                    raise fut.exception()

            if pending:
                log.warning("analysis_timeout", completed=len(done), total=len(futures))
                raise AnalysisTimeout(timeout_s, len(done), len(futures))

            return {futures[fut]: fut.result() for fut in done}
        finally:
            pool.shutdown(wait=False, cancel_futures=True)


def build_analyzer(
    rules_path: Optional[Union[str, Path]] = None,
    *,
    score_label: Optional[str] = None,
    strict: bool = False,
    max_workers: int = 1,
    timeout_s: Optional[float] = None,
    log: Any = None,
) -> ESGAnalyzer:
    """
    Built-in criteria, with each criterion that the rule file defines replaced
    by the file's variant group. Rule-file criteria without a result field are
    warned about and ignored (or rejected with `strict=True`).
    """
    evaluators: List[Any] = list(BUILTIN_CRITERIA)
    if rules_path:
        evaluators.extend(load_rule_file(rules_path, label=score_label, log=log))
    return ESGAnalyzer(evaluators, max_workers=max_workers, timeout_s=timeout_s, strict=strict, log=log)
