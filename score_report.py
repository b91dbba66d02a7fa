# score_report.py

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from esgint.errors import AnalysisTimeout, ConfigurationError, CriterionEvaluationError
from esgint.extract.pdf_text import extract_pdf_text
from esgint.extract.quality import text_quality_ok
from esgint.logs import configure_logging
from esgint.rubrics.analyzer import AnalysisReport, build_analyzer
from esgint.rubrics.result import FIELD_REGISTRY, TOTAL_SCORE_CRITERIA


def print_verdict(report: AnalysisReport, *, show_trace: bool = False) -> None:
    """
    Human-readable score table. Criteria outside the total are marked.
    """
    result = report.result
    print("\n" + "=" * 60)
    for cid, field_name in FIELD_REGISTRY.items():
        mark = " " if cid in TOTAL_SCORE_CRITERIA else "*"
        print(f"{cid:>4}{mark} {field_name:<28} {result.score(cid):>5.2f}")
        if show_trace:
            trace = report.traces[cid]
            if trace.gate_open is False:
                print("        gate closed")
            for a in trace.attempts:
                print(f"        tier {a.tier_index} {a.label:<36} {'MATCH' if a.matched else '-':<5} {a.elapsed_ms:.2f} ms")
    print("-" * 60)
    print(f"TOTAL ({'+'.join(TOTAL_SCORE_CRITERIA)}): {result.total_score():.2f}")
    print("* not part of the total")
    print(f"Elapsed: {report.elapsed_ms:.1f} ms, predicate evaluations: {report.predicate_evaluations}")
    print("=" * 60 + "\n")


def read_document(path: str, *, max_pages: int | None = None) -> str:
    if path.lower().endswith(".pdf"):
        return extract_pdf_text(path, max_pages=max_pages).text
    return Path(path).read_text(encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Score a report (PDF or text file) against the climate-disclosure criteria.")
    parser.add_argument("path", help="Path to a PDF or UTF-8 text file")
    parser.add_argument("--rules", default=None, help="YAML/JSON variant rule file overriding built-in criteria")
    parser.add_argument("--label", default=None, help="Score label to use from rule-file score mappings")
    parser.add_argument("--strict", action="store_true", help="Fail on rule-file criteria without a result field")
    parser.add_argument("--timeout", type=float, default=None, help="Whole-document deadline in seconds")
    parser.add_argument("--workers", type=int, default=1, help="Threads used to score criteria in parallel")
    parser.add_argument("--max-pages", type=int, default=None, help="Only read the first N PDF pages")
    parser.add_argument("--trace", action="store_true", help="Show per-tier trace")
    parser.add_argument("--log-level", default="WARNING", help="structlog level (DEBUG shows every tier)")
    parser.add_argument("--no-json", action="store_true", help="Do not print JSON output")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        analyzer = build_analyzer(
            args.rules,
            score_label=args.label,
            strict=args.strict,
            max_workers=args.workers,
            timeout_s=args.timeout,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    text = read_document(args.path, max_pages=args.max_pages)
    quality = text_quality_ok(text)
    if not quality.ok:
        print(f"Warning: extracted text looks poor ({quality.reason}): {quality.metrics}", file=sys.stderr)

    try:
        report = analyzer.analyze(text)
    except AnalysisTimeout as e:
        print(f"Timeout: {e}", file=sys.stderr)
        return 3
    except CriterionEvaluationError as e:
        print(f"Evaluation error: {e}", file=sys.stderr)
        return 4

    print_verdict(report, show_trace=args.trace)

    if not args.no_json:
        print(json.dumps(report.to_dict(include_traces=args.trace), indent=2, ensure_ascii=False))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
