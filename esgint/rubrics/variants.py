# esgint/rubrics/variants.py
"""
Data-driven criteria: variant rule sets loaded from an external YAML/JSON file.

Each entry of the file is one variant of one criterion:

    criteria:
      - id: C4
        name: Emissions scope
        variant: full_disclosure
        include: ['\\bscope\\s*1\\b', '\\bscope\\s*2\\b']   # all must match
        exclude: ['\\bnot\\s+reported\\b']               # any match disqualifies
        scores: {default: 1.0, strict: 0.75}
        gate: [scope, zakres]                           # optional

Variants sharing a criterion id form a group. A group's score is the highest
score among variants whose exclude patterns are all absent and whose include
patterns are all present; 0.0 if none qualifies.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from esgint.errors import CriterionEvaluationError, PatternError, RuleFileError
from esgint.features.keywords import KeywordGate
from esgint.features.patterns import Pattern, compile_pattern
from esgint.logs import get_logger
from esgint.rubrics import CriterionTrace, Document, TierAttempt

logger = get_logger(__name__)

DEFAULT_LABEL = "default"


# =============================================================================
# RULE FILE SCHEMA
# =============================================================================

class VariantRuleEntry(BaseModel):
    """One entry of a rule file, as written by a rule author."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Criterion id, e.g. C4")
    name: str = Field(..., min_length=1)
    variant: Optional[str] = None
    include: List[str] = Field(..., min_length=1)
    exclude: List[str] = Field(default_factory=list)
    scores: Dict[str, float]
    gate: Optional[List[str]] = None

    @field_validator("id")
    @classmethod
    def _normalise_id(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("criterion id is blank")
        return v

    @field_validator("scores")
    @classmethod
    def _check_scores(cls, v: Dict[str, float]) -> Dict[str, float]:
        if DEFAULT_LABEL not in v:
            raise ValueError(f"scores must define a '{DEFAULT_LABEL}' entry")
        for label, score in v.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"score {label!r}={score} outside [0, 1]")
        return v

    @field_validator("gate")
    @classmethod
    def _check_gate(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is not None and (not v or any(not k.strip() for k in v)):
            raise ValueError("gate must list non-empty keywords")
        return v


# =============================================================================
# COMPILED RULES
# =============================================================================

@dataclass(frozen=True, eq=False)
class VariantRule:
    criterion_id: str
    variant: str
    name: str
    include: Tuple[Pattern, ...]
    exclude: Tuple[Pattern, ...]
    scores: Mapping[str, float]
    gate: Optional[Tuple[str, ...]] = None

    def score_for(self, label: Optional[str] = None) -> float:
        """Score for a named label, falling back to the 'default' entry."""
        if label is not None and label in self.scores:
            return self.scores[label]
        return self.scores[DEFAULT_LABEL]

    def contribution(self, text: str, label: Optional[str] = None) -> Optional[float]:
        """Mapped score if this variant qualifies on `text`, else None."""
        for pat in self.exclude:
            if pat.search(text):
                return None
        for pat in self.include:
            if not pat.search(text):
                return None
        return self.score_for(label)


@dataclass(frozen=True, eq=False)
class VariantGroup:
    """All variants of one criterion id. Same evaluate() shape as a built-in criterion."""
    criterion_id: str
    name: str
    variants: Tuple[VariantRule, ...]
    label: Optional[str] = None
    gate: Optional[KeywordGate] = field(default=None)

    @classmethod
    def from_variants(cls, variants: Sequence[VariantRule], *, label: Optional[str] = None) -> "VariantGroup":
        first = variants[0]
        gate = None
        # A group gate is only safe if every variant declares one.
        if all(v.gate for v in variants):
            keywords: List[str] = []
            for v in variants:
                keywords.extend(k for k in v.gate if k not in keywords)
            gate = KeywordGate(tuple(keywords))
        return cls(
            criterion_id=first.criterion_id,
            name=first.name,
            variants=tuple(variants),
            label=label,
            gate=gate,
        )

    def evaluate(self, document: Document, trace: Optional[CriterionTrace] = None, log: Any = None) -> float:
        log = log or logger
        started = time.perf_counter()
        cid = self.criterion_id

        gate_open = self.gate.is_open(document.folded) if self.gate is not None else True
        if trace is not None:
            trace.gate_open = gate_open

        best = 0.0
        if not gate_open:
            log.debug("criterion_gate_closed", criterion=cid)
        else:
            for idx, variant in enumerate(self.variants):
                t0 = time.perf_counter()
                try:
                    contributed = variant.contribution(document.text, self.label)
                except Exception as e:
                    raise CriterionEvaluationError(cid, idx, e) from e
                elapsed_ms = (time.perf_counter() - t0) * 1000

                if trace is not None:
                    trace.attempts.append(TierAttempt(idx, variant.variant, contributed is not None, elapsed_ms))
                log.debug(
                    "variant_evaluated",
                    criterion=cid,
                    variant=variant.variant,
                    qualified=contributed is not None,
                    score=contributed,
                    elapsed_ms=round(elapsed_ms, 3),
                )
                if contributed is not None and contributed > best:
                    best = contributed

        if trace is not None:
            trace.score = best
            trace.elapsed_ms = (time.perf_counter() - started) * 1000
        return best

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.criterion_id,
            "name": self.name,
            "source": "rule_file",
            "label": self.label,
            "variants": [
                {
                    "variant": v.variant,
                    "include": len(v.include),
                    "exclude": len(v.exclude),
                    "score": v.score_for(self.label),
                }
                for v in self.variants
            ],
            "gate": list(self.gate.keywords) if self.gate else None,
        }


# =============================================================================
# LOADING
# =============================================================================

def _read_rule_file(path: Path) -> Any:
    if not path.is_file():
        raise RuleFileError(str(path), "rule file not found")
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RuleFileError(str(path), f"cannot parse rule file: {e}") from e


def _entries(raw: Any, path: Path) -> List[Any]:
    if isinstance(raw, dict):
        if "criteria" not in raw:
            raise RuleFileError(str(path), "top-level 'criteria' list is missing")
        raw = raw["criteria"]
    if not isinstance(raw, list) or not raw:
        raise RuleFileError(str(path), "expected a non-empty list of criteria entries")
    return raw


def _compile_entry(rule_def: VariantRuleEntry, index: int, path: Path) -> VariantRule:
    variant = rule_def.variant or f"{rule_def.id}#{index}"
    try:
        include = tuple(
            compile_pattern(src, label=f"{rule_def.id}/{variant}/include[{i}]") for i, src in enumerate(rule_def.include)
        )
        exclude = tuple(
            compile_pattern(src, label=f"{rule_def.id}/{variant}/exclude[{i}]") for i, src in enumerate(rule_def.exclude)
        )
    except PatternError as e:
        raise RuleFileError(str(path), str(e), entry=index, criterion_id=rule_def.id) from e

    return VariantRule(
        criterion_id=rule_def.id,
        variant=variant,
        name=rule_def.name,
        include=include,
        exclude=exclude,
        scores=dict(rule_def.scores),
        gate=tuple(rule_def.gate) if rule_def.gate else None,
    )


def parse_rules(raw: Any, *, path: Union[str, Path] = "<rules>") -> List[VariantRule]:
    """Validate and compile already-parsed rule data. Fails on the first bad entry."""
    path = Path(path)
    rules: List[VariantRule] = []
    seen = set()

    for index, entry in enumerate(_entries(raw, path), start=1):
        if not isinstance(entry, dict):
            raise RuleFileError(str(path), "entry must be a mapping", entry=index)
        try:
            rule_def = VariantRuleEntry.model_validate(entry)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'entry'}: {err['msg']}" for err in e.errors()
            )
            raise RuleFileError(
                str(path), problems, entry=index, criterion_id=str(entry.get("id") or "") or None
            ) from e

        rule = _compile_entry(rule_def, index, path)
        key = (rule.criterion_id, rule.variant)
        if key in seen:
            raise RuleFileError(
                str(path), f"duplicate variant {rule.variant!r}", entry=index, criterion_id=rule.criterion_id
            )
        seen.add(key)
        rules.append(rule)

    return rules


def group_rules(rules: Sequence[VariantRule], *, label: Optional[str] = None) -> List[VariantGroup]:
    """Group variants by criterion id, keeping first-appearance order."""
    by_id: Dict[str, List[VariantRule]] = {}
    for rule in rules:
        by_id.setdefault(rule.criterion_id, []).append(rule)
    return [VariantGroup.from_variants(vs, label=label) for vs in by_id.values()]


def load_rule_file(
    path: Union[str, Path],
    *,
    label: Optional[str] = None,
    log: Any = None,
) -> List[VariantGroup]:
    """
    Read, validate and compile a rule file into variant groups.

    Raises RuleFileError for a missing/unparsable file or any invalid entry.
    """
    log = log or logger
    path = Path(path)
    rules = parse_rules(_read_rule_file(path), path=path)
    groups = group_rules(rules, label=label)
    log.info(
        "rule_file_loaded",
        path=str(path),
        criteria=len(groups),
        variants=len(rules),
        label=label or DEFAULT_LABEL,
    )
    return groups


def evaluate_variants(
    document: Union[Document, str],
    groups: Sequence[VariantGroup],
    *,
    log: Any = None,
) -> Dict[str, float]:
    """Score every group on one document: criterion id -> score."""
    document = Document.coerce(document)
    return {g.criterion_id: g.evaluate(document, log=log) for g in groups}
