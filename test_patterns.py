"""
Tests for pattern compilation, predicates and keyword gates.
"""

from __future__ import annotations

import time

import pytest

from esgint.errors import ConfigurationError, PatternError
from esgint.features.keywords import KeywordGate, fold, gate_hits
from esgint.features.patterns import Predicate, compile_pattern, predicate, strip_free_form
from esgint.rubrics import Document
from esgint.rubrics.criteria import BUILTIN_CRITERIA


class TestStripFreeForm:
    def test_drops_whitespace_and_comments(self) -> None:
        source = """
            \\bscope   # the word
            \\s* 1     # and the number
        """
        assert strip_free_form(source) == r"\bscope\s*1"

    def test_escaped_space_and_hash_are_literal(self) -> None:
        assert strip_free_form("a \\ b # comment\n c") == "a bc"
        assert strip_free_form(r"no\#1") == "no#1"

    def test_character_classes_are_copied_verbatim(self) -> None:
        assert strip_free_form("[ a#] x") == "[ a#]x"
        assert strip_free_form("[[:alpha:] ]+") == "[[:alpha:] ]+"
        assert strip_free_form("[]a] b") == "[]a]b"


class TestCompilePattern:
    def test_case_insensitive_and_dot_spans_lines(self) -> None:
        pat = compile_pattern(r"scope .* 3", label="s3")
        assert pat.search("SCOPE 1\nand Scope 3")
        assert pat.label == "s3"
        assert pat.expression == r"scope.*3"

    def test_polish_stem_matches_inflections(self) -> None:
        pat = compile_pattern(r"\bemisj\pL*")
        assert pat.search("Emisje gazów cieplarnianych")
        assert pat.search("poziom emisji")
        assert not pat.search("remisja")

    def test_invalid_pattern_raises(self) -> None:
        with pytest.raises(PatternError) as exc:
            compile_pattern("(unclosed", label="bad")
        assert exc.value.label == "bad"
        assert isinstance(exc.value, ConfigurationError)

    def test_lookaround_is_rejected(self) -> None:
        with pytest.raises(PatternError):
            compile_pattern(r"(?=.*scope)emissions")

    def test_empty_pattern_raises(self) -> None:
        with pytest.raises(PatternError, match="empty"):
            compile_pattern("   # only a comment")

    def test_non_string_raises(self) -> None:
        with pytest.raises(PatternError, match="must be a string"):
            compile_pattern(42)  # type: ignore[arg-type]


class TestPredicate:
    def test_all_patterns_required_in_any_order(self) -> None:
        pred = predicate(r"\bscope\s*2\b", r"\bscope\s*1\b", label="t")
        assert pred.matches("Scope 1 ... later ... Scope 2")
        assert pred.matches("Scope 2 first, then Scope 1")
        assert not pred.matches("Scope 1 only")

    def test_unless_pattern_blocks_match(self) -> None:
        pred = predicate(r"\bscope\s*1\b", unless=[r"\bnot\s+reported\b"], label="t")
        assert pred.matches("Scope 1 is reported.")
        assert not pred.matches("Scope 1 is not reported.")

    def test_labels_identify_the_pattern(self) -> None:
        pred = predicate("a", "b", unless=["c"], label="C9.x")
        assert [p.label for p in pred.all_of] == ["C9.x+0", "C9.x+1"]
        assert [p.label for p in pred.none_of] == ["C9.x-0"]

    def test_predicate_requires_a_pattern(self) -> None:
        with pytest.raises(ConfigurationError):
            Predicate(all_of=())

    def test_matching_is_deterministic(self) -> None:
        pred = predicate(r"\bclimate\b", r"\d+\s*%")
        text = "Climate target: 42 % lower by 2030."
        assert {pred.matches(text) for _ in range(5)} == {True}


class TestKeywordGate:
    def test_keywords_are_case_folded(self) -> None:
        gate = KeywordGate.of("Scope", "ZAKRES")
        assert gate.keywords == ("scope", "zakres")
        assert gate.is_open(fold("SCOPE 1 emissions"))
        assert gate.is_open(fold("Zakres 2"))
        assert not gate.is_open(fold("Emissions overview"))

    def test_keyword_is_a_substring_match(self) -> None:
        gate = KeywordGate.of("emisj")
        assert gate.is_open(fold("Emisje bezpośrednie"))

    def test_hits_lists_present_keywords(self) -> None:
        gate = KeywordGate.of("gwp", "warming", "ipcc")
        assert gate.hits(fold("GWP values from IPCC AR6")) == ["gwp", "ipcc"]
        assert gate_hits("nothing here", ["gwp"]) == []

    @pytest.mark.parametrize("keywords", [(), ("",), ("  ",)])
    def test_empty_keywords_are_rejected(self, keywords) -> None:
        with pytest.raises(ConfigurationError):
            KeywordGate(keywords=keywords)


class TestMatchingCost:
    def test_nested_repetition_stays_linear(self) -> None:
        pat = compile_pattern(r"(a+)+$")
        text = "a" * 200_000 + "!"
        started = time.perf_counter()
        assert not pat.search(text)
        assert time.perf_counter() - started < 2.0

    def test_large_repetitive_report(self) -> None:
        # Every gate open, near-misses for most tiers, about 1 MB of text
        chunk = (
            "Scope 1 emissions climate change risk policy strategy GHG protocol "
            "intensity gwp warming co2 2021 target reduce member of the board "
        )
        document = Document(chunk * (1_000_000 // len(chunk)))
        started = time.perf_counter()
        scores = [c.evaluate(document) for c in BUILTIN_CRITERIA]
        assert time.perf_counter() - started < 30.0
        assert len(scores) == len(BUILTIN_CRITERIA)
