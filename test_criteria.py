"""
Tests for the criterion evaluator and the built-in criteria table.
"""

from __future__ import annotations

import pytest

from esgint.errors import ConfigurationError, CriterionEvaluationError
from esgint.features.keywords import KeywordGate
from esgint.features.patterns import Pattern, Predicate, predicate
from esgint.rubrics import CriterionDefinition, CriterionTrace, Document, Tier
from esgint.rubrics.criteria import BUILTIN_CRITERIA, get_criterion
from esgint.rubrics.evaluator import evaluate_criterion


SCENARIO_FULL_SCOPE = (
    "We report Scope 1, Scope 2 (location-based and market-based) "
    "and Scope 3 emissions in every relevant category."
)
SCENARIO_BASIC_SCOPE = "Scope 1 and Scope 2 emissions are disclosed."


def _score(criterion_id: str, text: str, trace: CriterionTrace = None) -> float:
    return get_criterion(criterion_id).evaluate(Document(text), trace=trace)


class _ExplodingRegex:
    def search(self, text):
        raise RuntimeError("matcher crashed")


class TestCriterionDefinition:
    def test_allowed_scores_must_include_zero(self) -> None:
        with pytest.raises(ConfigurationError, match="0.0"):
            CriterionDefinition("X1", "x", (0.5, 1.0), (Tier(predicate("a"), 1.0),))

    def test_tier_score_must_be_allowed(self) -> None:
        with pytest.raises(ConfigurationError, match="tier 0"):
            CriterionDefinition("X1", "x", (0.0, 1.0), (Tier(predicate("a"), 0.5),))

    def test_needs_a_tier(self) -> None:
        with pytest.raises(ConfigurationError):
            CriterionDefinition("X1", "x", (0.0, 1.0), ())

    def test_builtin_table_is_complete(self) -> None:
        ids = [c.criterion_id for c in BUILTIN_CRITERIA]
        assert ids == [f"C{i}" for i in range(1, 13)]
        for c in BUILTIN_CRITERIA:
            assert all(t.score in c.allowed_scores for t in c.tiers)
            assert c.max_score == 1.0

    def test_describe_lists_tiers_in_declared_order(self) -> None:
        info = get_criterion("c4").describe()
        assert info["id"] == "C4"
        assert [t["score"] for t in info["tiers"]] == [1.0, 0.75, 0.5, 0.25]
        assert info["gate"] == ["scope", "zakres"]


class TestEvaluator:
    def test_declared_order_wins_over_higher_score(self) -> None:
        definition = CriterionDefinition(
            "X1",
            "order",
            (0.0, 0.5, 1.0),
            (
                Tier(predicate(r"\balpha\b"), 0.5, "first"),
                Tier(predicate(r"\balpha\b"), 1.0, "second"),
            ),
        )
        trace = CriterionTrace("X1")
        assert evaluate_criterion(definition, Document("alpha"), trace=trace) == 0.5
        assert [a.label for a in trace.attempts] == ["first"]

    def test_no_match_scores_zero(self) -> None:
        definition = CriterionDefinition("X1", "x", (0.0, 1.0), (Tier(predicate("alpha"), 1.0),))
        trace = CriterionTrace("X1")
        assert evaluate_criterion(definition, Document("beta"), trace=trace) == 0.0
        assert trace.predicate_evaluations == 1
        assert trace.score == 0.0

    def test_closed_gate_skips_every_tier(self) -> None:
        definition = CriterionDefinition(
            "X1",
            "gated",
            (0.0, 1.0),
            (Tier(predicate("alpha"), 1.0),),
            gate=KeywordGate.of("beta"),
        )
        trace = CriterionTrace("X1")
        assert evaluate_criterion(definition, Document("alpha"), trace=trace) == 0.0
        assert trace.gate_open is False
        assert trace.predicate_evaluations == 0

    def test_predicate_failure_names_criterion_and_tier(self) -> None:
        broken = Pattern(label="boom", source="x", expression="x", regex=_ExplodingRegex())
        definition = CriterionDefinition(
            "X1",
            "broken",
            (0.0, 1.0),
            (
                Tier(predicate("never-matches-zzz"), 1.0),
                Tier(Predicate(all_of=(broken,)), 1.0),
            ),
        )
        with pytest.raises(CriterionEvaluationError) as exc:
            evaluate_criterion(definition, Document("text"))
        assert exc.value.criterion_id == "X1"
        assert exc.value.tier_index == 1
        assert isinstance(exc.value.cause, RuntimeError)
        assert "X1" in str(exc.value) and "tier 1" in str(exc.value)


class TestScopeCriterion:
    def test_full_disclosure_scores_maximum(self) -> None:
        trace = CriterionTrace("C4")
        assert _score("C4", SCENARIO_FULL_SCOPE, trace) == 1.0
        assert trace.attempts[0].label == "scopes_1_2_3_both_methods"

    def test_scopes_1_2_only_scores_minimum_tier(self) -> None:
        assert _score("C4", SCENARIO_BASIC_SCOPE) == 0.25

    def test_one_method_with_scope_3(self) -> None:
        text = "Scope 1 and Scope 2 (location-based). Scope 3 category 1 and 6 are estimated."
        assert _score("C4", text) == 0.75

    def test_combined_scope_notation(self) -> None:
        assert _score("C4", "Emisje w zakresie 1 i 2 wyniosły 10 tys. ton.") == 0.25

    def test_gate_closed_without_scope_keyword(self) -> None:
        trace = CriterionTrace("C4")
        assert _score("C4", "Emissions fell by 12 % compared with the prior year.", trace) == 0.0
        assert trace.gate_open is False
        assert trace.predicate_evaluations == 0


class TestOtherCriteria:
    def test_published_climate_policy(self) -> None:
        text = "The company has adopted a policy on climate change, publicly available on its website."
        assert _score("C1", text) == 1.0

    def test_declared_climate_policy(self) -> None:
        assert _score("C1", "The company has a policy addressing climate change.") == 0.5

    def test_named_board_member_responsible(self) -> None:
        text = "A member of the management board is responsible for climate matters."
        assert _score("C3", text) == 1.0

    def test_whole_board_responsibility_is_not_a_named_member(self) -> None:
        text = (
            "A member of the management board is responsible for climate matters. "
            "The entire management board oversees climate strategy."
        )
        assert _score("C3", text) == 0.0

    def test_recognised_standard(self) -> None:
        assert _score("C6", "Emissions are calculated under the GHG Protocol.") == 1.0
        assert _score("C6", "Emissions are calculated under our own protocol.") == 0.0

    def test_trend_over_three_years(self) -> None:
        assert _score("C8", "GHG emissions decreased: 2021, 2022 and 2023.") == 1.0
        assert _score("C8", "GHG emissions decreased between 2022 and 2023.") == 0.5

    def test_co2_equivalent_units(self) -> None:
        assert _score("C11", "Total emissions were 120 000 t CO2e.") == 1.0
        assert _score("C11", "Total emissions were 120 000 t CO2.") == 0.0

    def test_keyword_presence_has_no_gate(self) -> None:
        trace = CriterionTrace("C12")
        assert _score("C12", "Gazy cieplarniane", trace) == 1.0
        assert trace.gate_open is True
        assert _score("C12", "Annual financial statements") == 0.0

    def test_same_text_same_scores(self) -> None:
        text = SCENARIO_FULL_SCOPE + " Emissions are calculated under the GHG Protocol."
        first = [c.evaluate(Document(text)) for c in BUILTIN_CRITERIA]
        second = [c.evaluate(Document(text)) for c in BUILTIN_CRITERIA]
        assert first == second


# (criterion, text, score, matched tier label), one row per tier of every criterion
TIER_CASES = [
    ("C1", "The company has adopted a policy on climate change, publicly available on its website.",
     1.0, "published_policy"),
    ("C1", "Our strategy on climate change sets out assumptions, goals and actions.",
     1.0, "assumptions_goals_actions"),
    ("C1", "The company has a policy addressing climate change.", 0.5, "declared_policy"),
    ("C1", "Our business strategy takes into account risks related to climate change.",
     0.5, "climate_in_business_strategy"),
    ("C2", "Climate change risks and opportunities have a material impact on our financial results.",
     1.0, "material_financial_impact"),
    ("C2", "Climate change risks and opportunities were assessed; they have no material impact on the company.",
     1.0, "no_material_impact_stated"),
    ("C2", "We manage climate change risks and opportunities.", 0.67, "risks_and_opportunities_managed"),
    ("C2", "Climate change creates new risks for the sector.", 0.33, "risks_or_opportunities_mentioned"),
    ("C3", "A member of the management board is responsible for climate matters.",
     1.0, "board_member_responsible"),
    ("C3", "The sustainability committee for climate matters includes a member of the management board.",
     1.0, "climate_committee_with_board_member"),
    ("C3", "The head of sustainability is responsible for climate reporting.", 0.5, "manager_responsible"),
    ("C4", SCENARIO_FULL_SCOPE, 1.0, "scopes_1_2_3_both_methods"),
    ("C4", "Scope 1 and Scope 2 (location-based). Scope 3 category 1 and 6 are estimated.",
     0.75, "scopes_1_2_3_one_method"),
    ("C4", "Scope 1 and Scope 2 emissions, location-based and market-based.", 0.5, "scopes_1_2_both_methods"),
    ("C4", SCENARIO_BASIC_SCOPE, 0.25, "scopes_1_2"),
    ("C5", "Emissions cover the entire group.", 1.0, "whole_group_or_explained_selection"),
    ("C5", "Emissions are reported for selected companies.", 0.67, "selected_entities_unexplained"),
    ("C5", "Emissions of the parent company are reported.", 0.33, "part_of_group"),
    ("C6", "Emissions are calculated under the GHG Protocol.", 1.0, "recognised_standard"),
    ("C7", "Emission factors source: DEFRA 2023. Global warming potential values source: IPCC AR6.",
     1.0, "factor_and_gwp_sources"),
    ("C8", "GHG emissions decreased: 2021, 2022 and 2023.", 1.0, "three_or_more_years"),
    ("C8", "GHG emissions decreased between 2022 and 2023.", 0.5, "two_years"),
    ("C9", "Emission intensity was 0.12 t CO2e per MWh.", 1.0, "intensity_kpi"),
    ("C10", "We will reduce emissions by 30% by 2030 compared with 2019. "
     "An action plan with investments in renewable energy supports the target.",
     1.0, "absolute_target_with_actions"),
    ("C10", "We will reduce emissions by 30% by 2030 compared with 2019.",
     0.67, "absolute_target_without_actions"),
    ("C10", "Our target is an emission intensity of 0.2 t CO2e/MWh by 2030.", 0.5, "intensity_target"),
    ("C10", "Emissions are addressed by energy efficiency projects.",
     0.33, "actions_without_quantified_target"),
    ("C11", "Total emissions were 120 000 t CO2e.", 1.0, "co2_equivalent_units"),
    ("C12", "Gazy cieplarniane", 1.0, "climate_keywords"),
]


class TestEveryTier:
    @pytest.mark.parametrize(
        "criterion_id, text, expected, label",
        TIER_CASES,
        ids=[f"{c[0]}-{c[3]}" for c in TIER_CASES],
    )
    def test_tier_scores(self, criterion_id, text, expected, label) -> None:
        trace = CriterionTrace(criterion_id)
        assert _score(criterion_id, text, trace) == expected
        matched = [a.label for a in trace.attempts if a.matched]
        assert matched == [label]

    def test_table_covers_every_tier(self) -> None:
        declared = {(c.criterion_id, t.label) for c in BUILTIN_CRITERIA for t in c.tiers}
        assert {(c[0], c[3]) for c in TIER_CASES} == declared


class TestExclusions:
    def test_action_plan_lifts_quantified_target(self) -> None:
        target = "We will reduce emissions by 30% by 2030 compared with 2019."
        assert _score("C10", target) == 0.67
        assert _score("C10", target + " The action plan is published.") == 1.0

    def test_quantified_reduction_blocks_actions_only_tier(self) -> None:
        actions = "Emissions are addressed by energy efficiency projects."
        assert _score("C10", actions) == 0.33
        assert _score("C10", actions + " They reduce them by 15%.") == 0.0

    def test_selection_criteria_block_unexplained_tier(self) -> None:
        selected = "Emissions are reported for selected companies."
        assert _score("C5", selected) == 0.67
        assert _score("C5", selected + " The selection criteria are described below.") == 0.0

    def test_missing_source_scores_zero(self) -> None:
        assert _score("C7", "GWP values are used for emission factors.") == 0.0
        assert _score("C9", "Emission intensity decreased.") == 0.0
