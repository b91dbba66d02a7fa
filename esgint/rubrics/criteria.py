# esgint/rubrics/criteria.py
"""
Built-in climate-disclosure criteria (C1..C12).

Each criterion is an ordered ladder of tiers, from best to weakest evidence,
scored first-match-wins, plus an optional keyword gate. Patterns cover Polish
and English report language.

Pattern notes:
- RE2 has ASCII-only `\\b` and `\\w`, so Polish stems end in `\\pL*` and never
  in `\\b`; a stem that begins with a non-ASCII letter gets no leading `\\b`.
- Unordered evidence = several entries in one predicate. Ordered evidence
  (A then B) = one pattern with `.*?` or a bounded `.{0,N}` between parts.
- Every gate keyword list was checked against every tier of its criterion:
  each tier requires at least one of the keywords.
"""

from __future__ import annotations

from typing import Dict, List

from esgint.features.keywords import KeywordGate
from esgint.features.patterns import predicate
from esgint.rubrics import CriterionDefinition, Tier


def _either(*alternatives: str) -> str:
    return "(?:" + "|".join(alternatives) + ")"


def _seq(*parts: str, gap: str = r".*?") -> str:
    return gap.join(parts)


# =============================================================================
# SHARED VOCABULARY
# =============================================================================

CLIMATE = r"""
    (?: \bklimat\pL*
      | \bzmian\pL*\W+klimatu
      | \bclimate\W*change
      | \bdecarboni[sz]ation
      | \bnet\W*zero\b
      | \bneutraln\pL*
      | \bcarbon\W*neutral
    )"""

CLIMATE_WORD = r"(?: \bklimat\pL* | \bclimate\b )"

POLICY = r"""
    (?: \bpolityk\pL*
      | \bstrategi\pL*
      | \bpolic(?:y|ies)\b
      | \bstrateg(?:y|ies)\b
    )"""

EMISSIONS = r"(?: \bemisj\pL* | \bemissions?\b )"

GHG_CONTEXT = r"""
    (?: \bemisj\pL*
      | \bemissions?\b
      | \bGHG\b
      | \bgaz\pL*\s+cieplarnian\pL*
      | \bgreenhouse\s+gas(?:es)?\b
    )"""

CARBON_CONTEXT = r"""
    (?: \bemisj\pL*
      | \bemissions?\b
      | \bGHG\b
      | \bcarbon\b
      | \bgaz\pL*\s+cieplarnian\pL*
      | \bgreenhouse\s+gas(?:es)?\b
    )"""

INTENSITY = r"(?: \bintensywno\pL* | \bintensity\b )"

PERCENT = r"\b\d{1,3}(?:[.,]\d+)?\s*%"

YEAR = r"\b20\d{2}\b"

# CO2 with optional subscript digit
CO2 = r"CO[2₂]"


# =============================================================================
# C1 - CLIMATE POLICY / STRATEGY
# =============================================================================

PUBLICLY_AVAILABLE = r"""
    (?: \bpubliczn\pL*\s+dostęp\pL*
      | \bpublicly\s+(?:available|disclosed)\b
      | \bavailable\s+online\b
      | \bdostępn\pL*\s+online\b
      | \budostępnion\pL*
    )"""

ASSUMPTIONS = r"(?: \bzałożen\pL* | \bassumptions?\b )"

GOALS = r"(?: \bcel(?:e|ów)(?:\PL|$) | \bgoals?\b | \bobjectives?\b )"

POLICY_ACTIONS = r"(?: \bdziałan\pL* | \bactions?\b | \bmeasures?\b )"

HAS_DOCUMENT = r"""
    (?: \bposiad\pL*
      | \bwdrożon\pL*
      | \bopracowan\pL*
      | \brealizuj\pL*
      | \bha(?:ve|s)\b
      | \bmaintains?\b
      | \bimplemented\b
      | \badopted\b
      | \bprepared\b
    )"""

BUSINESS_STRATEGY = r"(?: \bstrategi\pL*\s+biznesow\pL* | \bbusiness\s+strateg(?:y|ies)\b )"

STRATEGY_TOPICS = r"""
    (?: \bzagadnie\pL*
      | \bkwesti\pL*
      | \bryzyk\pL*
      | \bszans\pL*
      | \btopics?\b
      | \bissues?\b
      | \brisks?\b
      | \bopportunit(?:y|ies)\b
    )"""

C1 = CriterionDefinition(
    criterion_id="C1",
    name="Climate policy / strategy",
    description="A climate policy or strategy exists, ideally public and covering assumptions, goals and actions.",
    allowed_scores=(0.0, 0.5, 1.0),
    gate=KeywordGate.of("polityk", "strateg", "polic"),
    tiers=(
        Tier(
            predicate(_seq(POLICY, CLIMATE, gap=r".{0,40}") + r".*?" + PUBLICLY_AVAILABLE, label="C1.published"),
            1.0,
            "published_policy",
        ),
        Tier(
            predicate(POLICY, CLIMATE, ASSUMPTIONS, GOALS, POLICY_ACTIONS, label="C1.complete"),
            1.0,
            "assumptions_goals_actions",
        ),
        Tier(
            predicate(
                _seq(HAS_DOCUMENT, r".{0,30}", POLICY, r".{0,40}", CLIMATE, gap=""),
                label="C1.declared",
            ),
            0.5,
            "declared_policy",
        ),
        Tier(
            predicate(
                _seq(BUSINESS_STRATEGY, r".{0,60}", STRATEGY_TOPICS, r".{0,20}", CLIMATE, gap=""),
                label="C1.business_strategy",
            ),
            0.5,
            "climate_in_business_strategy",
        ),
    ),
)


# =============================================================================
# C2 - CLIMATE RISKS AND OPPORTUNITIES
# =============================================================================

RISK = r"(?: \bryzyk\pL* | \brisks?\b )"

OPPORTUNITY = r"(?: \bszans\pL* | \bmożliwoś\pL* | \bopportunit(?:y|ies)\b )"

MATERIAL = r"(?: \bistotn\pL* | \bmaterial(?:ity)?\b | \bsignificant\b | \bkluczow\pL* )"

IMPACT = r"(?: \bwpływ\pL* | \bimpacts?\b )"

FINANCE_OR_STRATEGY = r"""
    (?: \bfinansow\pL*
      | \bwynik\pL*\s+finans\pL*
      | \bfinancial\b
      | \bstrategi\pL*\s+biznes\pL*
      | \bbusiness\s+strateg(?:y|ies)\b
    )"""

# "no material impact" stated within one sentence-sized window
NO_MATERIAL_IMPACT = r"""
    (?: \bnie\s+mają | \bnie\s+ma\b | \bno\b | \bnot\b )
    .{0,80}
    (?: \bistotn\pL* | \bmaterial\b | \bsignificant\b )
    .{0,80}
    (?: \bwpływ\pL* | \bimpacts?\b )
"""

MANAGEMENT = r"""
    (?: \bzarządz\pL*
      | \bmanage(?:s|d|ment)?\b
      | \bmitigat\pL*
      | łagodzen\pL*
      | \bresponse\b
      | \bodpowied\pL*
      | \bdziałan\pL*
    )"""

C2 = CriterionDefinition(
    criterion_id="C2",
    name="Climate risks and opportunities",
    description="Climate-related risks and opportunities, their management and financial materiality.",
    allowed_scores=(0.0, 0.33, 0.67, 1.0),
    gate=KeywordGate.of("ryzyk", "risk", "szans", "możliwoś", "opportunit"),
    tiers=(
        Tier(
            predicate(RISK, OPPORTUNITY, CLIMATE, MATERIAL, IMPACT, FINANCE_OR_STRATEGY, label="C2.material"),
            1.0,
            "material_financial_impact",
        ),
        Tier(
            predicate(RISK, OPPORTUNITY, CLIMATE, NO_MATERIAL_IMPACT, label="C2.not_material"),
            1.0,
            "no_material_impact_stated",
        ),
        Tier(
            predicate(RISK, OPPORTUNITY, CLIMATE, MANAGEMENT, label="C2.managed"),
            0.67,
            "risks_and_opportunities_managed",
        ),
        Tier(
            predicate(_either(RISK, OPPORTUNITY), CLIMATE, label="C2.mentioned"),
            0.33,
            "risks_or_opportunities_mentioned",
        ),
    ),
)


# =============================================================================
# C3 - CLIMATE GOVERNANCE
# =============================================================================

BOARD_MEMBER = r"""
    (?: \bczłon\pL*\s+(?:zarządu|rady\s+nadzorczej)
      | \bmembers?\s+of\s+the\s+(?:management\s+board|supervisory\s+board|board(?:\s+of\s+directors)?)\b
      | \bboard\s+members?\b
    )"""

WHOLE_BOARD = r"""
    \b(?:cały|cała|całego|całej|all|whole|entire)
    \s+
    (?:zarząd\pL* | rad\pL*\s+nadzorcz\pL* | supervisory\s+board | management\s+board | board)
"""

RESPONSIBLE = r"""
    (?: \bodpowiad\pL*
      | \bodpowiedzialn\pL*
      | \bnadzoruj\pL*
      | \bnadz[oó]r\pL*
      | \bzarządz\pL*
      | \bresponsib(?:le|ility)\b
      | \boversees?\b
      | \boversight\b
      | \bmanages?\b
    )"""

COMMITTEE = r"""
    (?: \bzesp[oó][łl]\pL*
      | \bkomitet\pL*
      | \bkomisj\pL*
      | \bcommittee\b
    )"""

INCLUDES = r"""
    (?: \bw\s+skład
      | \bwchodz\pL*
      | \bincludes?\b
      | \bconsists?\s+of\b
      | \bcompris(?:es|ing)\b
      | \bchaired\s+by\b
    )"""

MANAGER = r"""
    (?: \bmenad[żz]er\pL*
      | \bmened[żz]er\pL*
      | \bmanagers?\b
      | \bkierownik\pL*
      | \bdyrektor\pL*
      | \bdirectors?\b
      | \bchief\s+sustainability\s+officer\b
      | \bhead\s+of\s+sustainability\b
      | \bCSO\b
    )"""

C3 = CriterionDefinition(
    criterion_id="C3",
    name="Climate governance",
    description="A named board member, or a climate committee including one, is responsible for climate matters.",
    allowed_scores=(0.0, 0.5, 1.0),
    gate=KeywordGate.of("klimat", "climate"),
    tiers=(
        Tier(
            predicate(
                _seq(BOARD_MEMBER, RESPONSIBLE, CLIMATE_WORD),
                unless=[WHOLE_BOARD],
                label="C3.board_member",
            ),
            1.0,
            "board_member_responsible",
        ),
        Tier(
            predicate(_seq(COMMITTEE, CLIMATE_WORD, INCLUDES, BOARD_MEMBER), label="C3.committee"),
            1.0,
            "climate_committee_with_board_member",
        ),
        Tier(
            predicate(_seq(MANAGER, RESPONSIBLE, CLIMATE_WORD), label="C3.manager"),
            0.5,
            "manager_responsible",
        ),
    ),
)


# =============================================================================
# C4 - EMISSIONS SCOPE
# =============================================================================

_SCOPE = r"\b(?:scope|zakres\pL*)\s*"
_AND = r"\s*(?:[+&,/]|\band\b|\bi\b|\boraz\b)\s*"

SCOPE_1 = _SCOPE + r"1\b"
SCOPE_2 = _SCOPE + r"(?:1" + _AND + r")?2\b"
SCOPE_3 = _SCOPE + r"(?:1" + _AND + r")?(?:2" + _AND + r")?3\b"

LOCATION_BASED = r"(?: \blocation[-\s]?based\b | \bmetod\pL*\s+lokalizacyjn\pL* )"
MARKET_BASED = r"(?: \bmarket[-\s]?based\b | \bmetod\pL*\s+rynkow\pL* )"

CATEGORY = r"(?: \bkategor\pL* | \bcategor(?:y|ies)\b )"

C4 = CriterionDefinition(
    criterion_id="C4",
    name="Emissions scope",
    description="Scope 1, 2 and 3 emissions with Scope 2 methods and Scope 3 categories.",
    allowed_scores=(0.0, 0.25, 0.5, 0.75, 1.0),
    gate=KeywordGate.of("scope", "zakres"),
    tiers=(
        Tier(
            predicate(SCOPE_1, SCOPE_2, LOCATION_BASED, MARKET_BASED, SCOPE_3, CATEGORY, label="C4.full"),
            1.0,
            "scopes_1_2_3_both_methods",
        ),
        Tier(
            predicate(SCOPE_1, SCOPE_2, _either(LOCATION_BASED, MARKET_BASED), SCOPE_3, CATEGORY, label="C4.one_method"),
            0.75,
            "scopes_1_2_3_one_method",
        ),
        Tier(
            predicate(SCOPE_1, SCOPE_2, LOCATION_BASED, MARKET_BASED, label="C4.both_methods"),
            0.5,
            "scopes_1_2_both_methods",
        ),
        Tier(
            predicate(SCOPE_1, SCOPE_2, label="C4.basic"),
            0.25,
            "scopes_1_2",
        ),
    ),
)


# =============================================================================
# C5 - EMISSIONS BOUNDARY
# =============================================================================

WHOLE_GROUP = r"""
    (?: \bcał\pL*\s+(?:GK\b|grup\pL*)
      | \b(?:entire|whole)\s+(?:consolidated\s+)?group\b
      | \ball\s+subsidiar(?:y|ies)\b
      | \bwszystk\pL*\s+(?:jednost\pL*|spół\pL*)\s+zależn\pL*
      | \bkontrol\pL*\s+(?:operacyjn|finansow)\pL*
      | \b(?:operational|financial)\s+control\b
    )"""

SELECTION_CRITERIA = r"""
    (?: \bkryteri\pL*
      | \bcriteri(?:a|on)\b
      | \bwyjaśni\pL*
      | \bexplain\pL*
    )"""

MATERIAL_ENTITIES = _seq(
    r"(?: \bpodmiot\pL* | \bentit(?:y|ies)\b | \bsubsidiar(?:y|ies)\b | \bunits?\b )",
    r"(?: \bistotn\pL* | \bmaterial(?:ity)?\b )",
    SELECTION_CRITERIA,
)

SELECTED = r"(?: \bwybran\pL* | \bselected\b | \bnajwiększ\pL* | \blargest\b | \bmajor\b )"

ENTITIES = r"(?: \bjednost\pL* | \bsubsidiar(?:y|ies)\b | \bunits?\b | \bspół\pL* | \bcompan(?:y|ies)\b )"

PARTIAL_ENTITIES = r"""
    (?: \bjednost\pL*\s+zależn\pL*
      | \bsubsidiar(?:y|ies)\b
      | \bspół\pL*\s+dominuj\pL*
      | \bparent\s+company\b
    )"""

C5 = CriterionDefinition(
    criterion_id="C5",
    name="Emissions boundary",
    description="Emissions cover the whole group, or material entities with explained selection criteria.",
    allowed_scores=(0.0, 0.33, 0.67, 1.0),
    gate=KeywordGate.of("emisj", "emission"),
    tiers=(
        Tier(
            predicate(EMISSIONS, _either(WHOLE_GROUP, MATERIAL_ENTITIES), label="C5.full"),
            1.0,
            "whole_group_or_explained_selection",
        ),
        Tier(
            predicate(EMISSIONS, SELECTED, ENTITIES, unless=[SELECTION_CRITERIA], label="C5.selected"),
            0.67,
            "selected_entities_unexplained",
        ),
        Tier(
            predicate(EMISSIONS, PARTIAL_ENTITIES, label="C5.partial"),
            0.33,
            "part_of_group",
        ),
    ),
)


# =============================================================================
# C6 - CALCULATION STANDARD
# =============================================================================

STANDARD = r"""
    (?: \bISO\s*14064(?:\s*[-–]\s*\d)?
      | \bGHG\s+Protocol\b
      | \bGreenhouse\s+Gas\s+Protocol\b
      | \bCorporate\s+Accounting\s+and\s+Reporting\s+Standard\b
      | \bIPCC\s+Guidelines\b
    )"""

C6 = CriterionDefinition(
    criterion_id="C6",
    name="Calculation standard",
    description="Emissions are calculated under a recognised standard (GHG Protocol, ISO 14064, IPCC).",
    allowed_scores=(0.0, 1.0),
    gate=KeywordGate.of("14064", "protocol", "accounting", "ipcc"),
    tiers=(
        Tier(predicate(GHG_CONTEXT, STANDARD, label="C6.standard"), 1.0, "recognised_standard"),
    ),
)


# =============================================================================
# C7 - EMISSION FACTOR AND GWP SOURCES
# =============================================================================

SOURCE = r"""
    (?: źródł\pL*
      | \bsources?\b
      | \breferencj\pL*
      | \breferences?\b
      | \bIPCC\b
      | \bDEFRA\b
      | \bEPA\b
      | \bKOBiZE\b
    )"""

EMISSION_FACTOR = r"(?: \bwskaźnik\pL*\s+emisji | \bemission\s+factors?\b )"

GWP_FACTOR = r"""
    (?: \bwspółczynnik\pL*\s+GWP\b
      | \bGWP\s+(?:factors?|values?)\b
      | \bglobal\s+warming\s+potentials?\b
    )"""

C7 = CriterionDefinition(
    criterion_id="C7",
    name="Emission factor and GWP sources",
    description="Sources are given both for emission factors and for GWP values.",
    allowed_scores=(0.0, 1.0),
    gate=KeywordGate.of("gwp", "warming"),
    tiers=(
        Tier(
            predicate(_seq(EMISSION_FACTOR, SOURCE), _seq(GWP_FACTOR, SOURCE), label="C7.sources"),
            1.0,
            "factor_and_gwp_sources",
        ),
    ),
)


# =============================================================================
# C8 - EMISSIONS TREND
# =============================================================================

CHANGE = r"""
    (?: \bzmian\pL*
      | \btrend\pL*
      | \bspad\pL*
      | \bwzrost\pL*
      | \bchanges?\b
      | \bincrease[sd]?\b
      | \bdecrease[sd]?\b
    )"""

THREE_YEARS = _seq(YEAR, YEAR, YEAR, gap=r".*")
TWO_YEARS = _seq(YEAR, YEAR, gap=r".*")

C8 = CriterionDefinition(
    criterion_id="C8",
    name="Emissions trend",
    description="Emissions are compared over time (three or more years for full score).",
    allowed_scores=(0.0, 0.5, 1.0),
    gate=KeywordGate.of("emisj", "emission", "ghg", "cieplarnian", "greenhouse"),
    tiers=(
        Tier(predicate(GHG_CONTEXT, CHANGE, THREE_YEARS, label="C8.three_years"), 1.0, "three_or_more_years"),
        Tier(predicate(GHG_CONTEXT, CHANGE, TWO_YEARS, label="C8.two_years"), 0.5, "two_years"),
    ),
)


# =============================================================================
# C9 - INTENSITY INDICATOR
# =============================================================================

INTENSITY_UNIT = r"""
    \b(?:t|kg) \s* """ + CO2 + r""" (?:\s*e(?:q)?)?
    .{0,40}
    (?: / | \bper\b | \bna\b )
"""

C9 = CriterionDefinition(
    criterion_id="C9",
    name="Intensity indicator",
    description="An emission-intensity KPI with a per-unit CO2e figure.",
    allowed_scores=(0.0, 1.0),
    gate=KeywordGate.of("intensywno", "intensity"),
    tiers=(
        Tier(predicate(CARBON_CONTEXT, INTENSITY, INTENSITY_UNIT, label="C9.intensity"), 1.0, "intensity_kpi"),
    ),
)


# =============================================================================
# C10 - REDUCTION TARGETS
# =============================================================================

TARGET_CONTEXT = r"""
    (?: \bemisj\pL*
      | \bemissions?\b
      | \bGHG\b
      | \bcarbon\b
      | \bgreenhouse\s+gas
    )"""

REDUCTION = r"(?: \bredukcj\pL* | \bredukow\pL* | \breduc(?:e|es|ed|ing|tions?)\b )"

QUANTIFIED = r"(?: " + PERCENT + r" | \b\d[\d\s.,]*\s*(?:t|kt|Mt|Mg)\s*" + CO2 + r" )"

ACTION_PLAN = r"""
    (?: \bdziałan\pL*
      | \bplan\pL*
      | \baction\s+plans?\b
      | \bmeasures?\b
      | \binicjatyw\pL*
      | \binitiatives?\b
      | \bprojects?\b
      | \bprogram\pL*
      | \binvestments?\b
      | \binwestycj\pL*
    )"""

TARGET = r"(?: \btargets?\b | \bcel\pL* | \bgoals?\b )"

INTENSITY_QUANTIFIED = r"(?: " + PERCENT + r" | \b(?:t|kg|g)\s*" + CO2 + r"(?:\s*e(?:q)?)?\s*(?:/|\bper\b|\bna\b) )"

C10 = CriterionDefinition(
    criterion_id="C10",
    name="Reduction targets",
    description="Quantified emission-reduction targets and the actions planned to reach them.",
    allowed_scores=(0.0, 0.33, 0.5, 0.67, 1.0),
    gate=KeywordGate.of("emisj", "emission", "ghg", "carbon", "greenhouse"),
    tiers=(
        Tier(
            predicate(TARGET_CONTEXT, REDUCTION, QUANTIFIED, TWO_YEARS, ACTION_PLAN, label="C10.target_with_actions"),
            1.0,
            "absolute_target_with_actions",
        ),
        Tier(
            predicate(TARGET_CONTEXT, REDUCTION, QUANTIFIED, TWO_YEARS, unless=[ACTION_PLAN], label="C10.target_only"),
            0.67,
            "absolute_target_without_actions",
        ),
        Tier(
            predicate(TARGET_CONTEXT, INTENSITY, TARGET, INTENSITY_QUANTIFIED, YEAR, label="C10.intensity_target"),
            0.5,
            "intensity_target",
        ),
        Tier(
            predicate(
                TARGET_CONTEXT,
                ACTION_PLAN,
                unless=[_seq(REDUCTION, PERCENT), _seq(INTENSITY, PERCENT)],
                label="C10.actions_only",
            ),
            0.33,
            "actions_without_quantified_target",
        ),
    ),
)


# =============================================================================
# C11 - UNIT CORRECTNESS
# =============================================================================

CO2_EQUIVALENT = CO2 + r"(?: \s*e\b | [-\s]?eq\b | [-\s]?equivalents?\b )"

C11 = CriterionDefinition(
    criterion_id="C11",
    name="Unit correctness",
    description="Emissions are expressed in CO2-equivalent units.",
    allowed_scores=(0.0, 1.0),
    gate=KeywordGate.of("co2", "co₂"),
    tiers=(
        Tier(
            predicate(
                _either(
                    # 120 000 t CO2e, 1.2 Mt CO2-eq
                    r"\d+(?:[.,]\d+)?\s*(?:t|kt|Mt|Mg|kg|tonn?e?s?)\s*" + CO2_EQUIVALENT,
                    # intensity notation: CO2e / MWh
                    CO2 + r"\s*e(?:q)?\s*/\s*[\pL/-]+",
                ),
                label="C11.units",
            ),
            1.0,
            "co2_equivalent_units",
        ),
    ),
)


# =============================================================================
# C12 - KEYWORD PRESENCE
# =============================================================================

CLIMATE_KEYWORDS = r"""
    (?: \bdwutlen\pL*\W+węgla
      | \bgaz\pL*\W+cieplarnian\pL*
      | CO\s*[2₂]
      | \bzmian\pL*\W+klimat\pL*
      | \bcarbon\W+dioxide\b
      | \bgreenhouse\W+gas(?:es)?\b
      | \bclimate\W+change\b
      | \bGHG\b
    )"""

# The keyword set includes "CO 2", so no useful gate exists for C12.
C12 = CriterionDefinition(
    criterion_id="C12",
    name="Keyword presence",
    description="The report mentions greenhouse gases or climate change at all.",
    allowed_scores=(0.0, 1.0),
    tiers=(
        Tier(predicate(CLIMATE_KEYWORDS, label="C12.keywords"), 1.0, "climate_keywords"),
    ),
)


# =============================================================================
# REGISTRY
# =============================================================================

BUILTIN_CRITERIA: List[CriterionDefinition] = [C1, C2, C3, C4, C5, C6, C7, C8, C9, C10, C11, C12]

CRITERIA_BY_ID: Dict[str, CriterionDefinition] = {c.criterion_id: c for c in BUILTIN_CRITERIA}


def get_criterion(criterion_id: str) -> CriterionDefinition:
    """Look up a built-in criterion by id (case-insensitive)."""
    return CRITERIA_BY_ID[criterion_id.upper()]
