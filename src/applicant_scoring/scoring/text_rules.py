"""Deterministic free-text answer scoring.

A Text answer is scored by an ordered list of small, named rules.  Each
rule looks at one facet of the answer (its length, its vocabulary, its
evidence of results, its relevance to the question, its structure) and
returns a ``(label, points)`` contribution with its own internal cap.
The final score is the sum of all contributions, floored at 0.

There is deliberately no per-question ceiling here: a long, dense,
well-structured answer can earn more than the 30 points the normalizer
assumes for a Text question.  The percentage clamp in
:mod:`applicant_scoring.scoring.normalizer` is the only upper bound.

Rules are grouped into eight stages, reflected in their label prefix:

1. ``length``        — banded character count
2. ``keywords``      — vocabulary diversity, domain / action-verb / tool overlap
3. ``strength``      — quantified evidence, concrete examples, outcomes
4. ``communication`` — professional and leadership vocabulary
5. ``relevance``     — overlap with the question's own keywords, question intent
6. ``technical``     — technical terms and named tools
7. ``structure``     — sentence length, paragraphing, transitions
8. ``quality``       — penalties for sprawl, sloppy formatting, repetition
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from applicant_scoring.text import (
    count_pattern_hits,
    count_substring_hits,
    is_fuzzy_match,
    question_keywords,
    tokenize,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(src, re.IGNORECASE) for src in sources)


def _capped(hits: int, per_hit: float, cap: float) -> float:
    return min(cap, hits * per_hit)


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

# (character-count upper bound, points); the final band has no bound.
LENGTH_BANDS: tuple[tuple[int, float], ...] = (
    (10, 0.3),
    (25, 0.8),
    (50, 1.8),
    (100, 3.2),
    (200, 4.8),
    (300, 6.2),
    (500, 7.5),
    (800, 8.5),
)
LENGTH_TOP_POINTS = 9.0

# (minimum distinct tokens, points), highest first.
DIVERSITY_BANDS: tuple[tuple[int, float], ...] = (
    (60, 2.5),
    (40, 2.0),
    (25, 1.5),
    (15, 1.0),
    (8, 0.5),
)

# Domain vocabularies keyed by the question hints that select them.
DOMAIN_VOCABULARIES: tuple[tuple[tuple[str, ...], frozenset[str]], ...] = (
    (
        ("software", "developer", "programming"),
        frozenset({
            "coding", "programming", "development", "software", "application",
            "system", "algorithm", "database", "api", "framework",
        }),
    ),
    (
        ("management", "lead", "team"),
        frozenset({
            "leadership", "management", "team", "project", "strategy",
            "planning", "coordination", "supervision", "mentoring",
        }),
    ),
    (
        ("sales", "marketing", "customer"),
        frozenset({
            "sales", "marketing", "customer", "client", "revenue", "growth",
            "target", "negotiation", "relationship",
        }),
    ),
    (
        ("design", "creative", "ux"),
        frozenset({
            "design", "creative", "user", "experience", "interface", "visual",
            "prototype", "wireframe", "branding",
        }),
    ),
)
GENERAL_BUSINESS_VOCABULARY = frozenset({
    "business", "process", "improvement", "efficiency", "quality",
    "performance", "analysis", "solution",
})

ACTION_VERBS = frozenset({
    "developed", "created", "built", "designed", "implemented", "managed",
    "led", "coordinated", "executed", "delivered", "achieved", "accomplished",
    "improved", "increased", "reduced", "optimized", "enhanced", "launched",
    "established", "transformed", "revolutionized", "pioneered", "innovated",
    "streamlined", "automated", "integrated", "migrated", "deployed",
})

TECHNOLOGY_TOKENS = frozenset({
    "javascript", "python", "java", "csharp", "c++", "ruby", "php", "swift",
    "kotlin", "html", "css", "sql", "nosql", "mongodb", "postgresql", "mysql",
    "oracle", "react", "angular", "vue", "node", "express", "django", "flask",
    "spring", "dotnet", "aws", "azure", "gcp", "cloud", "docker", "kubernetes",
    "jenkins", "git", "github", "agile", "scrum", "devops", "ci", "cd",
    "testing", "unit", "integration", "api", "microservices", "architecture",
    "security", "performance", "scalability", "mobile",
})

QUANTIFIED_EVIDENCE = _patterns(
    r"\d+\s*(years?|months?|weeks?|days?)\s+(of\s+)?experience",
    r"\d+\s*(percent|%)\s+(increase|decrease|growth|reduction)",
    r"\$\s*\d+[kmb]?\s*(budget|revenue|salary|cost|savings)",
    r"\d+\s*(times?|fold)\s+(increase|improvement|growth)",
    r"(managed|led|supervised)\s+\d+\s+(people|team members|employees)",
    r"\d+\s+(projects|initiatives|campaigns|products)",
    r"(first|last|only|best|worst|top|bottom)\s+\d+%?",
)

SPECIFIC_EXAMPLES = _patterns(
    r"\b(for\s+example|for\s+instance|such\s+as|specifically|including)\b",
    r"\b(demonstrated|proven|implemented|executed|delivered)\b",
    r"\b(i\s+(have|was|am|did)\s+[\w\s]{5,30})\b",
    r"\b(in\s+my\s+role|as\s+a\s+[\w\s]{3,20})\b",
    r"\b(responsible\s+for|tasked\s+with|handled)\b",
)

OUTCOMES = _patterns(
    r"\b(resulted\s+in|led\s+to|achieved|accomplished|succeeded)\b",
    r"\b(improved|increased|decreased|reduced|optimized|enhanced)\b",
    r"\b(saved|generated|created|developed|built)\b",
    r"\b(on\s+time|within\s+budget|met\s+deadline)\b",
)

PROFESSIONAL_LANGUAGE = _patterns(
    r"\b(collaborated|partnered|coordinated|liaised)\b",
    r"\b(strategic|initiative|methodology|framework)\b",
    r"\b(stakeholder|client|customer|user)\b",
    r"\b(process|procedure|workflow|methodology)\b",
    r"\b(analysis|assessment|evaluation|review)\b",
)

LEADERSHIP_LANGUAGE = _patterns(
    r"\b(led|managed|supervised|mentored|trained)\b",
    r"\b(responsible\s+for|accountable\s+for|owned)\b",
    r"\b(my\s+team|our\s+team|team\s+lead)\b",
    r"\b(decision|strategy|vision|direction)\b",
)

EXPERIENCE_QUESTION_HINTS = ("experience", "background", "history")
EXPERIENCE_EVIDENCE = _patterns(
    r"\d+\s+(years?|months?)\s+(of\s+)?experience",
    r"worked\s+(as|with|for)",
    r"previous\s+(role|position|job)",
    r"background\s+in",
)

SKILL_QUESTION_HINTS = ("skill", "ability", "knowledge")
SKILL_INDICATORS = (
    "proficient", "expert", "skilled", "knowledge", "familiar", "experienced",
    "certified",
)

PROBLEM_QUESTION_HINTS = ("challenge", "problem", "solve")
SOLUTION_EVIDENCE = _patterns(
    r"solved\s+(the|a|this)",
    r"approach\s+(was|included)",
    r"solution\s+(was|involved)",
    r"resolved\s+(the|this|issue)",
)

TECHNICAL_TERMS = (
    "api", "database", "framework", "algorithm", "architecture",
    "scalability", "performance", "security", "testing", "deployment",
    "version control", "agile", "scrum", "devops", "cloud", "microservices",
)

NAMED_TOOLS = (
    "javascript", "python", "java", "c#", "sql", "html", "css", "react",
    "angular", "vue", "node", "dotnet", "aws", "azure", "docker",
    "kubernetes", "git", "github", "gitlab",
)

TRANSITION_WORDS = (
    "however", "therefore", "furthermore", "moreover", "consequently",
    "additionally",
)

_SENTENCE_SPLIT = re.compile(r"[.!?]")
_PARAGRAPH_SPLIT = re.compile(r"\r\n\r\n|\n\n")
_CAPITAL_START = re.compile(r"^[A-Z]")


# ---------------------------------------------------------------------------
# Rule plumbing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleContribution:
    """One rule's labelled share of a Text score (may be negative)."""

    label: str
    points: float


@dataclass(frozen=True)
class AnswerContext:
    """Pre-computed views of a (question, answer) pair shared by every rule."""

    question_text: str
    answer_text: str
    lower: str
    tokens: tuple[str, ...]
    question_lower: str

    @classmethod
    def build(cls, question_text: str, answer_text: str) -> AnswerContext:
        lower = answer_text.lower()
        return cls(
            question_text=question_text,
            answer_text=answer_text,
            lower=lower,
            tokens=tuple(tokenize(lower)),
            question_lower=question_text.lower(),
        )


# -- 1. length ---------------------------------------------------------------


def length_band(ctx: AnswerContext) -> RuleContribution:
    size = len(ctx.answer_text)
    for upper, points in LENGTH_BANDS:
        if size < upper:
            return RuleContribution("length.band", points)
    return RuleContribution("length.band", LENGTH_TOP_POINTS)


# -- 2. keywords -------------------------------------------------------------


def vocabulary_diversity(ctx: AnswerContext) -> RuleContribution:
    distinct = len(set(ctx.tokens))
    for minimum, points in DIVERSITY_BANDS:
        if distinct >= minimum:
            return RuleContribution("keywords.diversity", points)
    return RuleContribution("keywords.diversity", 0.0)


def domain_vocabulary(question_text: str) -> frozenset[str]:
    """Vocabulary for the first domain whose hints appear in the question."""
    lowered = question_text.lower()
    for hints, vocabulary in DOMAIN_VOCABULARIES:
        if any(hint in lowered for hint in hints):
            return vocabulary
    return GENERAL_BUSINESS_VOCABULARY


def domain_keywords(ctx: AnswerContext) -> RuleContribution:
    vocabulary = domain_vocabulary(ctx.question_text)
    hits = sum(1 for tok in ctx.tokens if tok in vocabulary)
    return RuleContribution("keywords.domain", _capped(hits, 0.4, 2.0))


def action_verbs(ctx: AnswerContext) -> RuleContribution:
    hits = sum(1 for tok in ctx.tokens if tok in ACTION_VERBS)
    return RuleContribution("keywords.action_verbs", _capped(hits, 0.3, 1.5))


def technology_tokens(ctx: AnswerContext) -> RuleContribution:
    hits = sum(1 for tok in ctx.tokens if tok in TECHNOLOGY_TOKENS)
    return RuleContribution("keywords.technology", _capped(hits, 0.5, 2.0))


# -- 3. strength -------------------------------------------------------------


def quantified_evidence(ctx: AnswerContext) -> RuleContribution:
    hits = count_pattern_hits(QUANTIFIED_EVIDENCE, ctx.lower)
    return RuleContribution("strength.quantified", _capped(hits, 0.8, 3.0))


def specific_examples(ctx: AnswerContext) -> RuleContribution:
    hits = count_pattern_hits(SPECIFIC_EXAMPLES, ctx.lower)
    return RuleContribution("strength.examples", _capped(hits, 0.5, 2.0))


def outcomes(ctx: AnswerContext) -> RuleContribution:
    hits = count_pattern_hits(OUTCOMES, ctx.lower)
    return RuleContribution("strength.outcomes", _capped(hits, 0.4, 1.5))


# -- 4. communication --------------------------------------------------------


def professional_language(ctx: AnswerContext) -> RuleContribution:
    hits = count_pattern_hits(PROFESSIONAL_LANGUAGE, ctx.lower)
    return RuleContribution("communication.professional", _capped(hits, 0.3, 1.5))


def leadership_language(ctx: AnswerContext) -> RuleContribution:
    hits = count_pattern_hits(LEADERSHIP_LANGUAGE, ctx.lower)
    return RuleContribution("communication.leadership", _capped(hits, 0.4, 1.5))


# -- 5. relevance ------------------------------------------------------------


def direct_overlap(ctx: AnswerContext) -> RuleContribution:
    keywords = set(question_keywords(ctx.question_text))
    hits = sum(1 for tok in ctx.tokens if tok in keywords)
    return RuleContribution("relevance.direct", _capped(hits, 0.3, 2.0))


def fuzzy_overlap(ctx: AnswerContext) -> RuleContribution:
    """Answer tokens loosely matching any question keyword (one hit per token)."""
    keywords = question_keywords(ctx.question_text)
    hits = sum(
        1 for tok in ctx.tokens if any(is_fuzzy_match(tok, kw) for kw in keywords)
    )
    return RuleContribution("relevance.fuzzy", _capped(hits, 0.2, 1.5))


def question_intent(ctx: AnswerContext) -> RuleContribution:
    """Bonus for evidence matching what the question is really asking for.

    Only the first matching intent (experience, then skill, then
    problem-solving) is considered.
    """
    q = ctx.question_lower
    if any(hint in q for hint in EXPERIENCE_QUESTION_HINTS):
        hits = count_pattern_hits(EXPERIENCE_EVIDENCE, ctx.lower)
        return RuleContribution("relevance.intent.experience", _capped(hits, 0.7, 2.0))
    if any(hint in q for hint in SKILL_QUESTION_HINTS):
        hits = count_substring_hits(SKILL_INDICATORS, ctx.lower)
        return RuleContribution("relevance.intent.skill", _capped(hits, 0.3, 1.5))
    if any(hint in q for hint in PROBLEM_QUESTION_HINTS):
        hits = count_pattern_hits(SOLUTION_EVIDENCE, ctx.lower)
        return RuleContribution("relevance.intent.problem", _capped(hits, 0.5, 1.5))
    return RuleContribution("relevance.intent.none", 0.0)


# -- 6. technical ------------------------------------------------------------


def technical_terms(ctx: AnswerContext) -> RuleContribution:
    hits = count_substring_hits(TECHNICAL_TERMS, ctx.lower)
    return RuleContribution("technical.terms", _capped(hits, 0.3, 2.0))


def named_tools(ctx: AnswerContext) -> RuleContribution:
    hits = count_substring_hits(NAMED_TOOLS, ctx.lower)
    return RuleContribution("technical.tools", _capped(hits, 0.2, 1.5))


# -- 7. structure ------------------------------------------------------------


def sentence_length(ctx: AnswerContext) -> RuleContribution:
    """Average words per sentence; 12–25 is ideal, above 25 is penalised."""
    sentences = [s for s in _SENTENCE_SPLIT.split(ctx.answer_text) if s]
    average = len(ctx.tokens) / len(sentences) if sentences else 0.0
    if 12 <= average <= 25:
        points = 1.0
    elif 8 <= average < 12:
        points = 0.7
    elif 6 <= average < 8:
        points = 0.5
    elif average > 25:
        points = -0.3
    else:
        points = 0.0
    return RuleContribution("structure.sentences", points)


def paragraphing(ctx: AnswerContext) -> RuleContribution:
    paragraphs = [p for p in _PARAGRAPH_SPLIT.split(ctx.answer_text) if p]
    points = 0.5 if 2 <= len(paragraphs) <= 4 else 0.0
    return RuleContribution("structure.paragraphs", points)


def transitions(ctx: AnswerContext) -> RuleContribution:
    hits = count_substring_hits(TRANSITION_WORDS, ctx.lower)
    return RuleContribution("structure.transitions", _capped(hits, 0.1, 0.5))


# -- 8. quality --------------------------------------------------------------


def excess_length(ctx: AnswerContext) -> RuleContribution:
    size = len(ctx.answer_text)
    points = 0.0
    if size > 1000:
        points -= 0.5
    if size > 2000:
        points -= 1.0
    return RuleContribution("quality.excess_length", points)


def formatting(ctx: AnswerContext) -> RuleContribution:
    """Double spaces, a lowercase opening, and symbol-heavy text cost points."""
    text = ctx.answer_text
    points = 0.0
    if "  " in text:
        points -= 0.2
    if not _CAPITAL_START.match(text):
        points -= 0.3
    letters = sum(1 for ch in ctx.lower if ch.isalpha())
    if letters < len(text) * 0.6:
        points -= 0.8
    return RuleContribution("quality.formatting", points)


def repetition(ctx: AnswerContext) -> RuleContribution:
    """Penalty when more than 30% of tokens are repeats."""
    if not ctx.tokens:
        return RuleContribution("quality.repetition", 0.0)
    duplicates = len(ctx.tokens) - len(set(ctx.tokens))
    points = -0.5 if duplicates / len(ctx.tokens) > 0.3 else 0.0
    return RuleContribution("quality.repetition", points)


def line_breaks(ctx: AnswerContext) -> RuleContribution:
    points = 0.2 if "\n" in ctx.answer_text else 0.0
    return RuleContribution("quality.line_breaks", points)


DEFAULT_RULES: tuple[Callable[[AnswerContext], RuleContribution], ...] = (
    length_band,
    vocabulary_diversity,
    domain_keywords,
    action_verbs,
    technology_tokens,
    quantified_evidence,
    specific_examples,
    outcomes,
    professional_language,
    leadership_language,
    direct_overlap,
    fuzzy_overlap,
    question_intent,
    technical_terms,
    named_tools,
    sentence_length,
    paragraphing,
    transitions,
    excess_length,
    formatting,
    repetition,
    line_breaks,
)


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


@dataclass
class TextScore:
    """A Text answer's total and the contributions that produced it."""

    total: float
    contributions: list[RuleContribution] = field(default_factory=list)

    def by_stage(self) -> dict[str, float]:
        """Contributions summed per stage (the label prefix before the first dot)."""
        stages: dict[str, float] = {}
        for c in self.contributions:
            stage = c.label.split(".", 1)[0]
            stages[stage] = stages.get(stage, 0.0) + c.points
        return stages


class TextHeuristicScorer:
    """Runs the rule list over a (question, answer) pair.

    Usage::

        scorer = TextHeuristicScorer()
        points = scorer.score("Describe a challenge you solved", answer)
        detail = scorer.explain("Describe a challenge you solved", answer)
        for c in detail.contributions:
            print(c.label, c.points)
    """

    def __init__(
        self,
        rules: Sequence[Callable[[AnswerContext], RuleContribution]] = DEFAULT_RULES,
    ) -> None:
        self.rules = tuple(rules)

    def explain(self, question_text: str, answer_text: str) -> TextScore:
        if not answer_text:
            return TextScore(total=0.0)
        ctx = AnswerContext.build(question_text, answer_text)
        contributions = [rule(ctx) for rule in self.rules]
        total = max(0.0, sum(c.points for c in contributions))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Text score %.2f for %d-char answer: %s",
                total,
                len(answer_text),
                ", ".join(f"{c.label}={c.points:+.2f}" for c in contributions if c.points),
            )
        return TextScore(total=total, contributions=contributions)

    def score(self, question_text: str, answer_text: str) -> float:
        return self.explain(question_text, answer_text).total
