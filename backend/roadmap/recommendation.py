"""
Recommendation Engine

Maps a completed quiz to exactly one career key using an ordered rule
table. The first rule whose predicate holds wins; rules are not mutually
exclusive, so their order is part of the contract.

The `environment` answer is collected and stored but no rule reads it.
"""

from typing import Callable, Dict, List, Tuple

from models.career_models import (
    AssessmentAnswers,
    CareerKey,
    EnvironmentOption,
    InterestOption,
    StrengthOption,
)
from roadmap.config import DEFAULT_CAREER

Rule = Tuple[str, Callable[[AssessmentAnswers], bool], CareerKey]


RECOMMENDATION_RULES: List[Rule] = [
    (
        "builder_with_logic",
        lambda a: a.interest == InterestOption.BUILDING and a.strength == StrengthOption.LOGIC,
        CareerKey.SOFTWARE_ENGINEER,
    ),
    (
        "analyst",
        lambda a: a.interest == InterestOption.ANALYZING,
        CareerKey.DATA_SCIENTIST,
    ),
    (
        "leader",
        lambda a: a.interest == InterestOption.LEADING,
        CareerKey.PRODUCT_MANAGER,
    ),
    (
        "designer_or_creative",
        lambda a: a.interest == InterestOption.DESIGNING or a.strength == StrengthOption.CREATIVITY,
        CareerKey.UX_DESIGNER,
    ),
]

FALLBACK_CAREER = CareerKey(DEFAULT_CAREER)


# Quiz bank served to clients
ASSESSMENT_QUESTIONS: List[Dict] = [
    {
        "id": "interest",
        "question": "What do you enjoy doing the most?",
        "options": [
            {"value": InterestOption.BUILDING.value, "label": "Building things and coding"},
            {"value": InterestOption.ANALYZING.value, "label": "Analyzing data and finding patterns"},
            {"value": InterestOption.LEADING.value, "label": "Leading teams and strategy"},
            {"value": InterestOption.DESIGNING.value, "label": "Designing visual experiences"},
        ],
    },
    {
        "id": "environment",
        "question": "What is your ideal work environment?",
        "options": [
            {"value": EnvironmentOption.REMOTE.value, "label": "Fully Remote"},
            {"value": EnvironmentOption.OFFICE.value, "label": "In Office"},
            {"value": EnvironmentOption.HYBRID.value, "label": "Hybrid"},
        ],
    },
    {
        "id": "strength",
        "question": "What do you consider your key strength?",
        "options": [
            {"value": StrengthOption.LOGIC.value, "label": "Logical Thinking & Problem Solving"},
            {"value": StrengthOption.CREATIVITY.value, "label": "Creativity & Visual Eye"},
            {"value": StrengthOption.COMMUNICATION.value, "label": "Communication & Empathy"},
        ],
    },
]


def recommend(answers: AssessmentAnswers) -> CareerKey:
    """
    Recommend a career for a completed quiz.

    Pure and total: every valid answer set maps to one of the known
    career keys, falling back to Software Engineer.
    """
    for _name, predicate, career in RECOMMENDATION_RULES:
        if predicate(answers):
            return career
    return FALLBACK_CAREER


def explain_recommendation(answers: AssessmentAnswers) -> str:
    """Name of the rule that produced the recommendation, or 'fallback'."""
    for name, predicate, _career in RECOMMENDATION_RULES:
        if predicate(answers):
            return name
    return "fallback"
