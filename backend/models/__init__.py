"""
Data models for the Career Compass backend.
"""

from .career_models import (
    AssessmentAnswers,
    Assessment,
    AssessmentOutcome,
    CareerKey,
    CareerTemplate,
    Goal,
    Roadmap,
    RoadmapDraft,
    RoadmapProgress,
    RoadmapStatus,
    Step,
    StepState,
    StepTemplate,
    UserProfile,
)

__all__ = [
    "AssessmentAnswers",
    "Assessment",
    "AssessmentOutcome",
    "CareerKey",
    "CareerTemplate",
    "Goal",
    "Roadmap",
    "RoadmapDraft",
    "RoadmapProgress",
    "RoadmapStatus",
    "Step",
    "StepState",
    "StepTemplate",
    "UserProfile",
]
