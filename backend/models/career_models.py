"""
Data models for the Career Compass backend.

This module defines the quiz answer record, the static career template
shapes, and the persisted user-owned entities (assessments, roadmaps,
goals, profiles) together with the derived progress view of a roadmap.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class InterestOption(str, Enum):
    """Answers to the 'What do you enjoy doing the most?' question."""
    BUILDING = "building"
    ANALYZING = "analyzing"
    LEADING = "leading"
    DESIGNING = "designing"


class EnvironmentOption(str, Enum):
    """Answers to the 'ideal work environment' question."""
    REMOTE = "remote"
    OFFICE = "office"
    HYBRID = "hybrid"


class StrengthOption(str, Enum):
    """Answers to the 'key strength' question."""
    LOGIC = "logic"
    CREATIVITY = "creativity"
    COMMUNICATION = "communication"


class CareerKey(str, Enum):
    """Stable identifiers of the shipped career templates."""
    SOFTWARE_ENGINEER = "Software Engineer"
    DATA_SCIENTIST = "Data Scientist"
    PRODUCT_MANAGER = "Product Manager"
    UX_DESIGNER = "UX Designer"


class RoadmapStatus(str, Enum):
    """Lifecycle status of a persisted roadmap."""
    ACTIVE = "active"
    ARCHIVED = "archived"
    # Reserved, nothing transitions a roadmap here yet
    COMPLETED = "completed"


class StepState(str, Enum):
    """Derived (never stored) state of a roadmap step."""
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


class AssessmentAnswers(BaseModel):
    """
    One completed quiz. Every question is a named field; unknown keys are rejected.
    """
    interest: InterestOption = Field(..., description="What the user enjoys doing the most")
    environment: EnvironmentOption = Field(..., description="Preferred work environment")
    strength: StrengthOption = Field(..., description="Self-assessed key strength")

    class Config:
        extra = "forbid"
        frozen = True


class StepTemplate(BaseModel):
    title: str
    description: str

    class Config:
        frozen = True


class CareerTemplate(BaseModel):
    """
    Static, read-only description of a career path shipped with the application.
    """
    key: str = Field(..., description="Career key, e.g. 'Data Scientist'")
    title: str = Field(..., description="Display title of the path")
    description: str = Field(..., description="One-line summary of the path")
    steps: Tuple[StepTemplate, ...] = Field(..., description="Ordered step templates")
    skills: Tuple[str, ...] = Field(default_factory=tuple, description="Skill tags")

    class Config:
        frozen = True


class Step(BaseModel):
    """A single checklist entry embedded in a roadmap."""
    id: str = Field(..., description="Opaque step identifier, unique within its roadmap")
    title: str
    description: str
    is_completed: bool = False


class RoadmapDraft(BaseModel):
    """Unsaved roadmap content, as produced from a template or supplied by a client."""
    title: str
    description: str
    steps: List[Step] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)


class Roadmap(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    steps: List[Step] = Field(default_factory=list)
    status: RoadmapStatus = RoadmapStatus.ACTIVE
    skills: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class Goal(BaseModel):
    id: str
    user_id: str
    title: str
    is_completed: bool = False
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None


class Assessment(BaseModel):
    """
    Immutable audit record of a submitted quiz.

    `answers` holds the serialized answer set exactly as it was submitted.
    """
    id: str
    user_id: str
    answers: str = Field(..., description="JSON serialized answer set")
    recommended_career: str
    created_at: Optional[datetime] = None


class UserProfile(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    current_role: Optional[str] = None
    target_role: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None


class StepProgress(BaseModel):
    step: Step
    state: StepState


class RoadmapProgress(BaseModel):
    """Read model of a roadmap with the lock state of each step resolved."""
    roadmap: Roadmap
    steps: List[StepProgress] = Field(default_factory=list)
    completed_steps: int = 0
    total_steps: int = 0
    percent_complete: int = 0


class AssessmentOutcome(BaseModel):
    """Result of running the full quiz flow for a user."""
    recommended_career: str
    assessment_id: str
    roadmap_id: Optional[str] = Field(None, description="None when no template matched the recommendation")
