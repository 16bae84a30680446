"""
Roadmap Progress Rules

Steps unlock sequentially: the step at position i > 0 is locked while the
step at position i - 1 is not completed. Lock state is always derived from
the stored completion flags and is never persisted.
"""

from typing import List, Sequence

from models.career_models import (
    Roadmap,
    RoadmapProgress,
    Step,
    StepProgress,
    StepState,
)


def is_step_locked(steps: Sequence[Step], index: int) -> bool:
    """Whether the step at `index` is locked by its predecessor."""
    if index < 0 or index >= len(steps):
        raise IndexError(f"Step index out of range: {index}")
    return index > 0 and not steps[index - 1].is_completed


def step_state(steps: Sequence[Step], index: int) -> StepState:
    if is_step_locked(steps, index):
        return StepState.LOCKED
    if steps[index].is_completed:
        return StepState.COMPLETED
    return StepState.UNLOCKED


def derive_step_states(steps: Sequence[Step]) -> List[StepState]:
    """Lock state of every step, in order."""
    return [step_state(steps, index) for index in range(len(steps))]


def progress_percent(steps: Sequence[Step]) -> int:
    """Share of completed steps as a whole percentage, rounded half up."""
    if not steps:
        return 0
    completed = sum(1 for step in steps if step.is_completed)
    return (completed * 200 + len(steps)) // (2 * len(steps))


def find_step_index(steps: Sequence[Step], step_id: str) -> int:
    """Position of the step with `step_id`, or -1."""
    for index, step in enumerate(steps):
        if step.id == step_id:
            return index
    return -1


def toggle_step(steps: Sequence[Step], step_id: str) -> List[Step]:
    """
    Flip the completion flag of the step matching `step_id`.

    Returns a new list; the input is not modified. Steps that do not match
    are copied unchanged, and an unknown id changes nothing.
    """
    toggled = []
    for step in steps:
        if step.id == step_id:
            toggled.append(step.model_copy(update={"is_completed": not step.is_completed}))
        else:
            toggled.append(step)
    return toggled


def describe_roadmap(roadmap: Roadmap) -> RoadmapProgress:
    """Build the progress read model for a roadmap."""
    states = derive_step_states(roadmap.steps)
    return RoadmapProgress(
        roadmap=roadmap,
        steps=[StepProgress(step=step, state=state) for step, state in zip(roadmap.steps, states)],
        completed_steps=sum(1 for step in roadmap.steps if step.is_completed),
        total_steps=len(roadmap.steps),
        percent_complete=progress_percent(roadmap.steps),
    )
