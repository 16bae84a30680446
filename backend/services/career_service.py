"""
Career Service

The application's public operations: quiz submission, roadmap creation
and progress, goal tracking and the user profile. Every operation takes
the acting user id first (None when the request carries no identity).

Identity rules:
- Mutations without an identity raise UnauthorizedError
- Queries without an identity return an empty result
- An entity owned by someone else is reported exactly like a missing one
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from models.career_models import (
    Assessment,
    AssessmentAnswers,
    AssessmentOutcome,
    Goal,
    Roadmap,
    RoadmapDraft,
    RoadmapProgress,
    RoadmapStatus,
    Step,
    UserProfile,
)
from roadmap.config import (
    ASSESSMENTS_TABLE,
    GOALS_TABLE,
    PROFILES_TABLE,
    ROADMAPS_TABLE,
)
from roadmap.errors import NotFoundError, StepLockedError, UnauthorizedError
from roadmap.materializer import RoadmapMaterializer
from roadmap.progress import describe_roadmap, find_step_index, is_step_locked, toggle_step
from roadmap.recommendation import explain_recommendation, recommend
from roadmap.template_catalog import TemplateCatalog
from storage.document_store import DocumentNotFoundError, DocumentStore
from utils.tracing import add_span_attributes, trace_async

PROFILE_FIELDS = ("name", "current_role", "target_role", "bio")


class CareerService:
    """
    Thin ownership-checked handlers over the document store, plus the
    recommendation and roadmap rules.
    """

    def __init__(
        self,
        store: DocumentStore,
        catalog: TemplateCatalog,
        enforce_step_locks: bool = False,
        serialize_per_user: bool = True
    ):
        self.store = store
        self.catalog = catalog
        self.enforce_step_locks = enforce_step_locks
        self.materializer = RoadmapMaterializer(
            catalog,
            store,
            serialize_per_user=serialize_per_user
        )
        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise UnauthorizedError()
        return user_id

    def _reject(self, table: str, doc_id: str, user_id: str) -> NotFoundError:
        # Same error for missing and foreign records
        self.logger.warning(f"Rejected access to {table}/{doc_id} by user {user_id}")
        return NotFoundError()

    async def _update_owned(
        self,
        table: str,
        doc_id: str,
        user_id: str,
        apply: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]
    ) -> Dict[str, Any]:
        """Atomic read-modify-write of a record the user owns."""
        try:
            return await self.store.update(table, doc_id, apply, owner_id=user_id)
        except DocumentNotFoundError:
            raise self._reject(table, doc_id, user_id) from None

    async def _delete_owned(self, table: str, doc_id: str, user_id: str) -> None:
        try:
            await self.store.delete(table, doc_id, owner_id=user_id)
        except DocumentNotFoundError:
            raise self._reject(table, doc_id, user_id) from None

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    @trace_async("assessments.submit")
    async def submit_assessment(
        self,
        user_id: Optional[str],
        answers: AssessmentAnswers,
        recommended_career: str
    ) -> str:
        """
        Store an immutable audit record of a completed quiz.

        Also sets the user's target role to the recommendation when no
        target role has been chosen yet.
        """
        user_id = self._require_user(user_id)

        assessment_id = await self.store.insert(ASSESSMENTS_TABLE, {
            "user_id": user_id,
            "answers": answers.model_dump_json(),
            "recommended_career": str(recommended_career),
        })

        profile = await self.store.first(PROFILES_TABLE, user_id)
        if profile is None:
            await self.store.insert(PROFILES_TABLE, {
                "user_id": user_id,
                "target_role": str(recommended_career),
            })
        elif not profile.get("target_role"):
            await self.store.patch(PROFILES_TABLE, profile["id"], {"target_role": str(recommended_career)})

        self.logger.info(f"Assessment {assessment_id} stored for user {user_id}: {recommended_career}")
        return assessment_id

    @trace_async("assessments.list")
    async def get_user_assessments(self, user_id: Optional[str]) -> List[Assessment]:
        """The user's assessments, newest first."""
        if not user_id:
            return []

        records = await self.store.query(ASSESSMENTS_TABLE, user_id, descending=True)
        return [Assessment.model_validate(record) for record in records]

    @trace_async("assessments.complete")
    async def complete_assessment(
        self,
        user_id: Optional[str],
        answers: AssessmentAnswers
    ) -> AssessmentOutcome:
        """
        Run the whole quiz flow: recommend, store the audit record and
        activate a roadmap built from the recommended template.

        A recommendation without a template in the catalog stores the
        assessment but creates no roadmap.
        """
        user_id = self._require_user(user_id)

        career = recommend(answers)
        add_span_attributes({
            "assessment.recommendation": career.value,
            "assessment.rule": explain_recommendation(answers),
        })

        assessment_id = await self.submit_assessment(user_id, answers, career.value)

        roadmap_id = None
        if career in self.catalog:
            roadmap_id = await self.materializer.materialize(career.value, user_id)
        else:
            self.logger.warning(f"No template for recommended career '{career.value}', roadmap not created")

        return AssessmentOutcome(
            recommended_career=career.value,
            assessment_id=assessment_id,
            roadmap_id=roadmap_id
        )

    # ------------------------------------------------------------------
    # Roadmaps
    # ------------------------------------------------------------------

    @trace_async("roadmaps.create")
    async def create_roadmap(
        self,
        user_id: Optional[str],
        title: str,
        description: str,
        steps: Sequence[Step],
        skills: Optional[Sequence[str]] = None
    ) -> str:
        """Archive the user's active roadmap and activate a new one with the given content."""
        user_id = self._require_user(user_id)

        draft = RoadmapDraft(
            title=title,
            description=description,
            steps=list(steps),
            skills=list(skills or []),
        )
        return await self.materializer.replace_active(user_id, draft)

    @trace_async("roadmaps.switch_template")
    async def switch_template(self, user_id: Optional[str], career_key: str) -> str:
        """
        Replace the active roadmap with a fresh one from a catalog template.

        Raises:
            UnknownTemplateError: if the key is not in the catalog
        """
        user_id = self._require_user(user_id)
        return await self.materializer.materialize(career_key, user_id)

    @trace_async("roadmaps.get_active")
    async def get_active_roadmap(self, user_id: Optional[str]) -> Optional[Roadmap]:
        if not user_id:
            return None

        record = await self.store.first(ROADMAPS_TABLE, user_id, status=RoadmapStatus.ACTIVE.value)
        return Roadmap.model_validate(record) if record else None

    @trace_async("roadmaps.list")
    async def list_roadmaps(self, user_id: Optional[str]) -> List[Roadmap]:
        """All of the user's roadmaps, active and archived, newest first."""
        if not user_id:
            return []

        records = await self.store.query(ROADMAPS_TABLE, user_id, descending=True)
        return [Roadmap.model_validate(record) for record in records]

    async def get_roadmap_progress(self, user_id: Optional[str]) -> Optional[RoadmapProgress]:
        """The active roadmap with each step's lock state resolved."""
        roadmap = await self.get_active_roadmap(user_id)
        return describe_roadmap(roadmap) if roadmap else None

    @trace_async("roadmaps.toggle_step")
    async def toggle_step(self, user_id: Optional[str], roadmap_id: str, step_id: str) -> None:
        """
        Flip the completion flag of one step.

        Locked steps can be toggled unless lock enforcement is enabled.
        An unknown step id leaves the roadmap unchanged. The flag is read
        and written in one store transaction, so concurrent toggles of
        different steps on the same roadmap all take effect.
        """
        user_id = self._require_user(user_id)
        add_span_attributes({"roadmap.id": roadmap_id, "roadmap.step_id": step_id})

        def flip(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            steps = Roadmap.model_validate(record).steps

            index = find_step_index(steps, step_id)
            if index < 0:
                self.logger.warning(f"Step {step_id} not found in roadmap {roadmap_id}, nothing toggled")
                return None
            if self.enforce_step_locks and is_step_locked(steps, index):
                raise StepLockedError(step_id)

            return {"steps": [step.model_dump(mode="json") for step in toggle_step(steps, step_id)]}

        await self._update_owned(ROADMAPS_TABLE, roadmap_id, user_id, flip)

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    @trace_async("goals.add")
    async def add_goal(
        self,
        user_id: Optional[str],
        title: str,
        deadline: Optional[datetime] = None
    ) -> str:
        user_id = self._require_user(user_id)

        goal_id = await self.store.insert(GOALS_TABLE, {
            "user_id": user_id,
            "title": title,
            "is_completed": False,
            "deadline": deadline.isoformat() if deadline else None,
        })
        self.logger.info(f"Goal {goal_id} added for user {user_id}")
        return goal_id

    @trace_async("goals.toggle")
    async def toggle_goal(self, user_id: Optional[str], goal_id: str) -> None:
        user_id = self._require_user(user_id)
        await self._update_owned(
            GOALS_TABLE,
            goal_id,
            user_id,
            lambda record: {"is_completed": not record.get("is_completed", False)}
        )

    @trace_async("goals.delete")
    async def delete_goal(self, user_id: Optional[str], goal_id: str) -> None:
        user_id = self._require_user(user_id)
        await self._delete_owned(GOALS_TABLE, goal_id, user_id)
        self.logger.info(f"Goal {goal_id} deleted by user {user_id}")

    @trace_async("goals.list")
    async def get_goals(self, user_id: Optional[str]) -> List[Goal]:
        """The user's goals in the order they were added."""
        if not user_id:
            return []

        records = await self.store.query(GOALS_TABLE, user_id)
        return [Goal.model_validate(record) for record in records]

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: Optional[str]) -> Optional[UserProfile]:
        if not user_id:
            return None

        record = await self.store.first(PROFILES_TABLE, user_id)
        return UserProfile.model_validate(record) if record else None

    @trace_async("profile.update")
    async def update_profile(self, user_id: Optional[str], **fields: Optional[str]) -> UserProfile:
        """
        Set profile fields (name, current_role, target_role, bio).

        Only keyword arguments that are passed are written.
        """
        user_id = self._require_user(user_id)

        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        profile = await self.store.first(PROFILES_TABLE, user_id)
        if profile is None:
            profile_id = await self.store.insert(PROFILES_TABLE, {"user_id": user_id, **fields})
            record = await self.store.get(PROFILES_TABLE, profile_id)
        else:
            record = await self.store.patch(PROFILES_TABLE, profile["id"], fields)

        return UserProfile.model_validate(record)
