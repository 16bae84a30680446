"""
Roadmap Materializer

Turns a career template into a persisted roadmap and keeps at most one
roadmap per user `active`. Replacing the active roadmap is two round trips
to the store: archive every active roadmap of the owner, then insert the
new one. The two writes are not a transaction; if the insert fails the
user is left without an active roadmap until the next attempt.

Within one process the sequence is serialized per user, so concurrent
requests from the same user cannot both observe "no active roadmap" and
end up with two.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Sequence
from uuid import uuid4

from models.career_models import RoadmapDraft, RoadmapStatus, Step
from roadmap.config import ROADMAPS_TABLE
from roadmap.errors import InvalidRoadmapError
from roadmap.template_catalog import TemplateCatalog
from storage.document_store import DocumentStore
from utils.tracing import add_span_attributes, add_span_event, trace_async


def _new_step_id() -> str:
    return str(uuid4())


class RoadmapMaterializer:
    """
    Expands templates into roadmaps and swaps a user's active roadmap.
    """

    def __init__(
        self,
        catalog: TemplateCatalog,
        store: DocumentStore,
        serialize_per_user: bool = True,
        step_id_factory: Callable[[], str] = _new_step_id
    ):
        self.catalog = catalog
        self.store = store
        self.serialize_per_user = serialize_per_user
        self.step_id_factory = step_id_factory
        self._user_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def expand(self, career_key: str) -> RoadmapDraft:
        """
        Build unsaved roadmap content from the template for `career_key`.

        Raises:
            UnknownTemplateError: if the catalog has no such template
        """
        template = self.catalog.get(career_key)
        return RoadmapDraft(
            title=template.title,
            description=template.description,
            steps=[
                Step(
                    id=self.step_id_factory(),
                    title=step.title,
                    description=step.description,
                    is_completed=False
                )
                for step in template.steps
            ],
            skills=list(template.skills),
        )

    @trace_async("roadmap.materialize")
    async def materialize(self, career_key: str, owner_id: str) -> str:
        """
        Create and activate a roadmap for `owner_id` from a template.

        The template is resolved before anything is written, so an unknown
        key leaves the user's current roadmap active.

        Returns:
            Id of the new active roadmap
        """
        draft = self.expand(career_key)
        add_span_attributes({"roadmap.career_key": str(career_key)})
        return await self.replace_active(owner_id, draft)

    @trace_async("roadmap.replace_active")
    async def replace_active(self, owner_id: str, draft: RoadmapDraft) -> str:
        """
        Archive the owner's active roadmaps, then insert `draft` as active.
        """
        validate_step_ids(draft.steps)

        if not self.serialize_per_user:
            return await self._archive_then_insert(owner_id, draft)

        async with self._serialized(owner_id):
            return await self._archive_then_insert(owner_id, draft)

    @asynccontextmanager
    async def _serialized(self, owner_id: str):
        """Hold the owner's lock; the entry is dropped once no task holds or awaits it."""
        lock = self._user_locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[owner_id] = lock
        self._lock_users[owner_id] = self._lock_users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[owner_id] -= 1
            if not self._lock_users[owner_id]:
                del self._lock_users[owner_id]
                del self._user_locks[owner_id]

    async def _archive_then_insert(self, owner_id: str, draft: RoadmapDraft) -> str:
        archived = await self.archive_active(owner_id)

        roadmap_id = await self.store.insert(ROADMAPS_TABLE, {
            "user_id": owner_id,
            "title": draft.title,
            "description": draft.description,
            "steps": [step.model_dump(mode="json") for step in draft.steps],
            "status": RoadmapStatus.ACTIVE.value,
            "skills": list(draft.skills),
        })

        add_span_attributes({"roadmap.id": roadmap_id, "roadmap.archived_count": archived})
        self.logger.info(
            f"Roadmap '{draft.title}' ({roadmap_id}) is now active for user {owner_id}; "
            f"{archived} previous roadmap(s) archived"
        )
        return roadmap_id

    async def archive_active(self, owner_id: str) -> int:
        """Archive every active roadmap of the owner and return how many there were."""
        active = await self.store.query(
            ROADMAPS_TABLE,
            owner_id,
            status=RoadmapStatus.ACTIVE.value
        )
        for record in active:
            await self.store.patch(
                ROADMAPS_TABLE,
                record["id"],
                {"status": RoadmapStatus.ARCHIVED.value}
            )
            add_span_event("roadmap.archived", {"roadmap.id": record["id"]})
        return len(active)


def validate_step_ids(steps: Sequence[Step]) -> None:
    """Step ids must be non-empty and unique within one roadmap."""
    seen = set()
    duplicates: List[str] = []
    for step in steps:
        if not step.id:
            raise InvalidRoadmapError("Step id must not be empty")
        if step.id in seen:
            duplicates.append(step.id)
        seen.add(step.id)

    if duplicates:
        raise InvalidRoadmapError(f"Duplicate step ids: {', '.join(sorted(set(duplicates)))}")
