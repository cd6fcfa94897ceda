"""
In-memory record store standing in for the external event/record source.

Every read returns copies of immutable snapshots; the analytic functions
never see (or mutate) the stored objects. Reads are batched by entity
type across a whole list of ids, one call per entity type.
"""
import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml
from loguru import logger

from ..schemas.dashboard import DashboardSnapshot
from ..schemas.goal import CheckIn, Cohort, CohortMember, Goal, LearnerProfile, SupportAction, SupporterLink
from ..schemas.step import Step

COACH_ROLES = {"coach", "teacher"}


class RecordStore:
    def __init__(self) -> None:
        self._snapshot = DashboardSnapshot()
        self._supporters: List[SupporterLink] = []
        self._lock = asyncio.Lock()

    async def seed(self, payload: Dict[str, Any]) -> Dict[str, int]:
        snapshot = DashboardSnapshot(**{key: value for key, value in payload.items() if key != "supporters"})
        supporters = [SupporterLink(**link) for link in payload.get("supporters") or []]
        async with self._lock:
            self._snapshot = snapshot
            self._supporters = supporters
        counts = {
            "supporters": len(supporters),
            "profiles": len(snapshot.profiles),
            "goals": len(snapshot.goals),
            "steps": len(snapshot.steps),
            "check_ins": len(snapshot.check_ins),
        }
        logger.info(f"Record store seeded: {counts}")
        return counts

    async def load_yaml(self, path: Path) -> Dict[str, int]:
        with Path(path).open("r", encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
        return await self.seed(payload)

    async def clear(self) -> None:
        async with self._lock:
            self._snapshot = DashboardSnapshot()
            self._supporters = []

    async def learners_for_coach(self, coach_id: str) -> List[str]:
        async with self._lock:
            learner_ids = [
                link.individual_id
                for link in self._supporters
                if link.supporter_id == coach_id and link.role in COACH_ROLES
            ]
        return list(dict.fromkeys(learner_ids))

    async def get_goal(self, goal_id: str) -> Optional[Goal]:
        async with self._lock:
            goal = next((goal for goal in self._snapshot.goals if goal.id == goal_id), None)
        return goal.model_copy() if goal else None

    async def list_goals(self, owner_ids: Iterable[str]) -> List[Goal]:
        wanted = set(owner_ids)
        async with self._lock:
            return [goal.model_copy() for goal in self._snapshot.goals if goal.owner_id in wanted]

    async def list_steps(self, goal_ids: Iterable[str]) -> List[Step]:
        wanted = set(goal_ids)
        async with self._lock:
            return [step.model_copy(deep=True) for step in self._snapshot.steps if step.goal_id in wanted]

    async def list_check_ins(self, user_ids: Iterable[str]) -> List[CheckIn]:
        wanted = set(user_ids)
        async with self._lock:
            return [check_in.model_copy(deep=True) for check_in in self._snapshot.check_ins if check_in.user_id in wanted]

    async def list_profiles(self, user_ids: Iterable[str]) -> List[LearnerProfile]:
        wanted = set(user_ids)
        async with self._lock:
            return [profile.model_copy() for profile in self._snapshot.profiles if profile.user_id in wanted]

    async def list_cohort_memberships(self, user_ids: Iterable[str]) -> Tuple[List[CohortMember], List[Cohort]]:
        wanted = set(user_ids)
        async with self._lock:
            members = [member.model_copy() for member in self._snapshot.cohort_members if member.individual_id in wanted]
            cohort_ids = {member.cohort_id for member in members}
            cohorts = [cohort.model_copy() for cohort in self._snapshot.cohorts if cohort.id in cohort_ids]
        return members, cohorts

    async def list_support_actions(self, student_ids: Iterable[str]) -> List[SupportAction]:
        wanted = set(student_ids)
        async with self._lock:
            return [action.model_copy() for action in self._snapshot.support_actions if action.student_id in wanted]


record_store = RecordStore()
