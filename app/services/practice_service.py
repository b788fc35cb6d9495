"""Self-grading and review of practice sessions.

Grading is the learner's own verdict: nothing here judges the answer.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.crud import practice_crud
from app.models.practice.practice_attempt_model import PracticeAttempt, Verdict
from app.models.practice.practice_session_model import PracticeSession
from app.models.user.user_model import User
from app.services.generation_support import GenerationError
from app.utils.japanese import normalize_japanese_answer

logger = logging.getLogger(__name__)


class PracticeService:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    def grade(self, problem_id: str, user_answer_ja: str, verdict: Verdict) -> PracticeAttempt:
        answer = (user_answer_ja or "").strip()
        if not normalize_japanese_answer(answer):
            raise GenerationError("Invalid body", status_code=400)

        problem = practice_crud.get_problem(self.db, self.user.id, str(problem_id))
        if not problem:
            raise GenerationError("Problem not found", status_code=404)

        return practice_crud.create_attempt(
            self.db,
            self.user.id,
            problem.id,
            user_answer_ja=answer,
            verdict=Verdict(verdict),
        )

    def list_sessions(self) -> List[PracticeSession]:
        return practice_crud.list_sessions(self.db, self.user.id)

    def get_session_detail(self, session_id: str) -> Dict[str, Any]:
        """The session, its problems in creation order and each problem's current attempt."""
        session = self._get_session_or_404(session_id)
        problems = practice_crud.list_problems(self.db, self.user.id, session.id)
        current = practice_crud.latest_attempts(self.db, self.user.id, [p.id for p in problems])

        return {
            "id": session.id,
            "list_id": session.list_id,
            "problem_count": session.problem_count,
            "jlpt_level": session.jlpt_level,
            "scenario_prompt": session.scenario_prompt,
            "created_at": session.created_at,
            "problems": [
                {
                    "id": problem.id,
                    "prompt_ko": problem.prompt_ko,
                    "model_answer_ja": problem.model_answer_ja,
                    "alt_answer_ja": problem.alt_answer_ja,
                    "target_item_ids": list(problem.target_item_ids or []),
                    "created_at": problem.created_at,
                    "current_attempt": current.get(problem.id),
                }
                for problem in problems
            ],
        }

    def reset_session(self, session_id: str) -> int:
        session = self._get_session_or_404(session_id)
        deleted = practice_crud.delete_attempts_for_session(self.db, self.user.id, session.id)
        logger.info("Session %s reset: %s attempt(s) deleted.", session.id, deleted)
        return deleted

    def _get_session_or_404(self, session_id: str) -> PracticeSession:
        session = practice_crud.get_session(self.db, self.user.id, str(session_id))
        if not session:
            raise GenerationError("Session not found", status_code=404)
        return session
