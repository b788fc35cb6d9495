import uuid

import pytest
from fastapi import HTTPException

from app.api.v2.endpoints import practice_router
from app.core import openai_service
from app.crud import practice_crud
from app.models.practice.practice_attempt_model import PracticeAttempt, Verdict
from app.models.practice.practice_problem_model import PracticeProblem
from app.schemas.practice import practice_schema
from app.services.generation_support import GenerationError
from app.services.practice_service import PracticeService

from tests.utils import StubOpenAI, create_practice_session, create_user, create_vocab_items, create_vocab_list


@pytest.fixture()
def stub(monkeypatch) -> StubOpenAI:
    stub = StubOpenAI()
    monkeypatch.setattr(openai_service, "get_openai_client", lambda: stub)
    return stub


@pytest.fixture()
def session_with_problems(db_session, user):
    vocab_list = create_vocab_list(db_session, user)
    (station,) = create_vocab_items(db_session, user, vocab_list, ["駅"])
    session = create_practice_session(db_session, user, vocab_list, problem_count=2)
    problems = [
        PracticeProblem(
            user_id=user.id,
            session_id=session.id,
            prompt_ko=prompt,
            model_answer_ja=answer,
            target_item_ids=[station.id],
        )
        for prompt, answer in (("역은 어디예요?", "駅はどこですか"), ("역에 가요", "駅に行きます"))
    ]
    db_session.add_all(problems)
    db_session.commit()
    return session, problems


def _grade(db_session, user, problem_id, answer="駅はどこですか", verdict="perfect"):
    payload = practice_schema.GradeIn.model_validate(
        {"problemId": str(problem_id), "userAnswerJa": answer, "verdict": verdict}
    )
    return practice_router.grade_problem(payload, db=db_session, current_user=user)


def test_generate_unknown_session_is_404(db_session, user, stub):
    payload = practice_schema.GenerateProblemsIn(sessionId=uuid.uuid4())

    with pytest.raises(HTTPException) as exc_info:
        practice_router.generate_problems(payload, db=db_session, current_user=user)

    assert exc_info.value.status_code == 404
    assert stub.calls == []


def test_generate_upstream_failure_is_502(db_session, user, stub):
    vocab_list = create_vocab_list(db_session, user)
    create_vocab_items(db_session, user, vocab_list, ["駅"])
    session = create_practice_session(db_session, user, vocab_list, problem_count=1)
    stub.queue("gpt-5-mini", RuntimeError("upstream timeout"))

    with pytest.raises(HTTPException) as exc_info:
        practice_router.generate_problems(
            practice_schema.GenerateProblemsIn(sessionId=session.id), db=db_session, current_user=user
        )

    assert exc_info.value.status_code == 502
    assert exc_info.value.detail == "upstream timeout"
    assert stub.models_called == ["gpt-5-mini"]


def test_generate_stores_problems(db_session, user, stub):
    vocab_list = create_vocab_list(db_session, user)
    create_vocab_items(db_session, user, vocab_list, ["駅"])
    session = create_practice_session(db_session, user, vocab_list, problem_count=1)
    stub.queue("gpt-5-mini", {"problems": [{"promptKo": "역", "modelAnswerJa": "駅です"}]})

    result = practice_router.generate_problems(
        practice_schema.GenerateProblemsIn(sessionId=session.id), db=db_session, current_user=user
    )

    assert result.ok is True
    assert db_session.query(PracticeProblem).filter_by(session_id=session.id).count() == 1


def test_generate_scenario_without_prompt_is_400(db_session, user, stub, session_with_problems):
    session, _ = session_with_problems

    with pytest.raises(HTTPException) as exc_info:
        practice_router.generate_scenario_problems(
            practice_schema.GenerateProblemsIn(sessionId=session.id), db=db_session, current_user=user
        )

    assert exc_info.value.status_code == 400


def test_grade_stores_the_answer_as_submitted(db_session, user, session_with_problems):
    _, (problem, _) = session_with_problems
    submitted = "こちらでお召し上がりですか？　ＯＫ"

    result = _grade(db_session, user, problem.id, answer=f"  {submitted} ", verdict="acceptable")

    assert result.ok is True
    assert result.verdict == Verdict.ACCEPTABLE
    attempt = db_session.query(PracticeAttempt).one()
    assert attempt.user_answer_ja == submitted
    assert attempt.problem_id == problem.id


@pytest.mark.parametrize("answer", ["　 ", "\n\t"])
def test_grade_blank_answer_is_rejected_by_the_body(answer):
    with pytest.raises(ValueError):
        practice_schema.GradeIn.model_validate(
            {"problemId": str(uuid.uuid4()), "userAnswerJa": answer, "verdict": "perfect"}
        )


def test_grade_blank_answer_is_400_before_problem_lookup(db_session, user, monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("problem lookup must not run for a blank answer")

    monkeypatch.setattr(practice_crud, "get_problem", _fail)

    with pytest.raises(GenerationError) as exc_info:
        PracticeService(db_session, user).grade(str(uuid.uuid4()), "　 ", Verdict.PERFECT)

    assert exc_info.value.status_code == 400
    assert db_session.query(PracticeAttempt).count() == 0


def test_grade_unknown_or_foreign_problem_is_404(db_session, user, session_with_problems):
    _, (problem, _) = session_with_problems
    intruder = create_user(db_session, email="other@example.com")

    for current_user, problem_id in ((user, uuid.uuid4()), (intruder, problem.id)):
        with pytest.raises(HTTPException) as exc_info:
            _grade(db_session, current_user, problem_id)
        assert exc_info.value.status_code == 404


def test_grade_rejects_unknown_verdict():
    with pytest.raises(ValueError):
        practice_schema.GradeIn.model_validate(
            {"problemId": str(uuid.uuid4()), "userAnswerJa": "駅", "verdict": "great"}
        )


def test_session_detail_exposes_the_latest_attempt(db_session, user, session_with_problems):
    session, (first, second) = session_with_problems
    _grade(db_session, user, first.id, verdict="needs_fix")
    _grade(db_session, user, first.id, answer="駅はどちらですか", verdict="perfect")

    detail = practice_router.read_practice_session(session.id, db=db_session, current_user=user)

    problems = {problem.id: problem for problem in detail.problems}
    assert detail.id == session.id
    assert len(problems) == 2
    assert problems[first.id].current_attempt.verdict == Verdict.PERFECT
    assert problems[first.id].current_attempt.user_answer_ja == "駅はどちらですか"
    assert problems[second.id].current_attempt is None


def test_session_detail_of_another_user_is_404(db_session, user, session_with_problems):
    session, _ = session_with_problems
    intruder = create_user(db_session, email="other@example.com")

    with pytest.raises(HTTPException) as exc_info:
        practice_router.read_practice_session(session.id, db=db_session, current_user=intruder)

    assert exc_info.value.status_code == 404


def test_reset_deletes_attempts_but_keeps_problems(db_session, user, session_with_problems):
    session, (first, second) = session_with_problems
    _grade(db_session, user, first.id)
    _grade(db_session, user, second.id, verdict="needs_fix")

    result = practice_router.reset_practice_session(session.id, db=db_session, current_user=user)

    assert result.deleted_attempts == 2
    assert db_session.query(PracticeAttempt).count() == 0
    assert db_session.query(PracticeProblem).filter_by(session_id=session.id).count() == 2


def test_list_sessions_only_returns_own_sessions(db_session, user, session_with_problems):
    session, _ = session_with_problems
    intruder = create_user(db_session, email="other@example.com")
    other_list = create_vocab_list(db_session, intruder)
    create_practice_session(db_session, intruder, other_list)

    sessions = practice_router.read_practice_sessions(db=db_session, current_user=user)

    assert [s.id for s in sessions] == [session.id]
