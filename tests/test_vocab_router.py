import pytest
from fastapi import HTTPException

from app.api.v2.endpoints import vocab_router
from app.core import openai_service
from app.crud import user_crud
from app.models.practice.practice_problem_model import PracticeProblem
from app.models.practice.practice_session_model import PracticeSession
from app.models.user.user_settings_model import JlptLevel
from app.models.vocab.vocab_item_model import VocabItem
from app.models.vocab.vocab_list_model import VocabList, VocabListKind
from app.schemas.vocab import vocab_schema

from tests.utils import StubOpenAI, create_user, create_vocab_items, create_vocab_list, problems_payload


@pytest.fixture()
def stub(monkeypatch) -> StubOpenAI:
    stub = StubOpenAI()
    monkeypatch.setattr(openai_service, "get_openai_client", lambda: stub)
    return stub


def _scenario_payload(**overrides):
    body = {"scenarioPrompt": "  커피숍에서 주문하기  ", "problemCount": 1}
    body.update(overrides)
    return vocab_schema.ScenarioCreateIn.model_validate(body)


def test_scenario_create_uses_user_jlpt_level(db_session, user, stub):
    user_crud.update_jlpt_level(db_session, user.id, JlptLevel.N1)
    stub.queue("gpt-5-mini", problems_payload(("라떼 주세요", "ラテをください")))
    stub.queue(
        "gpt-5-nano",
        {
            "listName": "카페",
            "items": [{"key": "w1", "jaSurface": "ラテ", "koMeaning": "라떼"}],
            "problemTargets": [{"index": 1, "targetItemKeys": ["w1"]}],
        },
    )

    result = vocab_router.create_scenario_vocab_list(_scenario_payload(), db=db_session, current_user=user)

    assert result.ok is True
    assert result.model_dump(by_alias=True).keys() == {"ok", "listId", "sessionId"}
    session = db_session.get(PracticeSession, result.session_id)
    assert session.jlpt_level == JlptLevel.N1
    assert session.scenario_prompt == "커피숍에서 주문하기"
    assert "JLPT N1" in stub.calls[0]["messages"][0]["content"]


def test_scenario_create_failure_is_500_and_rolls_back(db_session, user, stub):
    stub.queue("gpt-5-mini", problems_payload(("라떼 주세요", "ラテをください")))
    stub.queue("gpt-5-nano", "oops")
    stub.queue("gpt-5-mini", "still not json")

    with pytest.raises(HTTPException) as exc_info:
        vocab_router.create_scenario_vocab_list(_scenario_payload(), db=db_session, current_user=user)

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail.startswith("OpenAI returned non-JSON")
    assert db_session.query(VocabList).count() == 0


@pytest.mark.parametrize(
    "body",
    [
        {"scenarioPrompt": "ab", "problemCount": 1},
        {"scenarioPrompt": "x" * 801, "problemCount": 1},
        {"scenarioPrompt": "커피숍", "problemCount": 0},
        {"scenarioPrompt": "커피숍", "problemCount": 51},
        {"problemCount": 3},
    ],
)
def test_scenario_create_body_validation(body):
    with pytest.raises(ValueError):
        vocab_schema.ScenarioCreateIn.model_validate(body)


def test_manual_list_lifecycle(db_session, user):
    created = vocab_router.create_vocab_list(
        vocab_schema.VocabListCreateIn(name=" 여행 "), db=db_session, current_user=user
    )
    assert created.name == "여행"
    assert created.kind == VocabListKind.MANUAL
    assert created.scenario_prompt is None

    other = create_user(db_session, email="other@example.com")
    create_vocab_list(db_session, other, name="남의 단어장")

    lists = vocab_router.read_vocab_lists(db=db_session, current_user=user)
    assert [vocab_list.id for vocab_list in lists] == [created.id]

    result = vocab_router.delete_vocab_lists(
        vocab_schema.BulkDeleteIn(ids=[created.id, "unknown"]), db=db_session, current_user=user
    )
    assert result.deleted == 1
    assert db_session.query(VocabList).count() == 1


def test_deleting_a_list_cascades(db_session, user):
    vocab_list = create_vocab_list(db_session, user)
    items = create_vocab_items(db_session, user, vocab_list, ["駅"])
    session = PracticeSession(user_id=user.id, list_id=vocab_list.id, problem_count=1, jlpt_level=JlptLevel.N3)
    session.problems.append(
        PracticeProblem(
            user_id=user.id, prompt_ko="역", model_answer_ja="駅", target_item_ids=[items[0].id]
        )
    )
    db_session.add(session)
    db_session.commit()

    vocab_router.delete_vocab_lists(vocab_schema.BulkDeleteIn(ids=[vocab_list.id]), db=db_session, current_user=user)

    assert db_session.query(VocabItem).count() == 0
    assert db_session.query(PracticeSession).count() == 0
    assert db_session.query(PracticeProblem).count() == 0


def test_item_creation_and_cap(db_session, user, monkeypatch):
    vocab_list = create_vocab_list(db_session, user)
    payload = vocab_schema.VocabItemCreateIn.model_validate(
        {"jaSurface": " 駅 ", "koMeaning": "역", "jaReadingHira": " ", "memo": "기차역"}
    )

    item = vocab_router.create_vocab_item(vocab_list.id, payload, db=db_session, current_user=user)
    assert (item.ja_surface, item.ja_reading_hira, item.memo, item.is_active) == ("駅", None, "기차역", True)

    from app.services import vocab_service

    monkeypatch.setattr(vocab_service, "MAX_ITEMS_PER_LIST", 1)
    with pytest.raises(HTTPException) as exc_info:
        vocab_router.create_vocab_item(vocab_list.id, payload, db=db_session, current_user=user)
    assert exc_info.value.status_code == 400


def test_item_on_unknown_list_is_404(db_session, user):
    payload = vocab_schema.VocabItemCreateIn.model_validate({"jaSurface": "駅", "koMeaning": "역"})
    with pytest.raises(HTTPException) as exc_info:
        vocab_router.create_vocab_item("missing", payload, db=db_session, current_user=user)
    assert exc_info.value.status_code == 404


def test_item_toggle_and_bulk_delete(db_session, user):
    vocab_list = create_vocab_list(db_session, user)
    first, second = create_vocab_items(db_session, user, vocab_list, ["駅", "切符"])

    updated = vocab_router.update_vocab_item(
        first.id, vocab_schema.VocabItemUpdateIn(isActive=False), db=db_session, current_user=user
    )
    assert updated.is_active is False

    result = vocab_router.delete_vocab_items(
        vocab_list.id, vocab_schema.BulkDeleteIn(ids=[second.id]), db=db_session, current_user=user
    )
    assert result.deleted == 1
    remaining = vocab_router.read_vocab_items(vocab_list.id, db=db_session, current_user=user)
    assert [item.id for item in remaining] == [first.id]


def test_autofill_returns_reading_only_for_kanji(db_session, user, stub):
    stub.queue("gpt-5-nano", {"koMeaning": "역", "jaReadingHira": "えき"})
    stub.queue("gpt-5-nano", {"koMeaning": "커피", "jaReadingHira": "こーひー"})

    with_kanji = vocab_router.autofill_vocab_item(
        vocab_schema.AutofillIn(jaSurface="駅"), db=db_session, current_user=user
    )
    without_kanji = vocab_router.autofill_vocab_item(
        vocab_schema.AutofillIn(jaSurface="コーヒー"), db=db_session, current_user=user
    )

    assert (with_kanji.ko_meaning, with_kanji.ja_reading_hira) == ("역", "えき")
    assert (without_kanji.ko_meaning, without_kanji.ja_reading_hira) == ("커피", None)
    assert "Do NOT include jaReadingHira." in stub.calls[1]["messages"][0]["content"]


def test_autofill_failure_after_fallback_is_502(db_session, user, stub):
    stub.queue("gpt-5-nano", "nope")
    stub.queue("gpt-5-mini", {"koMeaning": ""})

    with pytest.raises(HTTPException) as exc_info:
        vocab_router.autofill_vocab_item(vocab_schema.AutofillIn(jaSurface="駅"), db=db_session, current_user=user)

    assert exc_info.value.status_code == 502
    assert stub.models_called == ["gpt-5-nano", "gpt-5-mini"]


def test_start_practice_needs_ten_active_items(db_session, user, stub):
    vocab_list = create_vocab_list(db_session, user)
    create_vocab_items(db_session, user, vocab_list, [f"語{i}" for i in range(9)])

    with pytest.raises(HTTPException) as exc_info:
        vocab_router.start_practice(vocab_list.id, db=db_session, current_user=user)

    assert exc_info.value.status_code == 400
    assert db_session.query(PracticeSession).count() == 0
    assert stub.calls == []


def test_start_practice_creates_and_fills_a_session(db_session, user, stub):
    vocab_list = create_vocab_list(db_session, user)
    create_vocab_items(db_session, user, vocab_list, [f"語{i}" for i in range(10)])
    stub.queue("gpt-5-mini", problems_payload(*[(f"문장 {i}", f"文{i}") for i in range(10)]))

    result = vocab_router.start_practice(vocab_list.id, db=db_session, current_user=user)

    session = db_session.get(PracticeSession, result.session_id)
    assert session.problem_count == 10
    assert session.jlpt_level == JlptLevel.N3
    assert db_session.query(PracticeProblem).filter_by(session_id=session.id).count() == 10
