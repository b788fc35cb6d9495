import pytest

from app.utils.japanese import collapse_whitespace, has_kanji, normalize_japanese_answer


@pytest.mark.parametrize(
    "text, expected",
    [("駅", True), ("切符を買う", True), ("コーヒー", False), ("ありがとう", False), ("", False)],
)
def test_has_kanji(text, expected):
    assert has_kanji(text) is expected


def test_normalize_answer_folds_width_and_spaces():
    assert normalize_japanese_answer("  ＡＢＣ　ｶﾀｶﾅ \n です ") == "ABC カタカナ です"


def test_normalize_answer_of_blank_is_empty():
    assert normalize_japanese_answer("　\t ") == ""


def test_collapse_whitespace():
    assert collapse_whitespace("  카페   주문\n하기 ") == "카페 주문 하기"
