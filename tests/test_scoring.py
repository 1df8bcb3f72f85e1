from decimal import Decimal

import pytest

from app.core.exceptions import InvalidInput
from app.schemas.exam_attempt import FinalizeRequest
from app.services.scoring import compute_penalty, round_half_up, score_answers
from app.utils.answers import normalize_answers

KEY = ["A", "B", "C", "D"]


def test_score_without_penalty():
    result = score_answers({1: "A", 2: "B", 3: "X", 4: None}, KEY)

    assert result.total == 4
    assert (result.correct, result.incorrect, result.blank) == (2, 1, 1)
    assert result.penalty_applied == 0
    assert result.final_score == 2
    assert result.percentage == 50
    assert result.has_penalty is False
    assert result.summary == "2 de 4 questões corretas"
    assert result.feedback == "Bom trabalho! Continue praticando."


def test_factor_two_with_one_wrong_costs_nothing():
    result = score_answers({1: "A", 2: "B", 3: "X", 4: None}, KEY, correction_factor=2)

    assert result.penalty_applied == 0
    assert result.final_score == 2
    assert result.percentage == 50
    assert result.has_penalty is True


def test_factor_one_floors_final_score_at_zero():
    result = score_answers({1: "X", 2: "Y", 3: "Z"}, KEY, correction_factor=1)

    assert (result.correct, result.incorrect, result.blank) == (0, 3, 1)
    assert result.penalty_applied == 3
    assert result.final_score == 0
    assert result.percentage == 0
    assert result.feedback == "Continue estudando. Você consegue melhorar!"


def test_penalty_summary_mentions_points():
    result = score_answers({1: "A", 2: "B", 3: "C", 4: "X"}, KEY, correction_factor=1)

    assert result.final_score == 2
    assert result.summary == "2 pontos de 4 (3 acertos - 1 de penalidade)"


def test_empty_answer_key_is_invalid():
    with pytest.raises(InvalidInput):
        score_answers({1: "A"}, [])


def test_blank_and_empty_string_both_count_as_blank():
    result = score_answers({1: "", 2: None}, ["A", "B", "C"])

    assert result.blank == 3
    assert result.correct == 0
    assert result.incorrect == 0


def test_comparison_is_case_sensitive():
    result = score_answers({1: "a"}, ["A"])

    assert result.incorrect == 1
    assert result.correct == 0


def test_positions_outside_the_key_are_ignored():
    result = score_answers({1: "A", 7: "B"}, ["A", "B"])

    assert result.correct == 1
    assert result.blank == 1
    assert result.incorrect == 0


def test_percentage_rounds_half_up():
    # 1/8 = 12.5%
    result = score_answers({1: "A"}, ["A"] * 8)
    assert result.percentage == 13

    # 2/3 = 66.67%
    result = score_answers({1: "A", 2: "A"}, ["A"] * 3)
    assert result.percentage == 67


def test_all_correct_gets_excellent_feedback():
    result = score_answers({1: "C", 2: "E"}, ["C", "E"], correction_factor=1)

    assert result.percentage == 100
    assert result.feedback == "Parabéns! Ótimo desempenho!"


@pytest.mark.parametrize("incorrect,factor,expected", [
    (5, None, 0),
    (5, 0, 0),
    (5, 1, 5),
    (5, 2, 2),
    (5, 4, 1),
    (3, 4, 0),
])
def test_compute_penalty(incorrect, factor, expected):
    assert compute_penalty(incorrect, factor) == expected


def test_negative_factor_is_invalid():
    with pytest.raises(InvalidInput):
        compute_penalty(3, -1)


def test_round_half_up():
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.4999")) == 2
    assert round_half_up(Decimal("0")) == 0


class TestNormalizeAnswers:
    def test_flat_mapping_with_string_keys(self):
        assert normalize_answers({"1": "A", "2": None, "3": ""}) == {1: "A", 2: None, 3: None}

    def test_list_of_position_objects(self):
        raw = [{"position": 2, "choice": "C"}, {"position": 1, "choice": " B "}]
        assert normalize_answers(raw) == {1: "B", 2: "C"}

    def test_later_entry_overrides_earlier(self):
        raw = [{"position": 1, "choice": "A"}, {"position": 1, "choice": None}]
        assert normalize_answers(raw) == {1: None}

    def test_none_is_empty(self):
        assert normalize_answers(None) == {}

    @pytest.mark.parametrize("raw", [
        {"0": "A"},
        {"abc": "A"},
        {"1": 3},
        [{"choice": "A"}],
        ["A", "B"],
        "A",
    ])
    def test_rejects_malformed_payloads(self, raw):
        with pytest.raises(InvalidInput):
            normalize_answers(raw)

    def test_finalize_request_accepts_both_shapes(self):
        flat = FinalizeRequest(answers={"1": "A", "2": "B"})
        listed = FinalizeRequest(answers=[{"position": 1, "choice": "A"}, {"position": 2, "choice": "B"}])
        assert flat.answers == listed.answers == {1: "A", 2: "B"}
