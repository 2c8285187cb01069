"""
Unit tests for weight resolution and score aggregation.
"""

import pytest

from services.schema import (
    GradeResult, Question, QuestionSet, aggregate_percentage, resolve_weight,
)


class TestResolveWeight:
    """Trailing "(n)" beats the categorical type; type beats the default."""

    @pytest.mark.parametrize("n", [1, 2, 3])
    @pytest.mark.parametrize("kind", ["short", "long", "extended", "essay", None])
    def test_suffix_when_valid_then_wins_over_kind(self, n, kind):
        assert resolve_weight(f"Explain X. ({n})", kind) == n

    def test_suffix_when_trailing_whitespace_then_still_read(self):
        assert resolve_weight("Explain X. (3)  \n", "short") == 3

    def test_no_suffix_when_kind_long_then_two(self):
        assert resolve_weight("Explain X.", "long") == 2

    def test_no_suffix_when_kind_unknown_then_one(self):
        assert resolve_weight("Explain X.", "essay") == 1
        assert resolve_weight("Explain X.", None) == 1

    def test_suffix_when_out_of_range_then_falls_back_to_kind(self):
        assert resolve_weight("List the steps. (5)", "extended") == 3
        assert resolve_weight("List the steps. (0)", None) == 1

    def test_suffix_when_not_at_end_then_ignored(self):
        assert resolve_weight("In step (2) what happens?", "short") == 1

    def test_kind_when_mixed_case_then_matched(self):
        assert resolve_weight("Why?", " Extended ") == 3

    def test_question_weight_when_signals_disagree_then_suffix_wins(self):
        q = Question("Discuss Z thoroughly. (3)", "short")
        assert q.weight == 3


class TestAggregatePercentage:

    def test_mixed_marks_then_fifty_percent(self):
        results = [
            GradeResult(0, 2, 2),
            GradeResult(1, 1, 3),
            GradeResult(2, 0, 1),
        ]
        assert aggregate_percentage(results) == pytest.approx(50.0)

    def test_empty_then_zero(self):
        assert aggregate_percentage([]) == 0.0

    def test_all_max_zero_then_zero(self):
        assert aggregate_percentage([GradeResult(0, 0, 0), GradeResult(1, 0, 0)]) == 0.0


class TestQuestionSetDict:

    def test_from_dict_when_stored_shape_then_questions_restored(self):
        qs = QuestionSet.from_dict({
            "description": "Biology",
            "questions": [{"question": "What? (1)", "type": "short"},
                          {"question": "Explain.", "type": "long"}],
        })
        assert qs.description == "Biology"
        assert [q.weight for q in qs.questions] == [1, 2]
        assert qs.to_dict()["questions"][1] == {"question": "Explain.", "type": "long"}
