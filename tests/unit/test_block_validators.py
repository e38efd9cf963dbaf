"""
Unit tests for the non gap-fill validators and the validator factory
"""

from decimal import Decimal

import pytest

from edugrade.core.exceptions import (
    InvalidSubmissionError,
    MalformedContentError,
    UnsupportedBlockTypeError,
)
from edugrade.core.models import BlockType
from edugrade.core.services.content_parser import parse_block
from edugrade.core.services.validators import (
    AudioValidator,
    ErrorFindingValidator,
    MatchingValidator,
    MultipleChoiceValidator,
    OrderingValidator,
    ValidatorFactory,
    WritingValidator,
)


def block_of(block_type, **data):
    return parse_block({"id": "b", "type": block_type, "data": data}, 0)


class TestMultipleChoice:
    """Single and multiple selection"""

    @pytest.fixture
    def validator(self):
        return MultipleChoiceValidator()

    def test_single_answer_by_index(self, validator):
        block = block_of("multipleChoice", options=["a", "b", "c"], correctAnswers=[1])
        assert validator.validate(block, {"selectedOptions": [1]}).is_correct
        assert not validator.validate(block, {"selectedOptions": [0]}).is_correct

    def test_single_answer_rejects_two_selections(self, validator):
        block = block_of("multipleChoice", options=["a", "b"], correctAnswers=[1])
        assert not validator.validate(block, {"selectedOptions": [0, 1]}).is_correct

    def test_correct_flags_on_options(self, validator):
        block = block_of(
            "multipleChoice",
            answerType="multiple",
            options=[
                {"id": "x", "text": "x", "isCorrect": True},
                {"id": "y", "text": "y"},
                {"id": "z", "text": "z", "isCorrect": True},
            ],
        )
        result = validator.validate(block, {"selectedOptions": ["x", "z"]})
        assert result.is_correct is True
        assert result.max_points == Decimal("2")

    def test_multiple_requires_exact_set(self, validator):
        block = block_of(
            "multipleChoice", answerType="multiple", options=["a", "b", "c"], correctAnswers=[0, 2]
        )
        result = validator.validate(block, {"selectedOptions": "[0]"})
        assert result.is_correct is False
        assert result.points_earned == Decimal("0")
        assert result.detailed_feedback["missedOptions"] == [2]

    def test_unknown_option_is_wrong_not_invalid(self, validator):
        block = block_of("multipleChoice", options=["a", "b"], correctAnswers=[0])
        assert not validator.validate(block, {"selectedOptions": ["nope"]}).is_correct

    def test_missing_selection(self, validator):
        block = block_of("multipleChoice", options=["a"], correctAnswers=[0])
        with pytest.raises(InvalidSubmissionError):
            validator.validate(block, {})


class TestMatching:
    @pytest.fixture
    def validator(self):
        return MatchingValidator()

    @pytest.fixture
    def block(self):
        return block_of(
            "matching",
            items=[
                {"id": "p1", "left": "cat", "right": "gato"},
                {"id": "p2", "left": "dog", "right": "perro"},
            ],
        )

    def test_all_pairs_correct(self, validator, block):
        submission = {
            "matches": [
                {"leftItemId": "p1", "selectedPairId": "p1"},
                {"leftItemId": "p2", "selectedPairId": "p2"},
            ]
        }
        result = validator.validate(block, submission)
        assert result.is_correct is True
        assert result.points_earned == Decimal("2")

    def test_partial_pairs(self, validator, block):
        result = validator.validate(block, {"matches": {"p1": "p1", "p2": "p1"}})
        assert result.is_correct is False
        assert result.points_earned == Decimal("1")

    def test_legacy_connections(self, validator):
        block = block_of(
            "matching",
            leftItems=[{"index": 0, "text": "one"}, {"index": 1, "text": "two"}],
            rightItems=[{"index": 0, "text": "uno"}, {"index": 1, "text": "dos"}],
            connections=[{"leftIndex": 0, "rightIndex": 0}, {"leftIndex": 1, "rightIndex": 1}],
        )
        submission = {"matches": [{"orderIndex": 0, "selectedPairId": "legacy-0"}]}
        result = validator.validate(block, submission)
        assert result.detailed_feedback["legacy-0"]["isCorrect"] is True
        assert result.detailed_feedback["legacy-1"]["isCorrect"] is False

    def test_no_items_is_malformed(self, validator):
        with pytest.raises(MalformedContentError):
            validator.validate(block_of("matching"), {"matches": []})

    def test_empty_matches_invalid(self, validator, block):
        with pytest.raises(InvalidSubmissionError):
            validator.validate(block, {"matches": []})


class TestOrdering:
    @pytest.fixture
    def validator(self):
        return OrderingValidator()

    def test_correct_order_by_ids(self, validator):
        block = block_of("ordering", items=["c", "a", "b"], correctOrder=["a", "b", "c"])
        assert validator.validate(block, {"order": ["a", "b", "c"]}).is_correct
        assert validator.validate(block, {"order": "a, b, c"}).is_correct

    def test_correct_order_by_positions(self, validator):
        block = block_of("ordering", items=["c", "a", "b"], correctOrder=[1, 2, 0])
        result = validator.validate(block, {"order": ["a", "b", "c"]})
        assert result.is_correct is True

    def test_wrong_order_reports_items_in_place(self, validator):
        block = block_of("ordering", items=["a", "b", "c"])
        result = validator.validate(block, {"order": ["a", "c", "b"]})
        assert result.is_correct is False
        assert result.detailed_feedback["itemsInPlace"] == 1

    def test_missing_order(self, validator):
        with pytest.raises(InvalidSubmissionError):
            validator.validate(block_of("ordering", items=["a"]), {})


class TestErrorFinding:
    @pytest.fixture
    def validator(self):
        return ErrorFindingValidator()

    @pytest.fixture
    def block(self):
        return block_of(
            "errorFinding",
            errors=[
                {"id": "e1", "lineNumber": 2, "errorText": "pritn", "explanation": "typo"},
                {"id": "e2", "lineNumber": 5, "errorText": "=="},
            ],
        )

    def test_all_errors_found(self, validator, block):
        submission = {"errors": [{"errorId": "e1"}, {"lineNumber": 5, "text": "=="}]}
        result = validator.validate(block, submission)
        assert result.is_correct is True
        assert result.detailed_feedback["e1"]["explanation"] == "typo"

    def test_selected_lines_with_false_positive(self, validator, block):
        result = validator.validate(block, {"selectedLines": [2, 7]})
        assert result.is_correct is False
        assert result.points_earned == Decimal("0.5")
        assert result.detailed_feedback["falsePositives"] == [7]

    def test_wrong_text_on_right_line(self, validator, block):
        result = validator.validate(block, {"errors": [{"lineNumber": 2, "text": "print"}]})
        assert result.detailed_feedback["e1"]["found"] is False


class TestWritingAndAudio:
    def test_writing_requirements(self):
        validator = WritingValidator()
        block = block_of("writing", minWords=3, maxWords=10, requiredKeywords=["Tehran"])
        assert validator.validate(block, {"text": "I live in tehran"}).is_correct
        result = validator.validate(block, {"text": "I live"})
        assert result.is_correct is False
        assert result.detailed_feedback["missingKeywords"] == ["Tehran"]

    def test_writing_empty_text(self):
        result = WritingValidator().validate(block_of("writing"), {"text": "   "})
        assert result.is_correct is False

    def test_audio_duration(self):
        validator = AudioValidator()
        block = block_of("audio", minDurationSeconds=10)
        assert validator.validate(block, {"recordingUrl": "/r/1.webm", "durationSeconds": 12}).is_correct
        assert not validator.validate(block, {"recordingUrl": "/r/1.webm", "durationSeconds": 4}).is_correct
        assert not validator.validate(block, {"durationSeconds": 30}).is_correct


class TestValidatorFactory:
    def test_every_gradable_type_has_a_validator(self):
        factory = ValidatorFactory()
        gradable = sorted(t.value for t in BlockType if t.is_gradable)
        assert factory.supported_types == gradable

    def test_content_only_block_rejected(self):
        factory = ValidatorFactory()
        with pytest.raises(UnsupportedBlockTypeError):
            factory.validate(block_of("text"), {"text": "hi"})

    def test_default_points_applied(self):
        factory = ValidatorFactory(default_points=Decimal("5"))
        block = block_of("writing")
        result = factory.validate(block, {"text": "something"})
        assert result.max_points == Decimal("5")
        assert result.points_earned == Decimal("5")

    def test_result_to_dict(self):
        result = ValidatorFactory().validate(block_of("writing"), {"text": "ok"})
        payload = result.to_dict()
        assert payload["isCorrect"] is True
        assert payload["pointsEarned"] == "1"
