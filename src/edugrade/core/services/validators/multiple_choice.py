"""
Multiple-choice grading (all-or-nothing)
"""

from decimal import Decimal
from typing import Any, List, Mapping, Optional, Set

from ...exceptions import InvalidSubmissionError
from ...models.content import Block, BlockType
from ..content_parser import decode_json_value, first_present, to_bool, to_int, to_list, to_text
from .base import BlockValidator, GradingResult, decode_field, require_mapping


class MultipleChoiceValidator(BlockValidator):
    """Grades single- and multiple-answer choice blocks.

    Options are addressed by their zero-based position; submissions may also
    name an option by its ``id``.
    """

    block_types = (BlockType.MULTIPLE_CHOICE,)

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        submission = require_mapping(submission)
        options = [decode_json_value(option) for option in to_list(block.data.get("options"))]
        correct = self._correct_indices(block.data, options)
        selected = self._selected_indices(submission, options)

        multiple = to_text(block.data.get("answerType")).lower() == "multiple"
        if multiple:
            is_correct = bool(correct) and selected == correct
        else:
            is_correct = len(selected) == 1 and len(correct) == 1 and selected == correct

        flagged = sum(
            1 for option in options if isinstance(option, Mapping) and to_bool(option.get("isCorrect"))
        )
        max_points = self.max_points(block, Decimal(flagged) if flagged else None)

        return GradingResult(
            is_correct=is_correct,
            points_earned=max_points if is_correct else Decimal("0"),
            max_points=max_points,
            correct_answer={"selectedOptions": sorted(correct)},
            submitted_answer={"selectedOptions": sorted(i for i in selected if i >= 0)},
            detailed_feedback={
                "answerType": "multiple" if multiple else "single",
                "missedOptions": sorted(correct - selected),
                "wrongOptions": sorted(i for i in selected - correct if i >= 0),
            },
            feedback="Correct answer." if is_correct else "The selected answer is not correct.",
        )

    @staticmethod
    def _correct_indices(data: Mapping[str, Any], options: List[Any]) -> Set[int]:
        authored = to_list(first_present(data, "correctAnswers", "correctAnswer"))
        indices = {to_int(value) for value in authored}
        indices.discard(None)
        if indices:
            return indices
        return {
            position
            for position, option in enumerate(options)
            if isinstance(option, Mapping) and to_bool(option.get("isCorrect"))
        }

    @staticmethod
    def _option_position(token: Any, options: List[Any]) -> Optional[int]:
        if isinstance(token, str):
            wanted = token.strip().lower()
            for position, option in enumerate(options):
                if isinstance(option, Mapping) and to_text(option.get("id")).lower() == wanted:
                    return position
        index = to_int(token)
        if index is None or index < 0:
            return None
        if options and index >= len(options):
            return None
        return index

    def _selected_indices(self, submission: Mapping[str, Any], options: List[Any]) -> Set[int]:
        raw = decode_field(
            first_present(submission, "selectedOptions", "selectedOption", "answer")
        )
        if raw is None:
            raise InvalidSubmissionError("Submission must contain 'selectedOptions'")
        if not isinstance(raw, (list, tuple)):
            raw = [raw]

        selected = set()
        for token in raw:
            if isinstance(token, (Mapping, list, tuple)):
                raise InvalidSubmissionError("Selected options must be indices or option ids")
            position = self._option_position(token, options)
            # unknown tokens make the selection wrong rather than invalid
            selected.add(position if position is not None else -1)
        return selected
