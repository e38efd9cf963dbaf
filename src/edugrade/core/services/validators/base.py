"""
Shared types for block answer validators
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from ...exceptions import InvalidSubmissionError
from ...models.content import Block, BlockType

DEFAULT_POINTS = Decimal("1")


@dataclass
class GradingResult:
    """Outcome of grading one submission against one block"""

    is_correct: bool
    points_earned: Decimal
    max_points: Decimal
    correct_answer: Dict[str, Any] = field(default_factory=dict)
    submitted_answer: Dict[str, Any] = field(default_factory=dict)
    detailed_feedback: Dict[str, Any] = field(default_factory=dict)
    feedback: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible form; decimals are kept exact as strings"""
        return {
            "isCorrect": self.is_correct,
            "pointsEarned": str(self.points_earned),
            "maxPoints": str(self.max_points),
            "correctAnswer": self.correct_answer,
            "submittedAnswer": self.submitted_answer,
            "detailedFeedback": self.detailed_feedback,
            "feedback": self.feedback,
        }


class BlockValidator:
    """Base class for per-type grading strategies.

    Subclasses declare the block types they grade and implement ``validate``.
    Validators hold no per-call state and may be shared between requests.
    """

    block_types: Tuple[BlockType, ...] = ()

    def __init__(self, default_points: Decimal = DEFAULT_POINTS):
        self.default_points = default_points

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        """Grade ``submission`` against ``block``"""
        raise NotImplementedError

    def max_points(self, block: Block, fallback: Optional[Decimal] = None) -> Decimal:
        if block.points is not None and block.points > 0:
            return block.points
        if fallback is not None:
            return fallback
        return self.default_points

    @staticmethod
    def proportional(max_points: Decimal, correct: int, total: int) -> Decimal:
        if total <= 0:
            return Decimal("0")
        return max_points * Decimal(correct) / Decimal(total)

    @staticmethod
    def feedback_summary(correct: int, total: int) -> str:
        if total and correct == total:
            return "All answers are correct."
        return f"{correct} of {total} answers are correct."


def require_mapping(submission: Any) -> Mapping[str, Any]:
    """Decode the submission envelope into a mapping.

    Raises:
        InvalidSubmissionError: the payload is not an object (or a JSON string
            holding one)
    """
    if isinstance(submission, str):
        try:
            submission = json.loads(submission)
        except ValueError as e:
            raise InvalidSubmissionError(f"Submission is not valid JSON: {e}") from e
    if not isinstance(submission, Mapping):
        raise InvalidSubmissionError("Submission must be an object")
    return submission


def decode_field(value: Any) -> Any:
    """Decode a submission field that may have been sent pre-serialized.

    Raises:
        InvalidSubmissionError: a string that looks like JSON fails to parse
    """
    if isinstance(value, str):
        stripped = value.strip()
        if stripped[:1] in ("{", "["):
            try:
                return json.loads(stripped)
            except ValueError as e:
                raise InvalidSubmissionError(f"Malformed JSON in submission: {e}") from e
    return value
