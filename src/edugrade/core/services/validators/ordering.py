"""
Ordering grading (all-or-nothing)
"""

from decimal import Decimal
from typing import Any, List, Mapping

from ...exceptions import InvalidSubmissionError, MalformedContentError
from ...models.content import Block, BlockType
from ..content_parser import decode_json_value, first_present, to_list, to_text
from ..text_normalizer import normalize
from .base import BlockValidator, GradingResult, decode_field, require_mapping


def _item_key(item: Any) -> str:
    item = decode_json_value(item)
    if isinstance(item, Mapping):
        return to_text(first_present(item, "id", "text", "value"))
    return to_text(item)


def _is_position(value: Any, count: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < count


class OrderingValidator(BlockValidator):
    """The submitted sequence must equal the authored ``correctOrder`` exactly.

    When no ``correctOrder`` is authored the ``items`` list is taken to be in
    the correct order.
    """

    block_types = (BlockType.ORDERING,)

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        items = [_item_key(item) for item in to_list(block.data.get("items"))]
        correct_order = to_list(block.data.get("correctOrder"))
        if items and correct_order and all(_is_position(v, len(items)) for v in correct_order):
            # positions into ``items``
            expected = [items[position] for position in correct_order]
        else:
            expected = [_item_key(item) for item in correct_order] or items
        expected = [key for key in expected if key]
        if not expected:
            raise MalformedContentError(f"Ordering block '{block.id}' has no items")

        submitted = self._submitted_order(require_mapping(submission))
        is_correct = [normalize(key) for key in submitted] == [normalize(key) for key in expected]

        max_points = self.max_points(block)
        in_place = sum(
            1
            for position, key in enumerate(expected)
            if position < len(submitted) and normalize(submitted[position]) == normalize(key)
        )
        return GradingResult(
            is_correct=is_correct,
            points_earned=max_points if is_correct else Decimal("0"),
            max_points=max_points,
            correct_answer={"order": expected},
            submitted_answer={"order": submitted},
            detailed_feedback={"itemsInPlace": in_place, "totalItems": len(expected)},
            feedback="Correct order." if is_correct else "The order is not correct.",
        )

    @staticmethod
    def _submitted_order(submission: Mapping[str, Any]) -> List[str]:
        raw = decode_field(submission.get("order"))
        if raw is None:
            raise InvalidSubmissionError("Submission must contain 'order'")
        if isinstance(raw, str):
            raw = raw.split(",")
        if not isinstance(raw, (list, tuple)):
            raise InvalidSubmissionError("'order' must be a list of item ids")
        return [key for key in (_item_key(item) for item in raw) if key]
