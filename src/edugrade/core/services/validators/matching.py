"""
Matching grading (proportional)

Each authored pair has an id; the student answers by choosing, for every
left-hand item, the id of the pair whose right-hand side belongs to it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from ...exceptions import InvalidSubmissionError, MalformedContentError
from ...models.content import Block, BlockType
from ..content_parser import decode_json_value, first_present, to_int, to_list, to_text
from .base import BlockValidator, GradingResult, decode_field, require_mapping


@dataclass
class MatchingPair:
    id: str
    left: str
    right: str


def parse_pairs(data: Mapping[str, Any]) -> List[MatchingPair]:
    """Read ``items``, falling back to ``leftItems``/``rightItems``/``connections``"""
    pairs = []
    for position, item in enumerate(to_list(data.get("items"))):
        item = decode_json_value(item)
        if not isinstance(item, Mapping):
            continue
        pairs.append(
            MatchingPair(
                id=to_text(item.get("id")) or f"pair-{position + 1}",
                left=to_text(first_present(item, "leftText", "left", "leftValue")),
                right=to_text(first_present(item, "rightText", "right", "rightValue")),
            )
        )
    if pairs:
        return pairs

    left_lookup = _indexed_texts(data.get("leftItems"))
    right_lookup = _indexed_texts(data.get("rightItems"))
    connections = to_list(data.get("connections")) or [
        {"leftIndex": index, "rightIndex": index} for index in left_lookup
    ]
    for connection in connections:
        connection = decode_json_value(connection)
        if not isinstance(connection, Mapping):
            continue
        left_index = to_int(first_present(connection, "leftIndex", "LeftIndex"), -1)
        right_index = to_int(first_present(connection, "rightIndex", "RightIndex"), -1)
        if left_index in left_lookup and right_index in right_lookup:
            pairs.append(
                MatchingPair(
                    id=f"legacy-{left_index}",
                    left=left_lookup[left_index],
                    right=right_lookup[right_index],
                )
            )
    return pairs


def _indexed_texts(raw_items: Any) -> Dict[int, str]:
    lookup = {}
    for position, item in enumerate(to_list(raw_items)):
        item = decode_json_value(item)
        if isinstance(item, Mapping):
            index = to_int(first_present(item, "index", "Index"), position)
            lookup[index] = to_text(first_present(item, "text", "Text"))
    return lookup


class MatchingValidator(BlockValidator):
    """Grades matching blocks pair by pair"""

    block_types = (BlockType.MATCHING,)

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        pairs = parse_pairs(block.data)
        if not pairs:
            raise MalformedContentError(f"Matching block '{block.id}' has no items")

        matches = self._submitted_matches(require_mapping(submission), pairs)
        max_points = self.max_points(block, Decimal(max(1, len(pairs))))

        correct_count = 0
        detailed_feedback: Dict[str, Any] = {}
        for pair in pairs:
            chosen = matches.get(pair.id)
            is_correct = chosen is not None and chosen.lower() == pair.id.lower()
            if is_correct:
                correct_count += 1
            detailed_feedback[pair.id] = {"isCorrect": is_correct, "selectedPairId": chosen}

        return GradingResult(
            is_correct=correct_count == len(pairs),
            points_earned=self.proportional(max_points, correct_count, len(pairs)),
            max_points=max_points,
            correct_answer={pair.id: pair.right for pair in pairs},
            submitted_answer=dict(matches),
            detailed_feedback=detailed_feedback,
            feedback=self.feedback_summary(correct_count, len(pairs)),
        )

    @staticmethod
    def _submitted_matches(
        submission: Mapping[str, Any], pairs: List[MatchingPair]
    ) -> Dict[str, Optional[str]]:
        """Map authored pair ids to the pair id the student selected"""
        raw = decode_field(submission.get("matches"))
        if raw is None:
            raise InvalidSubmissionError("Submission must contain 'matches'")
        if isinstance(raw, Mapping):
            raw = [{"leftItemId": key, "selectedPairId": value} for key, value in raw.items()]
        if not isinstance(raw, (list, tuple)) or not raw:
            raise InvalidSubmissionError("'matches' must be a non-empty list")

        by_id = {pair.id.lower(): pair for pair in pairs}
        result: Dict[str, Optional[str]] = {}
        for position, entry in enumerate(raw):
            entry = decode_field(entry)
            if not isinstance(entry, Mapping):
                raise InvalidSubmissionError("Each match must be an object")
            left_id = to_text(first_present(entry, "leftItemId", "leftId", "itemId"))
            pair = by_id.get(left_id.lower()) if left_id else None
            if pair is None:
                slot = to_int(first_present(entry, "orderIndex", "index"), position)
                pair = pairs[slot] if slot is not None and 0 <= slot < len(pairs) else None
            if pair is None or pair.id in result:
                continue
            selected = to_text(first_present(entry, "selectedPairId", "pairId", "rightItemId"))
            result[pair.id] = selected or None
        return result
