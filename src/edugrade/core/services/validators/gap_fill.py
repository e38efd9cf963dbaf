"""
Gap-fill grading

Submitted blank entries are matched to authored blanks by ``index`` first;
``blankId`` is only consulted for entries that carry no usable index. Each
authored blank is graded on its own and the block score is proportional to
the number of correct blanks.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ...exceptions import InvalidSubmissionError, MalformedContentError
from ...models.content import (
    AnswerType,
    Blank,
    BlankOption,
    Block,
    BlockType,
    GapFillData,
    find_option,
)
from ..content_parser import first_present, to_int
from ..text_normalizer import collapse_whitespace, normalize
from .base import BlockValidator, GradingResult, decode_field, require_mapping

_DIGITS_RE = re.compile(r"(\d+)")


@dataclass
class BlankEntry:
    """One submitted blank after decoding"""

    blank_id: Optional[str] = None
    index: Optional[int] = None
    value: Optional[str] = None
    option_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "BlankEntry":
        blank_id = first_present(raw, "blankId", "id", "key")
        value = first_present(raw, "value", "text", "input", "answer")
        option_id = first_present(raw, "optionId", "selectedOptionId")
        return cls(
            blank_id=str(blank_id).strip() if blank_id is not None else None,
            index=to_int(first_present(raw, "index", "blankIndex")),
            value=str(value) if value is not None else None,
            option_id=str(option_id).strip() if option_id not in (None, "") else None,
        )


def _parse_entry(element: Any) -> BlankEntry:
    if isinstance(element, str):
        try:
            element = json.loads(element)
        except ValueError as e:
            raise InvalidSubmissionError(f"Blank entry is not valid JSON: {e}") from e
    if not isinstance(element, Mapping):
        raise InvalidSubmissionError(
            f"Blank entry must be an object or a JSON string, got {type(element).__name__}"
        )
    return BlankEntry.from_mapping(element)


def extract_blank_entries(submission: Any) -> List[BlankEntry]:
    """Normalize the ``blanks`` collection of a submission to ``BlankEntry`` records.

    Accepts a list of objects or JSON strings, the list itself pre-serialized,
    a ``{blankId: value}`` map, or flat ``blank1``/``blank2`` keys on the
    submission itself.

    Raises:
        InvalidSubmissionError: an entry is neither an object nor a JSON
            string of one, or nothing was submitted
    """
    submission = require_mapping(submission)
    raw_blanks = decode_field(submission.get("blanks"))

    if raw_blanks is None:
        raw_blanks = {
            key: value
            for key, value in submission.items()
            if str(key).lower().startswith("blank") and str(key).lower() != "blanks"
        }

    entries = []
    if isinstance(raw_blanks, Mapping):
        for key, value in raw_blanks.items():
            value = decode_field(value)
            if isinstance(value, Mapping):
                entry = BlankEntry.from_mapping(value)
                entry.blank_id = entry.blank_id or str(key)
            else:
                text = None if value is None else str(value)
                entry = BlankEntry(blank_id=str(key), value=text)
            entries.append(entry)
    elif isinstance(raw_blanks, (list, tuple)):
        entries = [_parse_entry(element) for element in raw_blanks]
    else:
        raise InvalidSubmissionError("'blanks' must be a list of blank entries")

    if not entries:
        raise InvalidSubmissionError("No blanks were submitted")
    return entries


class GapFillValidator(BlockValidator):
    """Grades gap-fill blocks blank by blank"""

    block_types = (BlockType.GAP_FILL,)

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        content = block.gap_fill or GapFillData()
        if not content.blanks:
            raise MalformedContentError(f"Gap-fill block '{block.id}' has no blanks")

        entries = self._assign_entries(content.blanks, extract_blank_entries(submission))
        max_points = self.max_points(block)

        correct_answer: Dict[str, Any] = {}
        submitted_answer: Dict[str, Any] = {}
        detailed_feedback: Dict[str, Any] = {}
        correct_count = 0

        for blank in content.blanks:
            is_correct, resolved = self._grade_blank(blank, entries.get(blank.id), content)
            if is_correct:
                correct_count += 1
            correct_answer[blank.id] = blank.correct_answer
            submitted_answer[blank.id] = resolved or ""
            detailed_feedback[blank.id] = {
                "index": blank.index,
                "isCorrect": is_correct,
                "answered": blank.id in entries,
                "hint": None if is_correct else blank.hint,
            }

        total = len(content.blanks)
        return GradingResult(
            is_correct=correct_count == total,
            points_earned=self.proportional(max_points, correct_count, total),
            max_points=max_points,
            correct_answer=correct_answer,
            submitted_answer=submitted_answer,
            detailed_feedback=detailed_feedback,
            feedback=self.feedback_summary(correct_count, total),
        )

    def _assign_entries(
        self, blanks: List[Blank], entries: List[BlankEntry]
    ) -> Dict[str, BlankEntry]:
        """Map authored blank ids to submitted entries; the first entry for a blank wins"""
        by_index = {blank.index: blank for blank in blanks}
        by_id = {blank.id.lower(): blank for blank in blanks}

        assigned: Dict[str, BlankEntry] = {}
        for entry in entries:
            blank = self._match_blank(entry, by_index, by_id)
            if blank is not None and blank.id not in assigned:
                assigned[blank.id] = entry
        return assigned

    @staticmethod
    def _match_blank(
        entry: BlankEntry, by_index: Dict[int, Blank], by_id: Dict[str, Blank]
    ) -> Optional[Blank]:
        if entry.index is not None and entry.index in by_index:
            return by_index[entry.index]
        if entry.blank_id:
            blank = by_id.get(entry.blank_id.lower())
            if blank is not None:
                return blank
            # "blank2" style ids carry the index
            match = _DIGITS_RE.search(entry.blank_id)
            if match:
                return by_index.get(int(match.group(1)))
        return None

    def _grade_blank(
        self, blank: Blank, entry: Optional[BlankEntry], content: GapFillData
    ) -> Tuple[bool, Optional[str]]:
        """Return (is_correct, resolved submitted value) for one blank"""
        if entry is None:
            return False, None

        option = self._resolve_option(blank, entry.option_id, content)
        if option is not None:
            accepted_ids = {option_id.lower() for option_id in blank.accepted_option_ids()}
            if accepted_ids:
                return option.id.strip().lower() in accepted_ids, option.value
            return self._value_matches(option.value, blank, content), option.value

        if entry.value is None:
            return False, None
        return self._value_matches(entry.value, blank, content), entry.value

    @staticmethod
    def _resolve_option(
        blank: Blank, option_id: Optional[str], content: GapFillData
    ) -> Optional[BlankOption]:
        if not option_id:
            return None
        option = None
        if blank.allow_blank_options and blank.options:
            option = find_option(blank.options, option_id)
        if option is None and blank.allow_global_options:
            option = content.find_global_option(option_id)
        return option

    @staticmethod
    def _value_matches(value: str, blank: Blank, content: GapFillData) -> bool:
        submitted = normalize(value, content.case_sensitive)
        for accepted in blank.accepted_answers():
            expected = normalize(accepted, content.case_sensitive)
            if not expected:
                if not submitted:
                    return True
                continue
            if content.answer_type is AnswerType.KEYWORD:
                if expected in submitted:
                    return True
            elif content.answer_type is AnswerType.SIMILAR:
                if collapse_whitespace(expected) == collapse_whitespace(submitted):
                    return True
            elif expected == submitted:
                return True
        return False
