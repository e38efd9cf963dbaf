"""
Writing and audio-recording checks

Free-form answers cannot be graded for meaning here; these validators only
check the measurable requirements the content author set.
"""

from decimal import Decimal
from typing import Any, Mapping

from ...exceptions import InvalidSubmissionError
from ...models.content import Block, BlockType
from ..content_parser import first_present, to_decimal, to_int, to_str_list, to_text
from ..text_normalizer import normalize
from .base import BlockValidator, GradingResult, require_mapping


class WritingValidator(BlockValidator):
    """Non-empty text within word bounds that mentions every required keyword"""

    block_types = (BlockType.WRITING,)

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        submission = require_mapping(submission)
        raw_text = first_present(submission, "text", "answer", "content")
        if raw_text is not None and not isinstance(raw_text, str):
            raise InvalidSubmissionError("'text' must be a string")
        text = to_text(raw_text)

        data = block.data
        min_words = to_int(first_present(data, "minWords", "minWordCount"))
        max_words = to_int(first_present(data, "maxWords", "maxWordCount"))
        keywords = to_str_list(first_present(data, "requiredKeywords", "keywords"))

        word_count = len(text.split())
        normalized_text = normalize(text)
        missing = [word for word in keywords if normalize(word) not in normalized_text]

        checks = {
            "notEmpty": bool(text),
            "minWords": min_words is None or word_count >= min_words,
            "maxWords": max_words is None or word_count <= max_words,
            "keywords": not missing,
        }
        is_correct = all(checks.values())
        max_points = self.max_points(block)

        return GradingResult(
            is_correct=is_correct,
            points_earned=max_points if is_correct else Decimal("0"),
            max_points=max_points,
            correct_answer={
                "minWords": min_words,
                "maxWords": max_words,
                "requiredKeywords": keywords,
            },
            submitted_answer={"text": text},
            detailed_feedback={"wordCount": word_count, "missingKeywords": missing, **checks},
            feedback="Requirements met." if is_correct else "Some writing requirements are not met.",
        )


class AudioValidator(BlockValidator):
    """A recording must be referenced and be at least the authored length"""

    block_types = (BlockType.AUDIO,)

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        submission = require_mapping(submission)
        recording = to_text(first_present(submission, "recordingUrl", "fileId", "audioFileId"))
        duration = to_decimal(first_present(submission, "durationSeconds", "duration"))
        min_duration = to_decimal(
            first_present(block.data, "minDurationSeconds", "minDuration")
        ) or Decimal("0")

        long_enough = min_duration <= 0 or (duration is not None and duration >= min_duration)
        is_correct = bool(recording) and long_enough
        max_points = self.max_points(block)

        return GradingResult(
            is_correct=is_correct,
            points_earned=max_points if is_correct else Decimal("0"),
            max_points=max_points,
            correct_answer={"minDurationSeconds": str(min_duration)},
            submitted_answer={
                "recording": recording,
                "durationSeconds": None if duration is None else str(duration),
            },
            detailed_feedback={"hasRecording": bool(recording), "longEnough": long_enough},
            feedback="Recording received." if is_correct else "The recording is missing or too short.",
        )
