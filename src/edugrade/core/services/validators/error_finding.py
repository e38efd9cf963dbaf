"""
Error-finding grading (proportional)

The block shows a text or code listing with authored errors. Each error the
student locates earns its share of the block points; reporting a line that
holds no error costs nothing but is listed in the feedback.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ...exceptions import InvalidSubmissionError, MalformedContentError
from ...models.content import Block, BlockType
from ..content_parser import decode_json_value, first_present, to_int, to_list, to_text
from ..text_normalizer import normalize
from .base import BlockValidator, GradingResult, decode_field, require_mapping


@dataclass
class AuthoredError:
    id: str
    line_number: Optional[int]
    error_text: str
    explanation: str = ""


@dataclass
class ReportedError:
    error_id: Optional[str]
    line_number: Optional[int]
    text: str


def parse_errors(data: Mapping[str, Any]) -> List[AuthoredError]:
    errors = []
    for position, item in enumerate(to_list(data.get("errors"))):
        item = decode_json_value(item)
        if not isinstance(item, Mapping):
            continue
        errors.append(
            AuthoredError(
                id=to_text(item.get("id")) or f"error-{position + 1}",
                line_number=to_int(first_present(item, "lineNumber", "line")),
                error_text=to_text(first_present(item, "errorText", "text")),
                explanation=to_text(item.get("explanation")),
            )
        )
    return errors


class ErrorFindingValidator(BlockValidator):
    block_types = (BlockType.ERROR_FINDING,)

    def validate(self, block: Block, submission: Mapping[str, Any]) -> GradingResult:
        authored = parse_errors(block.data)
        if not authored:
            raise MalformedContentError(f"Error-finding block '{block.id}' has no errors")

        reported = self._reported(require_mapping(submission))
        max_points = self.max_points(block)

        found: Dict[str, bool] = {}
        used = set()
        for error in authored:
            found[error.id] = False
            for position, report in enumerate(reported):
                if position not in used and self._locates(report, error):
                    found[error.id] = True
                    used.add(position)
                    break

        correct_count = sum(1 for hit in found.values() if hit)
        detailed_feedback = {
            error.id: {
                "found": found[error.id],
                "lineNumber": error.line_number,
                "explanation": error.explanation if found[error.id] else None,
            }
            for error in authored
        }
        detailed_feedback["falsePositives"] = [
            report.line_number
            for position, report in enumerate(reported)
            if position not in used and report.line_number is not None
        ]

        return GradingResult(
            is_correct=correct_count == len(authored),
            points_earned=self.proportional(max_points, correct_count, len(authored)),
            max_points=max_points,
            correct_answer={
                error.id: {"lineNumber": error.line_number, "errorText": error.error_text}
                for error in authored
            },
            submitted_answer={
                "errors": [
                    {"errorId": r.error_id, "lineNumber": r.line_number, "text": r.text}
                    for r in reported
                ]
            },
            detailed_feedback=detailed_feedback,
            feedback=self.feedback_summary(correct_count, len(authored)),
        )

    @staticmethod
    def _locates(report: ReportedError, error: AuthoredError) -> bool:
        if report.error_id:
            return report.error_id.lower() == error.id.lower()
        if report.line_number is None or report.line_number != error.line_number:
            return False
        if report.text and error.error_text:
            return normalize(report.text) == normalize(error.error_text)
        return True

    @staticmethod
    def _reported(submission: Mapping[str, Any]) -> List[ReportedError]:
        raw = decode_field(first_present(submission, "errors", "foundErrors"))
        if raw is None:
            lines = decode_field(submission.get("selectedLines"))
            if lines is None:
                raise InvalidSubmissionError("Submission must contain 'errors'")
            raw = [{"lineNumber": line} for line in to_list(lines)]
        if not isinstance(raw, (list, tuple)):
            raise InvalidSubmissionError("'errors' must be a list")

        reported = []
        for entry in raw:
            entry = decode_field(entry)
            if not isinstance(entry, Mapping):
                raise InvalidSubmissionError("Each reported error must be an object")
            error_id = to_text(first_present(entry, "errorId", "id"))
            reported.append(
                ReportedError(
                    error_id=error_id or None,
                    line_number=to_int(first_present(entry, "lineNumber", "line")),
                    text=to_text(first_present(entry, "text", "errorText")),
                )
            )
        return reported
