"""
Custom exceptions for EduGrade

This module contains all custom exceptions used throughout the grading engine.
Grading failures are terminal for a single call; nothing here is retried.
"""


class EduGradeException(Exception):
    """Base exception for all EduGrade exceptions"""


class ConfigurationError(EduGradeException):
    """Raised when there's a configuration error"""


class ValidationError(EduGradeException):
    """Raised when an entity invariant is violated on construction"""


class DatabaseError(EduGradeException):
    """Raised when there's a database error"""


class NotFoundError(EduGradeException):
    """Raised when a schedule item or block cannot be found for grading"""


class BlockNotFoundError(NotFoundError):
    """Raised when the requested block id is absent from the content document"""

    def __init__(self, block_id: str, schedule_item_id=None):
        self.block_id = block_id
        self.schedule_item_id = schedule_item_id
        super().__init__(f"Block '{block_id}' not found")


class MalformedContentError(NotFoundError):
    """Raised when authored content JSON violates the content schema.

    Subclasses NotFoundError: a schedule item whose content cannot be parsed is
    treated as not found for grading purposes.
    """


class InvalidSubmissionError(EduGradeException):
    """Raised when a submitted answer payload is unusable"""


class UnsupportedBlockTypeError(InvalidSubmissionError):
    """Raised when an answer is submitted for a block that cannot be graded"""
