"""
Block answer validators
"""

from .base import BlockValidator, GradingResult
from .error_finding import ErrorFindingValidator
from .factory import ValidatorFactory, get_validator_factory, reset_validator_factory
from .gap_fill import BlankEntry, GapFillValidator, extract_blank_entries
from .matching import MatchingValidator
from .multiple_choice import MultipleChoiceValidator
from .ordering import OrderingValidator
from .writing import AudioValidator, WritingValidator

__all__ = [
    "BlockValidator",
    "GradingResult",
    "ValidatorFactory",
    "get_validator_factory",
    "reset_validator_factory",
    "BlankEntry",
    "extract_blank_entries",
    "GapFillValidator",
    "MultipleChoiceValidator",
    "MatchingValidator",
    "OrderingValidator",
    "ErrorFindingValidator",
    "WritingValidator",
    "AudioValidator",
]
