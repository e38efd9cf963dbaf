"""
Validator dispatch by block type
"""

from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional, Type

from ...exceptions import ConfigurationError, UnsupportedBlockTypeError
from ...models.content import Block, BlockType
from ..settings_config_service import get_settings_service
from .base import DEFAULT_POINTS, BlockValidator, GradingResult
from .error_finding import ErrorFindingValidator
from .gap_fill import GapFillValidator
from .matching import MatchingValidator
from .multiple_choice import MultipleChoiceValidator
from .ordering import OrderingValidator
from .writing import AudioValidator, WritingValidator

VALIDATOR_CLASSES = (
    GapFillValidator,
    MultipleChoiceValidator,
    MatchingValidator,
    OrderingValidator,
    ErrorFindingValidator,
    WritingValidator,
    AudioValidator,
)


class ValidatorFactory:
    """Selects the validator for a block; one shared instance per block type.

    Adding an exercise type means adding a validator class to
    ``VALIDATOR_CLASSES``; the dispatch itself does not change.
    """

    def __init__(
        self,
        default_points: Decimal = DEFAULT_POINTS,
        validator_classes: Iterable[Type[BlockValidator]] = VALIDATOR_CLASSES,
    ):
        self.default_points = default_points
        self._validators: Dict[BlockType, BlockValidator] = {}
        for validator_class in validator_classes:
            validator = validator_class(default_points)
            for block_type in validator_class.block_types:
                self._validators[block_type] = validator

    def get_validator(self, block_type: BlockType) -> BlockValidator:
        validator = self._validators.get(block_type)
        if validator is None:
            raise UnsupportedBlockTypeError(
                f"Blocks of type '{block_type.value}' do not accept answers"
            )
        return validator

    def validate(self, block: Block, submission) -> GradingResult:
        return self.get_validator(block.type).validate(block, submission)

    @property
    def supported_types(self):
        return sorted(block_type.value for block_type in self._validators)


_validator_factory: Optional[ValidatorFactory] = None


def get_validator_factory() -> ValidatorFactory:
    """Get the global validator factory instance"""
    global _validator_factory
    if _validator_factory is None:
        settings = get_settings_service()
        try:
            default_points = Decimal(settings.get("grading", "default_points", "1"))
        except InvalidOperation as e:
            raise ConfigurationError(f"Invalid grading.default_points: {e}") from e
        if default_points <= 0:
            raise ConfigurationError("grading.default_points must be positive")
        _validator_factory = ValidatorFactory(default_points)
    return _validator_factory


def reset_validator_factory():
    """Forget the global validator factory. Useful for testing."""
    global _validator_factory
    _validator_factory = None
