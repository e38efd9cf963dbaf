"""
Typed content document for schedule items

Authored content arrives as a JSON document holding a list of blocks. These
dataclasses are what the content parser emits and what the validators read.
"""

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


class BlockType(enum.Enum):
    """Block type tags found in content documents"""

    GAP_FILL = "gapFill"
    MULTIPLE_CHOICE = "multipleChoice"
    MATCHING = "matching"
    ORDERING = "ordering"
    ERROR_FINDING = "errorFinding"
    WRITING = "writing"
    AUDIO = "audio"

    # Content-only blocks: displayed to the student, never graded
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    CODE = "code"
    REMINDER = "reminder"
    QUESTION_TEXT = "questionText"
    QUESTION_IMAGE = "questionImage"
    QUESTION_VIDEO = "questionVideo"
    QUESTION_AUDIO = "questionAudio"

    @property
    def is_gradable(self) -> bool:
        return self in GRADABLE_BLOCK_TYPES


GRADABLE_BLOCK_TYPES = frozenset(
    {
        BlockType.GAP_FILL,
        BlockType.MULTIPLE_CHOICE,
        BlockType.MATCHING,
        BlockType.ORDERING,
        BlockType.ERROR_FINDING,
        BlockType.WRITING,
        BlockType.AUDIO,
    }
)


class AnswerType(enum.Enum):
    """How a gap-fill value is compared with the correct answer"""

    EXACT = "exact"
    KEYWORD = "keyword"
    SIMILAR = "similar"


@dataclass
class BlankOption:
    """A selectable option for a blank (or a block's global option list)"""

    id: str
    value: str
    display_text: str


@dataclass
class Blank:
    """One blank of a gap-fill block"""

    id: str
    index: int
    correct_answer: str = ""
    alternative_answers: List[str] = field(default_factory=list)
    allow_manual_input: bool = True
    allow_global_options: bool = False
    allow_blank_options: bool = False
    options: List[BlankOption] = field(default_factory=list)
    correct_option_id: Optional[str] = None
    alternative_option_ids: List[str] = field(default_factory=list)
    hint: Optional[str] = None

    def accepted_answers(self) -> List[str]:
        """Correct answer followed by its alternatives.

        A blank authored with no answer at all accepts only an empty value.
        """
        answers = [a for a in [self.correct_answer, *self.alternative_answers] if a]
        return answers or [""]

    def accepted_option_ids(self) -> List[str]:
        if not self.correct_option_id:
            return []
        return [self.correct_option_id] + list(self.alternative_option_ids)


@dataclass
class GapFillData:
    answer_type: AnswerType = AnswerType.EXACT
    case_sensitive: bool = False
    show_global_options: bool = False
    global_options: List[BlankOption] = field(default_factory=list)
    blanks: List[Blank] = field(default_factory=list)
    text: Optional[str] = None

    def find_global_option(self, option_id: str) -> Optional[BlankOption]:
        return find_option(self.global_options, option_id)


@dataclass
class Block:
    """A single block of a content document.

    ``data`` keeps the decoded type-specific payload so that validators can
    read fields the typed view does not model; ``gap_fill`` is filled in for
    gap-fill blocks only.
    """

    id: str
    type: BlockType
    order: int
    data: Dict[str, Any] = field(default_factory=dict)
    instruction: Optional[str] = None
    points: Optional[Decimal] = None
    is_required: bool = True
    gap_fill: Optional[GapFillData] = None

    @property
    def is_gradable(self) -> bool:
        return self.type.is_gradable


@dataclass
class ContentDocument:
    blocks: List[Block] = field(default_factory=list)

    def find_block(self, block_id: str) -> Optional[Block]:
        """Look up a block by id, ignoring case and surrounding whitespace"""
        if block_id is None:
            return None
        wanted = str(block_id).strip().lower()
        for block in self.blocks:
            if block.id.strip().lower() == wanted:
                return block
        return None

    @property
    def gradable_blocks(self) -> List[Block]:
        return [block for block in self.blocks if block.is_gradable]


def find_option(options: List[BlankOption], option_id: str) -> Optional[BlankOption]:
    """Find an option by id (case-insensitive)"""
    if not option_id:
        return None
    wanted = str(option_id).strip().lower()
    for option in options:
        if option.id.strip().lower() == wanted:
            return option
    return None
