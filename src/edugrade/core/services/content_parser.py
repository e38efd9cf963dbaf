"""
Content schema parser

Decodes the opaque JSON content of a schedule item into a ``ContentDocument``.
Content authored by older editor versions must still grade, so parsing is
lenient about field names and value types: unknown fields are ignored,
sub-objects may arrive pre-serialized as JSON strings, and several historical
names are accepted for the same field. Only structural problems (no block
list, unknown block type) are rejected.
"""

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..exceptions import MalformedContentError
from ..models.content import (
    AnswerType,
    Blank,
    BlankOption,
    Block,
    BlockType,
    ContentDocument,
    GapFillData,
    find_option,
)

# Lower-cased, separator-free spellings seen in authored content
_BLOCK_TYPE_ALIASES = {
    "gapfill": BlockType.GAP_FILL,
    "fillintheblank": BlockType.GAP_FILL,
    "multiplechoice": BlockType.MULTIPLE_CHOICE,
    "mcq": BlockType.MULTIPLE_CHOICE,
    "quiz": BlockType.MULTIPLE_CHOICE,
    "matching": BlockType.MATCHING,
    "match": BlockType.MATCHING,
    "ordering": BlockType.ORDERING,
    "order": BlockType.ORDERING,
    "errorfinding": BlockType.ERROR_FINDING,
    "writing": BlockType.WRITING,
    "audio": BlockType.AUDIO,
    "audiorecording": BlockType.AUDIO,
    "text": BlockType.TEXT,
    "image": BlockType.IMAGE,
    "video": BlockType.VIDEO,
    "code": BlockType.CODE,
    "reminder": BlockType.REMINDER,
    "questiontext": BlockType.QUESTION_TEXT,
    "questionimage": BlockType.QUESTION_IMAGE,
    "questionvideo": BlockType.QUESTION_VIDEO,
    "questionaudio": BlockType.QUESTION_AUDIO,
}


def decode_json_value(value: Any) -> Any:
    """Return ``value`` with one level of JSON string encoding removed.

    Strings that do not look like a JSON object or array are returned as-is.
    """
    if isinstance(value, str):
        stripped = value.strip()
        if stripped[:1] in ("{", "["):
            try:
                return json.loads(stripped)
            except ValueError:
                return value
    return value


def first_present(mapping: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Value of the first key present with a non-None value"""
    for key in keys:
        if key in mapping and mapping[key] is not None:
            return mapping[key]
    return default


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        try:
            return int(float(str(value).strip()))
        except (TypeError, ValueError, OverflowError):
            # Non-numeric, NaN or infinite
            return default


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    return default


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_list(value: Any) -> List[Any]:
    """Coerce a list-like field (possibly a JSON string) into a list"""
    value = decode_json_value(value)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def to_str_list(value: Any) -> List[str]:
    result = []
    for item in to_list(value):
        text = to_text(item)
        if text:
            result.append(text)
    return result


def resolve_block_type(raw_type: Any) -> BlockType:
    """Map an authored type tag to a ``BlockType``.

    Raises:
        MalformedContentError: the tag is missing or unrecognized
    """
    key = to_text(raw_type).replace("-", "").replace("_", "").replace(" ", "").lower()
    if key not in _BLOCK_TYPE_ALIASES:
        raise MalformedContentError(f"Unrecognized block type: {raw_type!r}")
    return _BLOCK_TYPE_ALIASES[key]


def parse_options(raw_options: Any) -> List[BlankOption]:
    """Parse an option list; entries may be objects or bare strings.

    Options without a usable value are skipped. An option without an id is
    identified by its value.
    """
    options = []
    for item in to_list(raw_options):
        item = decode_json_value(item)
        if isinstance(item, Mapping):
            value = to_text(first_present(item, "value", "text", "label"))
            if not value:
                continue
            option_id = to_text(item.get("id")) or value
            display = to_text(first_present(item, "displayText", "label")) or value
            options.append(BlankOption(id=option_id, value=value, display_text=display))
        else:
            value = to_text(item)
            if value:
                options.append(BlankOption(id=value, value=value, display_text=value))
    return options


def _indexed_items(raw_items: Any, *index_keys: str) -> List[Tuple[int, Mapping[str, Any]]]:
    """Pair each blank object with its index.

    Blanks without a usable index are numbered after the largest authored
    index, so indices stay unique within the block.

    Raises:
        MalformedContentError: two blanks carry the same authored index
    """
    items = [decode_json_value(item) for item in to_list(raw_items)]
    items = [item for item in items if isinstance(item, Mapping)]
    authored = [to_int(first_present(item, *index_keys)) for item in items]

    used = set()
    for index in authored:
        if index is None:
            continue
        if index in used:
            raise MalformedContentError(f"Duplicate blank index {index}")
        used.add(index)

    next_index = max(used, default=0) + 1
    indexed = []
    for item, index in zip(items, authored):
        if index is None:
            index = next_index
            next_index += 1
        indexed.append((index, item))
    return indexed


def parse_blank_list(
    raw_blanks: Any, default_allow_global_options: bool = False
) -> List[Blank]:
    """Parse the current ``blanks`` list of a gap-fill block"""
    blanks = []
    for index, item in _indexed_items(raw_blanks, "index", "order"):
        blank = Blank(
            id=to_text(first_present(item, "id", "key", "blankId")) or f"blank{index}",
            index=index,
            correct_answer=to_text(first_present(item, "correctAnswer", "answer")),
            alternative_answers=to_str_list(item.get("alternativeAnswers")),
            allow_manual_input=to_bool(item.get("allowManualInput"), True),
            allow_global_options=to_bool(
                item.get("allowGlobalOptions"), default_allow_global_options
            ),
            allow_blank_options=to_bool(item.get("allowBlankOptions"), False),
            options=parse_options(first_present(item, "options", "suggestions")),
            correct_option_id=to_text(item.get("correctOptionId")) or None,
            alternative_option_ids=to_str_list(item.get("alternativeOptionIds")),
            hint=to_text(item.get("hint")) or None,
        )

        # Options authored on a blank are always offered to the student
        if blank.options:
            blank.allow_blank_options = True

        if not blank.correct_answer and blank.correct_option_id:
            option = find_option(blank.options, blank.correct_option_id)
            if option is not None:
                blank.correct_answer = option.value

        blanks.append(blank)
    return blanks


def parse_legacy_gaps(raw_gaps: Any, default_allow_global_options: bool = False) -> List[Blank]:
    """Parse the older ``gaps`` list into the current blank schema"""
    blanks = []
    for index, item in _indexed_items(raw_gaps, "index"):
        blanks.append(
            Blank(
                id=f"blank{index}",
                index=index,
                correct_answer=to_text(item.get("correctAnswer")),
                alternative_answers=to_str_list(item.get("alternativeAnswers")),
                allow_manual_input=True,
                allow_global_options=default_allow_global_options,
                hint=to_text(item.get("hint")) or None,
            )
        )
    return blanks


def parse_gap_fill(data: Mapping[str, Any]) -> GapFillData:
    answer_type_raw = to_text(data.get("answerType")).lower() or AnswerType.EXACT.value
    try:
        answer_type = AnswerType(answer_type_raw)
    except ValueError:
        answer_type = AnswerType.EXACT

    show_global_options = to_bool(first_present(data, "showGlobalOptions", "showOptions"))
    blanks = parse_blank_list(data.get("blanks"), show_global_options)
    if not blanks:
        blanks = parse_legacy_gaps(data.get("gaps"), show_global_options)
    blanks.sort(key=lambda blank: (blank.index, blank.id.lower()))

    return GapFillData(
        answer_type=answer_type,
        case_sensitive=to_bool(data.get("caseSensitive")),
        show_global_options=show_global_options,
        global_options=parse_options(first_present(data, "globalOptions", "options")),
        blanks=blanks,
        text=to_text(first_present(data, "textContent", "content", "text")) or None,
    )


def parse_block(raw_block: Any, position: int) -> Block:
    raw_block = decode_json_value(raw_block)
    if not isinstance(raw_block, Mapping):
        raise MalformedContentError(f"Block at position {position} is not an object")

    block_type = resolve_block_type(raw_block.get("type"))

    data = decode_json_value(raw_block.get("data"))
    if not isinstance(data, Mapping):
        data = raw_block

    block_id = to_text(first_present(raw_block, "id", "blockId", "key"))
    order = first_present(raw_block, "order", default=data.get("order"))
    instruction = to_text(first_present(data, "instruction", "question")) or to_text(
        raw_block.get("instruction")
    )
    points = first_present(data, "points", default=raw_block.get("points"))
    is_required = first_present(data, "isRequired", default=raw_block.get("isRequired"))

    block = Block(
        id=block_id or f"block-{position + 1}",
        type=block_type,
        order=to_int(order, position),
        data=dict(data),
        instruction=instruction or None,
        points=to_decimal(points),
        is_required=to_bool(is_required, True),
    )
    if block_type is BlockType.GAP_FILL:
        block.gap_fill = parse_gap_fill(data)
    return block


def parse_content(raw_json: Any) -> ContentDocument:
    """Parse a schedule item's content JSON.

    Args:
        raw_json: JSON text, or an already-decoded mapping

    Raises:
        MalformedContentError: invalid JSON, no ``blocks`` list, or an
            unrecognized block type
    """
    if isinstance(raw_json, (bytes, bytearray)):
        try:
            raw_json = raw_json.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedContentError(f"Content is not valid UTF-8: {e}") from e
    if isinstance(raw_json, str):
        if not raw_json.strip():
            raise MalformedContentError("Content is empty")
        try:
            document: Any = json.loads(raw_json)
        except ValueError as e:
            raise MalformedContentError(f"Content is not valid JSON: {e}") from e
    else:
        document = raw_json

    if not isinstance(document, Mapping):
        raise MalformedContentError("Content root must be a JSON object")

    raw_blocks = decode_json_value(document.get("blocks"))
    if not isinstance(raw_blocks, list):
        raise MalformedContentError("Content has no 'blocks' list")

    blocks = [
        parse_block(raw_block, position) for position, raw_block in enumerate(raw_blocks)
    ]
    blocks.sort(key=lambda block: (block.order, block.id.lower()))
    return ContentDocument(blocks=blocks)


def block_summary(block: Block) -> Dict[str, Any]:
    """Small description of a block used in log events"""
    return {"block_id": block.id, "block_type": block.type.value, "order": block.order}
