"""
Unit tests for the content schema parser
"""

import json
from decimal import Decimal

import pytest

from edugrade.core.exceptions import MalformedContentError, NotFoundError
from edugrade.core.models import AnswerType, BlockType
from edugrade.core.services.content_parser import (
    parse_block,
    parse_content,
    parse_options,
    resolve_block_type,
    to_int,
)


class TestParseContent:
    """Document level parsing"""

    def test_parses_gap_fill_block(self):
        raw = json.dumps(
            {
                "blocks": [
                    {
                        "id": "b1",
                        "type": "gapFill",
                        "order": 2,
                        "data": {
                            "answerType": "exact",
                            "caseSensitive": True,
                            "points": 4,
                            "blanks": [
                                {
                                    "id": "x",
                                    "index": 1,
                                    "correctAnswer": "desk",
                                    "alternativeAnswers": ["table"],
                                    "allowManualInput": False,
                                }
                            ],
                        },
                    }
                ]
            }
        )
        document = parse_content(raw)

        block = document.find_block("b1")
        assert block.type is BlockType.GAP_FILL
        assert block.order == 2
        assert block.points == Decimal("4")
        assert block.gap_fill.case_sensitive is True
        assert block.gap_fill.answer_type is AnswerType.EXACT
        blank = block.gap_fill.blanks[0]
        assert blank.correct_answer == "desk"
        assert blank.alternative_answers == ["table"]
        assert blank.allow_manual_input is False

    def test_blocks_sorted_by_order(self):
        document = parse_content(
            {
                "blocks": [
                    {"id": "late", "type": "text", "order": 5},
                    {"id": "early", "type": "text", "order": 1},
                ]
            }
        )
        assert [block.id for block in document.blocks] == ["early", "late"]

    def test_find_block_ignores_case(self):
        document = parse_content({"blocks": [{"id": "Block-A", "type": "text"}]})
        assert document.find_block("block-a") is not None
        assert document.find_block("missing") is None

    def test_data_may_be_serialized_json(self):
        data = json.dumps({"blanks": [{"id": "b", "index": 1, "correctAnswer": "x"}]})
        document = parse_content({"blocks": [{"id": "g", "type": "gapFill", "data": data}]})
        assert document.find_block("g").gap_fill.blanks[0].correct_answer == "x"

    def test_missing_block_id_gets_position_id(self):
        document = parse_content({"blocks": [{"type": "text"}]})
        assert document.blocks[0].id == "block-1"

    def test_gradable_blocks(self):
        document = parse_content(
            {"blocks": [{"id": "t", "type": "text"}, {"id": "w", "type": "writing"}]}
        )
        assert [block.id for block in document.gradable_blocks] == ["w"]

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "   ",
            "{not json",
            "[1, 2]",
            json.dumps({"title": "no blocks"}),
            json.dumps({"blocks": "nope"}),
            json.dumps({"blocks": [42]}),
            json.dumps({"blocks": [{"id": "x", "type": "hologram"}]}),
        ],
    )
    def test_malformed_content(self, raw):
        with pytest.raises(MalformedContentError):
            parse_content(raw)

    def test_malformed_content_is_a_not_found_error(self):
        with pytest.raises(NotFoundError):
            parse_content("{broken")

    def test_bytes_input(self):
        document = parse_content('{"blocks": []}'.encode("utf-8"))
        assert document.blocks == []


class TestBlockTypes:
    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("gapFill", BlockType.GAP_FILL),
            ("gap_fill", BlockType.GAP_FILL),
            ("GapFill", BlockType.GAP_FILL),
            ("multipleChoice", BlockType.MULTIPLE_CHOICE),
            ("errorFinding", BlockType.ERROR_FINDING),
            ("questionAudio", BlockType.QUESTION_AUDIO),
        ],
    )
    def test_aliases(self, tag, expected):
        assert resolve_block_type(tag) is expected

    def test_content_only_types_are_not_gradable(self):
        assert not BlockType.TEXT.is_gradable
        assert not BlockType.QUESTION_AUDIO.is_gradable
        assert BlockType.AUDIO.is_gradable


class TestGapFillParsing:
    """Blank level details"""

    def test_options_force_blank_options(self):
        block = parse_block(
            {
                "id": "g",
                "type": "gapFill",
                "data": {
                    "blanks": [
                        {
                            "id": "b",
                            "index": 1,
                            "correctAnswer": "go",
                            "allowBlankOptions": False,
                            "options": [{"id": "o1", "value": "go"}, "went"],
                        }
                    ]
                },
            },
            0,
        )
        blank = block.gap_fill.blanks[0]
        assert blank.allow_blank_options is True
        assert [option.id for option in blank.options] == ["o1", "went"]

    def test_correct_answer_from_correct_option(self):
        block = parse_block(
            {
                "id": "g",
                "type": "gapFill",
                "data": {
                    "blanks": [
                        {
                            "id": "b",
                            "index": 1,
                            "options": [{"id": "o1", "value": "go"}],
                            "correctOptionId": "o1",
                        }
                    ]
                },
            },
            0,
        )
        assert block.gap_fill.blanks[0].correct_answer == "go"

    def test_legacy_gaps(self):
        block = parse_block(
            {
                "id": "g",
                "type": "gapFill",
                "data": {"gaps": [{"index": 2, "correctAnswer": "b"}, {"index": 1, "correctAnswer": "a"}]},
            },
            0,
        )
        blanks = block.gap_fill.blanks
        assert [blank.id for blank in blanks] == ["blank1", "blank2"]
        assert [blank.correct_answer for blank in blanks] == ["a", "b"]

    def test_unknown_answer_type_falls_back_to_exact(self):
        block = parse_block(
            {"id": "g", "type": "gapFill", "data": {"answerType": "fuzzy", "blanks": []}}, 0
        )
        assert block.gap_fill.answer_type is AnswerType.EXACT

    def test_parse_options_skips_empty(self):
        options = parse_options([{"id": "a"}, "", {"value": "x", "displayText": "X"}])
        assert len(options) == 1
        assert options[0].display_text == "X"

    def test_missing_index_follows_largest_authored_index(self):
        block = parse_block(
            {
                "id": "g",
                "type": "gapFill",
                "data": {
                    "blanks": [
                        {"id": "a", "index": 2, "correctAnswer": "x"},
                        {"id": "b", "correctAnswer": "y"},
                        {"id": "c", "index": 1, "correctAnswer": "z"},
                    ]
                },
            },
            0,
        )
        indices = {blank.id: blank.index for blank in block.gap_fill.blanks}
        assert indices == {"a": 2, "b": 3, "c": 1}

    def test_duplicate_blank_index_is_malformed(self):
        raw = {
            "id": "g",
            "type": "gapFill",
            "data": {
                "blanks": [
                    {"id": "a", "index": 1, "correctAnswer": "x"},
                    {"id": "b", "index": 1, "correctAnswer": "y"},
                ]
            },
        }
        with pytest.raises(MalformedContentError):
            parse_block(raw, 0)

    def test_huge_index_is_treated_as_missing(self):
        document = parse_content(
            '{"blocks": [{"id": "g", "type": "gapFill", "order": 1e400,'
            ' "data": {"blanks": [{"id": "a", "index": 1e400, "correctAnswer": "x"}]}}]}'
        )
        block = document.find_block("g")
        assert block.order == 0
        assert block.gap_fill.blanks[0].index == 1


class TestToInt:
    @pytest.mark.parametrize(
        "value,expected",
        [(3, 3), ("4", 4), ("5.0", 5), (" 6 ", 6), (True, None), ("x", None), (None, None)],
    )
    def test_conversion(self, value, expected):
        assert to_int(value) == expected

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "1e400"])
    def test_non_finite_numbers_use_default(self, value):
        assert to_int(value, 7) == 7
