#!/usr/bin/env python3
"""
Tests for residue range expressions
"""
import pytest

from atomcache.exceptions import MalformedRangeError
from atomcache.utils.range_utils import (
    ResidueNumber, ResidueRange, parse_range_part, parse_range_expression,
    parse_multiple, format_range_expression, residue_numbers_to_ranges,
)


class TestResidueNumber:

    @pytest.mark.parametrize("text,expected", [
        ("10", ResidueNumber(10)),
        ("-5", ResidueNumber(-5)),
        ("+3", ResidueNumber(3)),
        ("10B", ResidueNumber(10, "B")),
    ])
    def test_from_string(self, text, expected):
        assert ResidueNumber.from_string(text) == expected

    def test_invalid_number(self):
        with pytest.raises(MalformedRangeError):
            ResidueNumber.from_string("ten")

    def test_matches_residue_id(self):
        assert ResidueNumber(5, "A").matches((" ", 5, "A"))
        assert ResidueNumber(5).matches((" ", 5, " "))
        assert not ResidueNumber(5).matches((" ", 5, "A"))

    def test_str(self):
        assert str(ResidueNumber(-5, "B")) == "-5B"


class TestParsing:

    def test_residue_range(self):
        assert parse_range_part("A_1-83") == ResidueRange("A", ResidueNumber(1), ResidueNumber(83))

    def test_scop_style_range_with_negative_start(self):
        rr = parse_range_part("A:-5-10B")
        assert rr.chain_id == "A"
        assert rr.start == ResidueNumber(-5)
        assert rr.end == ResidueNumber(10, "B")

    @pytest.mark.parametrize("part", ["A", "A:", "A_"])
    def test_whole_chain(self, part):
        rr = parse_range_part(part)
        assert rr.chain_id == "A"
        assert rr.is_whole_chain

    def test_whole_structure(self):
        assert parse_range_part("-").chain_id is None

    def test_parenthesized_expression(self):
        ranges = parse_range_expression("(A_1-10,B)")
        assert [str(r) for r in ranges] == ["A_1-10", "B"]

    @pytest.mark.parametrize("expression", ["", "   ", "A_1", "A_1-", "A_x-5", "A,,B"])
    def test_malformed_expressions(self, expression):
        with pytest.raises(MalformedRangeError):
            parse_range_expression(expression)

    def test_parse_multiple_flattens(self):
        ranges = parse_multiple(["A:1-5", "B:"])
        assert [str(r) for r in ranges] == ["A_1-5", "B"]

    def test_format_uses_underscore(self):
        assert format_range_expression(parse_range_expression("A:1-5,B:")) == "A_1-5,B"


class TestResidueNumbersToRanges:

    def test_contiguous(self):
        numbers = [ResidueNumber(i) for i in range(1, 6)]
        assert [str(r) for r in residue_numbers_to_ranges("A", numbers)] == ["A_1-5"]

    def test_gap_splits(self):
        numbers = [ResidueNumber(i) for i in (1, 2, 3, 7, 8)]
        assert [str(r) for r in residue_numbers_to_ranges("A", numbers)] == ["A_1-3", "A_7-8"]

    def test_insertion_codes_are_contiguous(self):
        numbers = [ResidueNumber(5), ResidueNumber(5, "A"), ResidueNumber(6)]
        assert [str(r) for r in residue_numbers_to_ranges("A", numbers)] == ["A_5-6"]

    def test_empty(self):
        assert residue_numbers_to_ranges("A", []) == []
