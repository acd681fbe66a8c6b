# atomcache/utils/range_utils.py
"""
Residue range expressions

A range expression selects chains or residue spans of a structure::

    A               whole chain A
    A:              whole chain A (SCOP style)
    A_1-83          residues 1 to 83 of chain A
    A:-5-10B        residues -5 to 10B (insertion code B) of chain A
    A_1-83,B        a segment of A plus all of B
    -               every chain

Residue bounds are PDB author numbers with an optional sign and an
optional insertion code.
"""
import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Iterable, Tuple

from atomcache.exceptions import MalformedRangeError

logger = logging.getLogger("atomcache.utils.range_utils")

WHOLE_STRUCTURE = "-"

_RESNUM = r"[-+]?\d+[A-Za-z]?"
RESIDUE_NUMBER_REGEX = re.compile(r"\s*([-+]?\d+)([A-Za-z]?)\s*")
RANGE_PART_REGEX = re.compile(
    r"\s*(?P<chain>[A-Za-z0-9]+|-)\s*"
    r"(?:[_:]\s*(?:(?P<start>" + _RESNUM + r")\s*-\s*(?P<end>" + _RESNUM + r"))?)?\s*"
)


@dataclass(frozen=True)
class ResidueNumber:
    """PDB author residue number with optional insertion code"""
    seq_num: int
    insertion_code: str = ""

    @classmethod
    def from_string(cls, text: str) -> 'ResidueNumber':
        """Parse ``[-+]?[0-9]+[A-Za-z]?``

        Raises:
            MalformedRangeError: If text is not a residue number
        """
        match = RESIDUE_NUMBER_REGEX.fullmatch(text)
        if not match:
            raise MalformedRangeError(f"Invalid residue number: '{text}'", {"residue_number": text})
        return cls(int(match.group(1)), match.group(2))

    @classmethod
    def from_residue_id(cls, residue_id: Tuple[str, int, str]) -> 'ResidueNumber':
        """Build from a Bio.PDB residue id tuple ``(hetflag, seq, icode)``"""
        return cls(residue_id[1], residue_id[2].strip())

    def matches(self, residue_id: Tuple[str, int, str]) -> bool:
        return residue_id[1] == self.seq_num and residue_id[2].strip() == self.insertion_code

    def __str__(self) -> str:
        return f"{self.seq_num}{self.insertion_code}"


@dataclass(frozen=True)
class ResidueRange:
    """A chain, or a span of residues within a chain

    ``chain_id`` of None selects the whole structure; ``start``/``end`` of
    None select the whole chain.
    """
    chain_id: Optional[str]
    start: Optional[ResidueNumber] = None
    end: Optional[ResidueNumber] = None

    @property
    def is_whole_chain(self) -> bool:
        return self.start is None

    def __str__(self) -> str:
        if self.chain_id is None:
            return WHOLE_STRUCTURE
        if self.start is None:
            return self.chain_id
        return f"{self.chain_id}_{self.start}-{self.end}"


def parse_range_part(part: str) -> ResidueRange:
    """Parse a single comma-free clause of a range expression

    Raises:
        MalformedRangeError: If the clause does not follow the grammar
    """
    match = RANGE_PART_REGEX.fullmatch(part)
    if not match:
        raise MalformedRangeError(f"Invalid range: '{part}'", {"range": part})

    chain = match.group("chain")
    if chain == WHOLE_STRUCTURE:
        return ResidueRange(None)
    if match.group("start") is None:
        return ResidueRange(chain)
    return ResidueRange(chain,
                        ResidueNumber.from_string(match.group("start")),
                        ResidueNumber.from_string(match.group("end")))


def parse_range_expression(expression: str) -> List[ResidueRange]:
    """Parse a comma-separated range expression, optionally in parentheses

    Args:
        expression: Range expression (e.g. "A_1-83,B")

    Returns:
        List of residue ranges in expression order

    Raises:
        MalformedRangeError: If the expression is empty or malformed
    """
    if expression is None or not expression.strip():
        raise MalformedRangeError("Range expression can't be empty", {"range": expression})

    text = expression.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]

    return [parse_range_part(part) for part in text.split(",")]


def parse_multiple(ranges: Iterable[str]) -> List[ResidueRange]:
    """Parse several range expressions into one flat list"""
    parsed: List[ResidueRange] = []
    for expression in ranges:
        parsed.extend(parse_range_expression(expression))
    return parsed


def format_range_expression(ranges: Iterable[ResidueRange]) -> str:
    """Inverse of parse_range_expression, using ``_`` as separator"""
    return ",".join(str(r) for r in ranges)


def residue_numbers_to_ranges(chain_id: str, numbers: List[ResidueNumber]) -> List[ResidueRange]:
    """Collapse an ordered list of residue numbers into contiguous ranges

    Numbers are contiguous when the sequence number increases by one, or
    stays the same with a different insertion code.
    """
    if not numbers:
        return []

    ranges = []
    seg_start = seg_end = numbers[0]
    for number in numbers[1:]:
        if number.seq_num == seg_end.seq_num + 1 or (
                number.seq_num == seg_end.seq_num and number.insertion_code != seg_end.insertion_code):
            seg_end = number
        else:
            ranges.append(ResidueRange(chain_id, seg_start, seg_end))
            seg_start = seg_end = number
    ranges.append(ResidueRange(chain_id, seg_start, seg_end))
    return ranges
