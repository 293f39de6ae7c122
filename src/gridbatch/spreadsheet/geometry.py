"""
Geometric relations between addresses.

Both sides of a relation may be an address string, a Box, a Region, a
RegionList, or any (nested) list/tuple of those; each side is flattened into
a list of boxes and every pair of the cartesian product is tested.

Sheet scoping: two boxes whose sheet names are both present and different
never relate. When either side has no sheet name it acts as a wildcard and
only the numeric bounds are compared.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union

from gridbatch.spreadsheet.model import Box, Region, RegionList, parse_box

_INF = float("inf")


class Relation(Enum):
    """Relation modes understood by ``relate`` and ``find_matches``."""
    INTERSECT = "intersect"
    WITHIN = "within"
    CONTAINS = "contains"
    EQUAL = "equal"
    AUTO = "auto"


@dataclass(frozen=True)
class RelationMatch:
    """One matching pair from ``find_matches``.

    Attributes:
        a_index: Position of ``a_box`` in the flattened left-hand side
        b_index: Position of ``b_box`` in the flattened right-hand side
        a_box: The matching box from the left-hand side
        b_box: The matching box from the right-hand side
    """
    a_index: int
    b_index: int
    a_box: Box
    b_box: Box


def to_boxes(target: Any, default_sheet: Optional[str] = None) -> List[Box]:
    """Flatten an address-like value into a list of boxes.

    Args:
        target: Address text, Box, Region, RegionList, or a list/tuple of them
        default_sheet: Sheet name given to boxes that carry none

    Returns:
        Flat list of boxes in input order

    Raises:
        AddressSyntaxError: If a string does not parse
        TypeError: If ``target`` is of an unsupported type
    """
    if isinstance(target, Region):
        boxes = [target.box.with_sheet(target.sheet_title)]
    elif isinstance(target, Box):
        boxes = [target]
    elif isinstance(target, str):
        boxes = [parse_box(target)]
    elif isinstance(target, (RegionList, list, tuple)):
        boxes = []
        for item in target:
            boxes.extend(to_boxes(item))
    else:
        raise TypeError(f"Cannot interpret {type(target).__name__} as an address")

    if default_sheet is not None:
        boxes = [b if b.sheet is not None else b.with_sheet(default_sheet) for b in boxes]
    return boxes


def _bounds(box: Box):
    c2 = _INF if box.c2 is None else box.c2
    r2 = _INF if box.r2 is None else box.r2
    return box.c1, box.r1, c2, r2


def _same_sheet(a: Box, b: Box) -> bool:
    return a.sheet is None or b.sheet is None or a.sheet == b.sheet


def intersects(a: Box, b: Box) -> bool:
    """True if the boxes overlap on both axes."""
    if not _same_sheet(a, b):
        return False
    ac1, ar1, ac2, ar2 = _bounds(a)
    bc1, br1, bc2, br2 = _bounds(b)
    return ac1 <= bc2 and bc1 <= ac2 and ar1 <= br2 and br1 <= ar2


def within(a: Box, b: Box) -> bool:
    """True if ``a`` lies entirely inside ``b``."""
    if not _same_sheet(a, b):
        return False
    ac1, ar1, ac2, ar2 = _bounds(a)
    bc1, br1, bc2, br2 = _bounds(b)
    return bc1 <= ac1 and ac2 <= bc2 and br1 <= ar1 and ar2 <= br2


def contains(a: Box, b: Box) -> bool:
    """True if ``a`` entirely covers ``b``."""
    return within(b, a)


def equals(a: Box, b: Box) -> bool:
    """True if the boxes have identical bounds (lock flags are ignored)."""
    return _same_sheet(a, b) and _bounds(a) == _bounds(b)


def box_relation(a: Box, b: Box, mode: Union[Relation, str] = Relation.AUTO) -> bool:
    """Test a single pair of boxes.

    ``auto`` resolves to ``within`` when ``a`` is a single cell and to
    ``intersect`` otherwise, which is what change-detection callers want: a
    watched cell is "hit" only when the edit covers it, a watched area is
    hit by any overlapping edit.
    """
    mode = Relation(mode)
    if mode is Relation.AUTO:
        mode = Relation.WITHIN if a.is_single_cell() else Relation.INTERSECT

    if mode is Relation.INTERSECT:
        return intersects(a, b)
    if mode is Relation.WITHIN:
        return within(a, b)
    if mode is Relation.CONTAINS:
        return contains(a, b)
    return equals(a, b)


def find_matches(a: Any, b: Any, mode: Union[Relation, str] = Relation.AUTO) -> List[RelationMatch]:
    """Enumerate every related pair between two address-like values.

    Args:
        a: Left-hand side (anything accepted by ``to_boxes``)
        b: Right-hand side
        mode: Relation mode (enum member or its string value)

    Returns:
        Matches in cartesian-product order (``a`` outer, ``b`` inner)
    """
    mode = Relation(mode)
    a_boxes = to_boxes(a)
    b_boxes = to_boxes(b)
    matches: List[RelationMatch] = []
    for i, a_box in enumerate(a_boxes):
        for j, b_box in enumerate(b_boxes):
            if box_relation(a_box, b_box, mode):
                matches.append(RelationMatch(i, j, a_box, b_box))
    return matches


def relate(a: Any, b: Any, mode: Union[Relation, str] = Relation.AUTO) -> bool:
    """True if any pair between ``a`` and ``b`` satisfies ``mode``."""
    mode = Relation(mode)
    a_boxes = to_boxes(a)
    b_boxes = to_boxes(b)
    return any(box_relation(x, y, mode) for x in a_boxes for y in b_boxes)
