"""
Region resolution.

Turns address text (or an already-bound region) into a concrete Region on a
grid handle, and provides the address transforms that need a handle:

- resolve: bind an address to a sheet, defaulting to the active sheet
- ensure_sheet_qualifier: make the sheet explicit in address text
- extend: grow/shrink an address edge by edge, optionally clamped to the sheet
"""

from dataclasses import replace
from typing import Any, Mapping, Optional, Union

from gridbatch.exceptions import SheetNotFoundError
from gridbatch.grid.handle import GridHandle, SheetLike
from gridbatch.spreadsheet.model import (
    Box,
    Region,
    RegionList,
    compose_box,
    parse_box,
    quote_sheet_name,
    split_sheet_qualifier,
)

Address = Union[str, Box, Region]

_EDGES = ("top", "bottom", "left", "right")


def lookup_sheet(handle: GridHandle, name: Optional[str]) -> SheetLike:
    if name is None:
        return handle.active_sheet()
    sheet = handle.sheet_by_name(name)
    if sheet is None:
        raise SheetNotFoundError(name)
    return sheet


def bind(box: Box, sheet: SheetLike) -> Region:
    """Bind a box to a sheet, capturing the sheet's current dimensions."""
    return Region(
        sheet_title=sheet.title,
        sheet_id=sheet.id,
        box=box.with_sheet(sheet.title),
        row_count=sheet.row_count,
        col_count=sheet.col_count,
    )


def resolve(target: Any, handle: GridHandle) -> Union[Region, RegionList]:
    """Resolve an address to a bound Region.

    Args:
        target: A Region (returned unchanged), a Box or address text
            (bound to its qualifier's sheet, else the active sheet), or a
            RegionList/list/tuple of those (resolved element-wise)
        handle: Grid to resolve against

    Returns:
        Region, or RegionList for list-like input

    Raises:
        AddressSyntaxError: If address text does not parse
        SheetNotFoundError: If the named sheet does not exist
    """
    if isinstance(target, Region):
        return target
    if isinstance(target, (RegionList, list, tuple)):
        return RegionList(resolve(item, handle) for item in target)
    if isinstance(target, str):
        target = parse_box(target)
    if not isinstance(target, Box):
        raise TypeError(f"Cannot resolve {type(target).__name__} to a region")
    return bind(target, lookup_sheet(handle, target.sheet))


def resolve_region(target: Address, handle: GridHandle) -> Region:
    """Like ``resolve`` but rejects list-like input."""
    region = resolve(target, handle)
    if isinstance(region, RegionList):
        raise TypeError("Expected a single address, got a list of regions")
    return region


def ensure_sheet_qualifier(address: str, handle: GridHandle) -> str:
    """Return ``address`` with an explicit sheet qualifier.

    Already-qualified text is returned exactly as given. Otherwise the
    active sheet's (quoted if needed) name is prefixed.

    Example:
        >>> ensure_sheet_qualifier("A1:B2", handle)   # active sheet "My Log"
        "'My Log'!A1:B2"
    """
    sheet, _ = split_sheet_qualifier(address)
    if sheet is not None:
        return address
    return f"{quote_sheet_name(handle.active_sheet().title)}!{address.strip()}"


def extend(
    address: Address,
    deltas: Optional[Mapping[str, int]] = None,
    *,
    clamp_to_sheet: bool = False,
    handle: Optional[GridHandle] = None,
    **edge_deltas: int,
) -> str:
    """Move the edges of an address outward (positive) or inward (negative).

    Deltas may be given as a mapping or as keywords: ``top``, ``bottom``,
    ``left``, ``right``, plus the shorthands ``rows`` (applied to ``bottom``)
    and ``cols`` (applied to ``right``). An explicit edge wins over its
    shorthand.

    Args:
        address: Address text, Box or Region
        deltas: Per-edge deltas
        clamp_to_sheet: Clamp the result to the sheet's row/column count
            (requires ``handle`` unless ``address`` is a Region)
        handle: Grid used to look up the sheet for clamping
        **edge_deltas: Same keys as ``deltas``; merged over them

    Returns:
        Address text. Lock flags are kept, and the sheet qualifier is present
        exactly when it was present in the input.

    Example:
        >>> extend("A1:B2", {"bottom": 5})
        'A1:B7'
    """
    merged = dict(deltas or {})
    merged.update(edge_deltas)
    unknown = set(merged) - set(_EDGES) - {"rows", "cols"}
    if unknown:
        raise ValueError(f"Unknown extend keys: {sorted(unknown)}")

    top = merged.get("top", 0)
    left = merged.get("left", 0)
    bottom = merged.get("bottom", merged.get("rows", 0))
    right = merged.get("right", merged.get("cols", 0))

    region = address if isinstance(address, Region) else None
    box = region.box if region is not None else (
        address if isinstance(address, Box) else parse_box(address)
    )
    qualified = region is not None or box.sheet is not None

    # Open axes (A:D rows, 3:7 columns) stay open.
    r1, r2 = box.r1, box.r2
    if r2 is not None:
        r1 = max(1, r1 - top)
        r2 = r2 + bottom
    c1, c2 = box.c1, box.c2
    if c2 is not None:
        c1 = max(1, c1 - left)
        c2 = c2 + right

    if clamp_to_sheet:
        if region is not None:
            max_rows, max_cols = region.row_count, region.col_count
        else:
            if handle is None:
                raise ValueError("clamp_to_sheet requires a grid handle")
            sheet = lookup_sheet(handle, box.sheet)
            max_rows, max_cols = sheet.row_count, sheet.col_count
        if r2 is not None:
            r1, r2 = min(r1, max_rows), min(r2, max_rows)
        if c2 is not None:
            c1, c2 = min(c1, max_cols), min(c2, max_cols)

    # A box turned inside out collapses to one row/column at its start edge.
    if r2 is not None and r2 < r1:
        r2 = r1
    if c2 is not None and c2 < c1:
        c2 = c1

    extended = replace(box, r1=r1, r2=r2, c1=c1, c2=c2)
    if region is not None:
        return region.with_box(extended).a1
    return compose_box(extended, include_sheet=qualified)
