"""
Flush planning.

Groups a queued operation list into flushes. A group is a maximal run of
consecutive operations of the same kind whose options are compatible; each
group becomes one remote call in grouped-calls mode.

The plan guarantees:
- Operation order is never changed; a group only ever joins neighbours
- Any change of kind or options starts a new group
- Appends are always alone in their group (where they land depends on
  the grid's contents when the call runs)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from gridbatch.spreadsheet.operations import OpKind, Operation


@dataclass
class Group:
    """A run of operations flushed as one remote call.

    Attributes:
        kind: Shared operation kind, or None for a combined call mixing kinds
        operations: The operations, in enqueue order
    """
    kind: Optional[OpKind]
    operations: List[Operation] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.kind.value if self.kind is not None else "combined"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.label,
            "operations": [op.to_dict() for op in self.operations],
        }


def group_operations(operations: Sequence[Operation]) -> List[Group]:
    """Split operations into flush groups in a single ordered scan.

    Args:
        operations: Queued operations in enqueue order

    Returns:
        Groups in flush order
    """
    groups: List[Group] = []
    current: Optional[Group] = None
    current_key = None

    for op in operations:
        key = (op.kind, op.group_key())
        if op.kind is OpKind.APPEND:
            groups.append(Group(kind=op.kind, operations=[op]))
            current, current_key = None, None
            continue
        if current is None or key != current_key:
            current = Group(kind=op.kind)
            current_key = key
            groups.append(current)
        current.operations.append(op)

    return groups


def explain(groups: Sequence[Group]) -> str:
    """Generate a human-readable summary of a flush plan.

    Returns:
        Multi-line string listing each flush and the ranges it touches
    """
    if not groups:
        return "Empty batch (no operations)"

    total = sum(len(g.operations) for g in groups)
    lines = ["Batch Plan Summary", "=" * 50]
    lines.append(f"Operations: {total}")
    lines.append(f"Remote calls: {len(groups)}")
    lines.append("")
    lines.append("Flushes:")
    lines.append("-" * 50)

    for i, group in enumerate(groups, 1):
        lines.append(f"{i}. {group.label.title()} ({len(group.operations)} operation(s))")
        for op in group.operations:
            lines.append(f"   {op.region.a1}")

    return "\n".join(lines)
