"""
Kinship path finding and labelling.

Paths are found breadth-first over parent, child and spouse edges, so the
first path found is a shortest one. Labels are read from the first
person's side: "Grandchild" means the first person is the second
person's grandchild.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Iterable

from family_graph.core.models import RelationshipResult, RelationshipStep

SELF = "Self"
SPOUSE = "Spouse"
NO_RELATIONSHIP = "No relationship found"

NeighbourFn = Callable[[str], Iterable[RelationshipStep]]

_FIXED_LABELS = {
    (2, 0): "Grandparent",
    (0, 2): "Grandchild",
    (3, 0): "Great-grandparent",
    (0, 3): "Great-grandchild",
    (1, 1): "Sibling",
    (2, 1): "Aunt/Uncle",
    (1, 2): "Niece/Nephew",
    (2, 2): "First cousin",
}


def ordinal(number: int) -> str:
    """1 -> "1st", 2 -> "2nd", 11 -> "11th", 23 -> "23rd"."""
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def count_steps(path: list[RelationshipStep]) -> tuple[int, int, bool]:
    """
    Count (parent_steps, child_steps, has_spouse) along a path.

    Moving to a child is a parent step (the earlier person is the parent);
    moving to a parent is a child step.
    """
    parent_steps = child_steps = 0
    has_spouse = False
    for step in path:
        if step.relation == "child":
            parent_steps += 1
        elif step.relation == "parent":
            child_steps += 1
        else:
            has_spouse = True
    return parent_steps, child_steps, has_spouse


def describe_relationship(path: list[RelationshipStep]) -> str:
    """Natural-language label for a path."""
    if not path:
        return SELF
    if len(path) == 1 and path[0].relation == "spouse":
        return SPOUSE

    parent_steps, child_steps, has_spouse = count_steps(path)

    if (parent_steps, child_steps) == (1, 0):
        return "Parent's spouse" if has_spouse else "Parent"
    if (parent_steps, child_steps) == (0, 1):
        return "Spouse's child" if has_spouse else "Child"
    if (parent_steps, child_steps) in _FIXED_LABELS:
        return _FIXED_LABELS[(parent_steps, child_steps)]

    if parent_steps > 0 and child_steps > 0:
        nearest = min(parent_steps, child_steps)
        removed = abs(parent_steps - child_steps)
        if nearest >= 2:
            label = f"{ordinal(nearest - 1)} cousin"
            if removed:
                label += f" {removed}x removed"
            return label

    return f"Related ({len(path)} steps)"


def find_path(start_id: str, target_id: str, neighbours: NeighbourFn) -> list[RelationshipStep] | None:
    """
    Breadth-first search from start_id to target_id.

    Returns the first shortest path (without the start), or None. The
    target is checked when an edge is first seen, before visited-set
    filtering, so ties resolve by edge order.
    """
    visited = {start_id}
    previous: dict[str, tuple[str, RelationshipStep]] = {}
    queue = deque([start_id])

    while queue:
        current = queue.popleft()
        for step in neighbours(current):
            if step.person_id == target_id:
                path = [step]
                node = current
                while node != start_id:
                    node, prior = previous[node]
                    path.append(prior)
                path.reverse()
                return path

            if step.person_id not in visited:
                visited.add(step.person_id)
                previous[step.person_id] = (current, step)
                queue.append(step.person_id)

    return None


def calculate_relationship(start_id: str, target_id: str, neighbours: NeighbourFn) -> RelationshipResult:
    """Find and label the relationship between two ids."""
    if start_id == target_id:
        return RelationshipResult(relationship=SELF, path=[], found=True)

    path = find_path(start_id, target_id, neighbours)
    if path is None:
        return RelationshipResult(relationship=NO_RELATIONSHIP, path=[], found=False)
    return RelationshipResult(relationship=describe_relationship(path), path=path)
