from __future__ import annotations

from typing import Any, Callable, Iterable, Optional


def creates_cycle(node_id: Optional[int], new_parent_id: Optional[int], parent_of: Callable[[int], Optional[int]]) -> bool:
    """True if making ``new_parent_id`` the parent of ``node_id`` closes a loop."""
    if node_id is None or new_parent_id is None:
        return False
    seen: set[int] = set()
    current: Optional[int] = new_parent_id
    while current is not None and current not in seen:
        if current == node_id:
            return True
        seen.add(current)
        current = parent_of(current)
    return False


def build_tree(records: Iterable[dict[str, Any]], *, parent_key: str = "parent_id") -> list[dict[str, Any]]:
    """Nest flat records under ``children``; orphans become roots."""
    nodes = {r["id"]: {**r, "children": []} for r in records}
    roots: list[dict[str, Any]] = []
    for node in nodes.values():
        parent = nodes.get(node.get(parent_key))
        if parent is not None and parent is not node:
            parent["children"].append(node)
        else:
            roots.append(node)
    return roots
