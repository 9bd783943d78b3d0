"""Traversal and mutation helpers for comment forests.

A forest is the list of top-level comments of one article; every comment
owns its ``replies`` list. All traversals are depth-first and pre-order:
a subtree is searched completely before its next sibling. An explicit stack
is used instead of recursion so reply chains of any depth are safe.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from typing import Any

from .models import Comment


def _walk(forest: list[Comment]) -> Iterator[tuple[list[Comment], Comment]]:
    """Yield ``(container, node)`` pairs in pre-order."""
    stack = [(forest, node) for node in reversed(forest)]
    while stack:
        container, node = stack.pop()
        yield container, node
        stack.extend((node.replies, child) for child in reversed(node.replies))


def iter_comments(forest: list[Comment]) -> Iterator[Comment]:
    """Iterate over every comment of ``forest`` in pre-order."""
    for _, node in _walk(forest):
        yield node


def count_comments(forest: list[Comment]) -> int:
    return sum(1 for _ in _walk(forest))


def find_comment(forest: list[Comment], comment_id: str) -> Comment | None:
    """Return the first comment whose id is ``comment_id``."""
    return next((node for node in iter_comments(forest) if node.id == comment_id), None)


def find_container(forest: list[Comment], comment_id: str) -> list[Comment] | None:
    """Return the sibling list that directly holds ``comment_id``.

    This is either ``forest`` itself or the ``replies`` list of some node.
    Deletion splices out of this list, which takes the subtree along.
    """
    return next(
        (container for container, node in _walk(forest) if node.id == comment_id),
        None,
    )


def insert_comment(
    forest: list[Comment], comment: Comment, parent_id: str | None = None
) -> bool:
    """Append ``comment`` to the root or to the replies of ``parent_id``.

    Returns ``False`` and leaves the forest untouched when the parent does
    not exist.
    """
    if not parent_id:
        forest.append(comment)
        return True
    parent = find_comment(forest, parent_id)
    if parent is None:
        return False
    parent.replies.append(comment)
    return True


def remove_comment(forest: list[Comment], comment_id: str) -> Comment | None:
    """Splice ``comment_id`` out of its container and return it."""
    container = find_container(forest, comment_id)
    if container is None:
        return None
    for index, node in enumerate(container):
        if node.id == comment_id:
            return container.pop(index)
    return None


async def build_forest(
    roots: list[dict[str, Any]],
    fetch_children: Callable[[str], Awaitable[list[dict[str, Any]]]],
) -> list[Comment]:
    """Assemble a nested forest from flat relational rows.

    ``roots`` are the rows without a parent, already ordered by creation
    time. ``fetch_children`` returns the rows referencing a given parent id
    in the same order. One lookup is issued per node.
    """
    forest = [_comment_from_row(row) for row in roots]
    stack = list(forest)
    while stack:
        node = stack.pop()
        node.replies = [_comment_from_row(row) for row in await fetch_children(node.id)]
        stack.extend(node.replies)
    return forest


def _comment_from_row(row: dict[str, Any]) -> Comment:
    return Comment(
        id=str(row["id"]),
        author=row["author"],
        date=row.get("date") or "",
        content=row.get("content") or "",
        likes=row.get("likes") or 0,
    )
