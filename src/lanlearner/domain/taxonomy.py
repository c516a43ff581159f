"""
Category tree for one hierarchy.

Nodes are kept in an id map plus a parent -> children index so that child
lookup is O(1) and subtree walks stay linear. The hierarchy root is a
sentinel id, never stored as a node.
"""

import logging
from collections.abc import Iterable, Iterator

from lanlearner.domain.constants import PATH_SEPARATOR
from lanlearner.domain.models import Category

logger = logging.getLogger(__name__)


class CategoryTree:
    def __init__(self, root_id: str, categories: Iterable[Category] = ()):
        self.root_id = root_id
        self.nodes: dict[str, Category] = {}
        self._children: dict[str, list[str]] = {root_id: []}
        for category in categories:
            self._attach(category)
        self._repair()

    # ---------- Structure ----------

    def _attach(self, category: Category) -> None:
        if category.id == self.root_id or category.id in self.nodes:
            return
        if category.parent_id is None:
            category.parent_id = self.root_id
        self.nodes[category.id] = category
        self._children.setdefault(category.id, [])
        self._children.setdefault(category.parent_id, []).append(category.id)

    def _detach(self, category_id: str) -> None:
        category = self.nodes[category_id]
        siblings = self._children.get(category.parent_id or self.root_id, [])
        if category_id in siblings:
            siblings.remove(category_id)

    def _repair(self) -> None:
        """Re-home nodes whose parent is missing or whose chain loops back."""
        for category in list(self.nodes.values()):
            parent_id = category.parent_id
            if parent_id != self.root_id and parent_id not in self.nodes:
                logger.info(f"Category {category.id} had dangling parent {parent_id}; moved to root")
                self._move(category.id, self.root_id)

        for category in list(self.nodes.values()):
            seen: set[str] = set()
            current = category.parent_id
            while current and current != self.root_id:
                if current in seen or current == category.id:
                    logger.info(f"Category {category.id} was part of a parent cycle; moved to root")
                    self._move(category.id, self.root_id)
                    break
                seen.add(current)
                current = self.nodes[current].parent_id

    def _move(self, category_id: str, parent_id: str) -> None:
        self._detach(category_id)
        self.nodes[category_id].parent_id = parent_id
        self._children.setdefault(parent_id, []).append(category_id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Category]:
        return iter(self.nodes.values())

    def get(self, category_id: str | None) -> Category | None:
        if category_id is None:
            return None
        return self.nodes.get(category_id)

    def children_of(self, category_id: str | None) -> list[Category]:
        key = self.root_id if category_id is None else category_id
        return [self.nodes[cid] for cid in self._children.get(key, [])]

    def top_level(self) -> list[Category]:
        return self.children_of(self.root_id)

    def is_top_level(self, category_id: str) -> bool:
        category = self.nodes.get(category_id)
        return category is not None and category.parent_id == self.root_id

    # ---------- Mutation ----------

    def add(
        self,
        category_id: str,
        title: str,
        parent_id: str | None = None,
        is_learned: bool = False,
    ) -> Category:
        """Insert a category. Unknown or missing parents resolve to the root."""
        if parent_id is None or (parent_id != self.root_id and parent_id not in self.nodes):
            parent_id = self.root_id
        category = Category(
            id=category_id, title=title.strip(), parent_id=parent_id, is_learned=is_learned
        )
        self._attach(category)
        return category

    def update(self, category_id: str, title: str | None = None,
               parent_id: str | None = None) -> Category | None:
        """
        Rename and/or re-parent a category.

        A parent equal to the node itself, or to one of its descendants, is
        normalized to the hierarchy root instead of being rejected.
        """
        category = self.nodes.get(category_id)
        if category is None:
            return None

        if title is not None and title.strip():
            category.title = title.strip()

        if parent_id is not None and parent_id != category.parent_id:
            if parent_id == category_id or parent_id in self.descendants_of(category_id):
                logger.warning(
                    f"Category {category_id} cannot be its own ancestor; parent reset to root"
                )
                parent_id = self.root_id
            elif parent_id != self.root_id and parent_id not in self.nodes:
                parent_id = self.root_id
            self._move(category_id, parent_id)

        return category

    def remove_subtree(self, category_id: str) -> set[str]:
        """Delete a category and all its descendants. Returns the removed ids."""
        if category_id not in self.nodes:
            return set()
        removed = self.descendants_of(category_id) | {category_id}
        self._detach(category_id)
        for cid in removed:
            self.nodes.pop(cid, None)
            self._children.pop(cid, None)
        return removed

    # ---------- Traversal ----------

    def descendants_of(self, category_id: str) -> set[str]:
        """All descendant ids, depth-unbounded (the node itself excluded)."""
        found: set[str] = set()
        stack = list(self._children.get(category_id, []))
        while stack:
            cid = stack.pop()
            if cid in found:
                continue
            found.add(cid)
            stack.extend(self._children.get(cid, []))
        return found

    def ancestors_of(self, category_id: str) -> list[Category]:
        """Ancestors from the direct parent upward, root excluded."""
        chain: list[Category] = []
        category = self.nodes.get(category_id)
        while category is not None and category.parent_id != self.root_id:
            category = self.nodes.get(category.parent_id or "")
            if category is None:
                break
            chain.append(category)
        return chain

    def path_titles(self, category_id: str | None) -> list[str]:
        """Titles from the root (exclusive) down to ``category_id`` (inclusive)."""
        if category_id is None or category_id not in self.nodes:
            return []
        chain = [self.nodes[category_id], *self.ancestors_of(category_id)]
        return [c.title for c in reversed(chain)]

    def path_string(self, category_id: str | None) -> str:
        return PATH_SEPARATOR.join(self.path_titles(category_id))

    def top_level_of(self, category_id: str | None) -> Category | None:
        """The top-level ancestor owning ``category_id`` (itself when top-level)."""
        if category_id is None or category_id not in self.nodes:
            return None
        ancestors = self.ancestors_of(category_id)
        return ancestors[-1] if ancestors else self.nodes[category_id]

    def find_child_by_title(self, parent_id: str | None, title: str) -> Category | None:
        wanted = title.strip().lower()
        for child in self.children_of(parent_id):
            if child.title.strip().lower() == wanted:
                return child
        return None

    def walk(self, category_id: str | None = None, depth: int = 0) -> Iterator[tuple[Category, int]]:
        """Depth-first pre-order walk yielding ``(category, depth)``."""
        for child in self.children_of(category_id):
            yield child, depth
            yield from self.walk(child.id, depth + 1)

    def to_list(self) -> list[dict]:
        return [c.to_dict() for c, _ in self.walk()]
