"""
Learned-state propagation over the new-knowledge category tree.

Learned status needs the unanimous consent of siblings to move upward;
unlearned status is asserted unilaterally down the subtree and up the
ancestor chain.
"""

import logging

from lanlearner.domain.taxonomy import CategoryTree

logger = logging.getLogger(__name__)


def mark_learned(tree: CategoryTree, category_id: str) -> set[str]:
    """
    Mark a category learned, then promote ancestors whose children all agree.

    Returns:
        Ids whose ``is_learned`` flag changed. Unknown ids are a no-op.
    """
    category = tree.get(category_id)
    if category is None:
        return set()

    changed: set[str] = set()
    if not category.is_learned:
        category.is_learned = True
        changed.add(category.id)

    for ancestor in tree.ancestors_of(category_id):
        if not all(child.is_learned for child in tree.children_of(ancestor.id)):
            break
        if not ancestor.is_learned:
            ancestor.is_learned = True
            changed.add(ancestor.id)

    if changed:
        logger.debug(f"Marked learned: {sorted(changed)}")
    return changed


def mark_unlearned(tree: CategoryTree, category_id: str) -> set[str]:
    """
    Clear the learned flag on a category, its whole subtree, and every learned
    ancestor.

    Returns:
        Ids whose ``is_learned`` flag changed. Unknown ids are a no-op.
    """
    if category_id not in tree:
        return set()

    changed: set[str] = set()
    for cid in tree.descendants_of(category_id) | {category_id}:
        node = tree.nodes[cid]
        if node.is_learned:
            node.is_learned = False
            changed.add(cid)

    for ancestor in tree.ancestors_of(category_id):
        if ancestor.is_learned:
            ancestor.is_learned = False
            changed.add(ancestor.id)

    if changed:
        logger.debug(f"Marked unlearned: {sorted(changed)}")
    return changed
