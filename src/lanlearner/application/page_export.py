"""
Page export block generation.

Turns a category tree and its knowledge points into the nested block
structure accepted by the page-export collaborator. Categories at depth 0
and 1 become headings; deeper categories contribute only their items.
"""

from typing import Any

from lanlearner.domain.models import KnowledgePoint
from lanlearner.domain.taxonomy import CategoryTree

Block = dict[str, Any]


def _rich_text(content: str) -> list[dict[str, Any]]:
    return [{"type": "text", "text": {"content": content}}]


def _text_block(block_type: str, content: str) -> Block:
    return {"object": "block", "type": block_type, block_type: {"rich_text": _rich_text(content)}}


def heading_block(level: int, content: str) -> Block:
    return _text_block(f"heading_{level}", content)


def paragraph_block(content: str) -> Block:
    return _text_block("paragraph", content)


def quote_block(content: str) -> Block:
    return _text_block("quote", content)


def image_block(url: str) -> Block:
    return {
        "object": "block",
        "type": "image",
        "image": {"type": "external", "external": {"url": url}},
    }


def toggle_block(content: str, children: list[Block]) -> Block:
    return {
        "object": "block",
        "type": "toggle",
        "toggle": {"rich_text": _rich_text(content), "children": children},
    }


def table_of_contents_block() -> Block:
    return {"object": "block", "type": "table_of_contents", "table_of_contents": {}}


def knowledge_point_blocks(kp: KnowledgePoint) -> list[Block]:
    blocks = [heading_block(3, kp.title)]
    blocks.extend(paragraph_block(line) for line in kp.body.split("\n") if line.strip())
    if kp.image_url:
        blocks.append(toggle_block(kp.image_name or "Image", [image_block(kp.image_url)]))
    if kp.notes:
        blocks.extend(quote_block(line) for line in kp.notes.split("\n") if line.strip())
    return blocks


def build_page_blocks(
    tree: CategoryTree,
    points: list[KnowledgePoint],
    parent_id: str | None = None,
    depth: int = 0,
) -> list[Block]:
    """
    Build blocks for every category beneath ``parent_id`` (the root by default),
    in tree order, each followed by its own knowledge points and then its
    subcategories. When exporting beneath a category, the points filed
    directly in it come first.
    """
    by_category: dict[str, list[KnowledgePoint]] = {}
    for kp in points:
        if kp.category_id is not None:
            by_category.setdefault(kp.category_id, []).append(kp)

    def build(current: str | None, level: int) -> list[Block]:
        blocks: list[Block] = []
        for category in tree.children_of(current):
            if level == 0:
                blocks.append(heading_block(1, category.title))
            elif level == 1:
                blocks.append(heading_block(2, category.title))
            for kp in by_category.get(category.id, []):
                blocks.extend(knowledge_point_blocks(kp))
            blocks.extend(build(category.id, level + 1))
        return blocks

    own = by_category.get(parent_id, []) if parent_id is not None else []
    blocks = [block for kp in own for block in knowledge_point_blocks(kp)]
    return blocks + build(parent_id, depth)
