from lanlearner.application.page_export import build_page_blocks
from lanlearner.domain.models import KnowledgePoint
from lanlearner.domain.taxonomy import CategoryTree


def _text(block):
    return block[block["type"]]["rich_text"][0]["text"]["content"]


def make_tree():
    tree = CategoryTree("root")
    tree.add("g", "Grammar")
    tree.add("t", "Tenses", "g")
    tree.add("p", "Past", "t")
    tree.add("v", "Vocabulary")
    return tree


def test_block_order_and_levels():
    points = [
        KnowledgePoint(id="k1", title="Past simple", body="Line one\n\n  \nLine two", category_id="p"),
        KnowledgePoint(id="k2", title="Overview", body="Intro", category_id="g", notes="n1\nn2"),
        KnowledgePoint(id="k3", title="Loose", body="x", category_id=None),
    ]

    blocks = build_page_blocks(make_tree(), points)

    assert [(b["type"], _text(b)) for b in blocks] == [
        ("heading_1", "Grammar"),
        ("heading_3", "Overview"),
        ("paragraph", "Intro"),
        ("quote", "n1"),
        ("quote", "n2"),
        ("heading_2", "Tenses"),
        ("heading_3", "Past simple"),
        ("paragraph", "Line one"),
        ("paragraph", "Line two"),
        ("heading_1", "Vocabulary"),
    ]


def test_image_goes_in_toggle():
    points = [
        KnowledgePoint(
            id="k", title="Chart", body="b", category_id="v",
            image_url="https://example.org/a.png", image_name="Supply curve",
        )
    ]
    blocks = build_page_blocks(make_tree(), points)
    toggle = next(b for b in blocks if b["type"] == "toggle")
    assert _text(toggle) == "Supply curve"
    assert toggle["toggle"]["children"][0]["image"]["external"]["url"] == "https://example.org/a.png"


def test_subtree_export_starts_at_depth_zero():
    blocks = build_page_blocks(make_tree(), [], parent_id="g")
    assert [(b["type"], _text(b)) for b in blocks] == [("heading_1", "Tenses"), ("heading_2", "Past")]


def test_subtree_export_leads_with_own_points():
    points = [
        KnowledgePoint(id="k1", title="Past simple", body="b", category_id="p"),
        KnowledgePoint(id="k2", title="Tense overview", body="o", category_id="t"),
    ]
    blocks = build_page_blocks(make_tree(), points, parent_id="t")
    assert [(b["type"], _text(b)) for b in blocks] == [
        ("heading_3", "Tense overview"),
        ("paragraph", "o"),
        ("heading_1", "Past"),
        ("heading_3", "Past simple"),
        ("paragraph", "b"),
    ]
