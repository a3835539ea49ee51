import pytest

from taxonomy.models.node import Node, NodeType
from taxonomy.models.product import Product
from taxonomy.tree.builder import build_forest, depth_of, format_path, resolve_path
from taxonomy.tree.errors import NodeNotFoundError


def test_forest_levels_and_child_order(workspace, sample):
    forest = workspace.builder.forest()
    assert [v.name for v in forest] == ["Root", "Other"]
    alpha = forest[0].children[0]
    assert alpha.level == 2
    assert [c.name for c in alpha.children] == ["Beta", "Gamma"]
    assert {c.level for c in alpha.children} == {3}


def test_product_counts_aggregate_over_descendants(workspace, sample):
    workspace.add_product("p1", sample["Beta"])
    workspace.add_product("p2", sample["Gamma"])
    workspace.add_product("p3", sample["Alpha"])
    workspace.add_product("p4", sample["Other"])

    builder = workspace.builder
    assert builder.product_count(sample["Root"]) == 3
    assert builder.product_count(sample["Alpha"]) == 3
    assert builder.product_count(sample["Beta"]) == 1
    assert builder.product_count(sample["Other"]) == 1
    assert builder.total_products() == 4


def test_counts_match_descendant_sets(workspace, sample):
    for name in ("Beta", "Gamma", "Gamma", "Root"):
        workspace.add_product(name, sample[name])
    builder = workspace.builder
    for node_id, count in builder.per_node_counts().items():
        ids = builder.descendant_ids(node_id)
        assert count == sum(1 for p in workspace.products if p.node_id in ids)


def test_descendant_ids_include_self(workspace, sample):
    ids = workspace.builder.descendant_ids(sample["Alpha"])
    assert ids == {sample["Alpha"], sample["Beta"], sample["Gamma"]}
    assert workspace.builder.descendant_ids(sample["Beta"]) == {sample["Beta"]}


def test_builder_recomputes_after_store_writes(workspace, sample):
    assert len(list(workspace.builder.forest()[0].walk())) == 4
    workspace.engine.add(sample["Beta"], "Delta")
    assert len(list(workspace.builder.forest()[0].walk())) == 5


def test_find_unknown_node_raises(workspace, sample):
    with pytest.raises(NodeNotFoundError):
        workspace.builder.find("missing")


def test_deep_chain_does_not_hit_recursion_limit():
    depth = 2000
    nodes = [
        Node(id=f"n{i}", name=f"N{i}", type=NodeType.GROUP, parent_id=f"n{i - 1}" if i else None)
        for i in range(depth)
    ]
    forest = build_forest(nodes, [Product(id="p", name="deep", node_id=f"n{depth - 1}")])
    assert forest[0].product_count == 1
    leaf = list(forest[0].walk())[-1]
    assert leaf.level == depth
    assert len(forest[0].descendant_ids) == depth


def test_resolve_path_and_depth(workspace, sample):
    names = resolve_path(workspace.store, sample["Gamma"])
    assert names == ["Root", "Alpha", "Gamma"]
    assert format_path(names) == "Root > Alpha > Gamma"
    assert depth_of(workspace.store, sample["Gamma"]) == 3
    assert depth_of(workspace.store, None) == 0
