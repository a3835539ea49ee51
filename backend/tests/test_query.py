import pytest

from taxonomy.models.node import Node, NodeType
from taxonomy.tree.builder import build_forest
from taxonomy.tree.query import FilterMode, collect_ids, expand_for_filter, filter_tree, ids_to_level


def _shape(forest):
    return [(view.name, _shape(view.children)) for view in forest]


def test_direct_hit_keeps_its_whole_subtree(workspace, sample):
    filtered = filter_tree(workspace.builder.forest(), "alph")
    assert _shape(filtered) == [
        ("Root", [("Alpha", [("Beta", []), ("Gamma", [])])]),
    ]


def test_indirect_hit_keeps_only_matching_paths(workspace, sample):
    filtered = filter_tree(workspace.builder.forest(), "beta")
    assert _shape(filtered) == [("Root", [("Alpha", [("Beta", [])])])]


def test_match_is_case_insensitive(workspace, sample):
    filtered = filter_tree(workspace.builder.forest(), "GAMMA")
    assert collect_ids(filtered) == {sample["Root"], sample["Alpha"], sample["Gamma"]}


def test_query_is_matched_as_typed(workspace, sample):
    assert filter_tree(workspace.builder.forest(), " gamma") == []
    workspace.engine.rename(sample["Gamma"], "Big Gamma")
    filtered = filter_tree(workspace.builder.forest(), " gamma")
    assert sample["Gamma"] in collect_ids(filtered)


def test_blank_query_returns_forest_unchanged(workspace, sample):
    forest = workspace.builder.forest()
    assert filter_tree(forest, "") == forest
    assert filter_tree(forest, "   ") == forest


def test_no_match_returns_empty_forest(workspace, sample):
    assert filter_tree(workspace.builder.forest(), "zzz") == []


def test_filter_does_not_mutate_cached_forest(workspace, sample):
    forest = workspace.builder.forest()
    filter_tree(forest, "beta")
    alpha = workspace.builder.find(sample["Alpha"])
    assert [c.name for c in alpha.children] == ["Beta", "Gamma"]


def test_paths_mode_drops_children_of_hits(workspace, sample):
    filtered = filter_tree(workspace.builder.forest(), "alph", FilterMode.PATHS)
    assert _shape(filtered) == [("Root", [("Alpha", [])])]


def test_ids_to_level(workspace, sample):
    forest = workspace.builder.forest()
    assert ids_to_level(forest, 1) == {sample["Root"], sample["Other"]}
    assert ids_to_level(forest, 2) == {sample["Root"], sample["Other"], sample["Alpha"]}


def test_expand_for_filter_reveals_filtered_nodes(workspace, sample):
    filtered = workspace.forest("gamma")
    expanded = expand_for_filter({sample["Other"]}, filtered)
    assert expanded == {sample["Other"], sample["Root"], sample["Alpha"], sample["Gamma"]}
    assert isinstance(expanded, frozenset)


@pytest.mark.parametrize("mode", [FilterMode.BRANCH, FilterMode.PATHS])
def test_deep_chain_filters_without_recursion(mode):
    depth = 2000
    nodes = [
        Node(id=f"n{i}", name=f"N{i}", type=NodeType.GROUP, parent_id=f"n{i - 1}" if i else None)
        for i in range(depth)
    ]
    filtered = filter_tree(build_forest(nodes), "n1999", mode)
    assert len(collect_ids(filtered)) == depth
    leaf = list(filtered[0].walk())[-1]
    assert (leaf.name, leaf.level) == ("N1999", depth)
