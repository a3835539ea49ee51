"""Taxonomy tree engine: store, builder, branch codes, mutations and queries."""

from taxonomy.tree.builder import TreeBuilder, TreeView, build_forest, resolve_path
from taxonomy.tree.errors import ErrorKind, TaxonomyError
from taxonomy.tree.mutations import DeletePlan, DeletePolicy, DropKind, MovePlan, MutationEngine, classify_drop_zone
from taxonomy.tree.proposals import Proposal, ProposalAction, ProposalMachine, ProposalState
from taxonomy.tree.query import FilterMode, collect_ids, filter_tree
from taxonomy.tree.store import NodeStore
from taxonomy.tree.workspace import TaxonomyWorkspace

__all__ = [
    "DeletePlan",
    "DeletePolicy",
    "DropKind",
    "ErrorKind",
    "FilterMode",
    "MovePlan",
    "MutationEngine",
    "NodeStore",
    "Proposal",
    "ProposalAction",
    "ProposalMachine",
    "ProposalState",
    "TaxonomyError",
    "TaxonomyWorkspace",
    "TreeBuilder",
    "TreeView",
    "build_forest",
    "classify_drop_zone",
    "collect_ids",
    "filter_tree",
    "resolve_path",
]
