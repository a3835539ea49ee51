"""One editing session: a node store, a product snapshot and the pending proposal."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from loguru import logger

from taxonomy.models.node import Node
from taxonomy.models.product import Product
from taxonomy.tree import branch_codes
from taxonomy.tree.builder import TreeBuilder, TreeView, ancestry
from taxonomy.tree.mutations import (
    DEFAULT_PALETTE_SIZE,
    DeletePlan,
    DeletePolicy,
    DropKind,
    MovePlan,
    MutationEngine,
)
from taxonomy.tree.proposals import Proposal, ProposalAction, ProposalMachine
from taxonomy.tree.query import FilterMode, collect_ids, filter_tree
from taxonomy.tree.store import NodeStore

SAMPLE_TREE = [
    ("Chemical", "Industrial and fine chemicals", [("Industrial Grade", [("Resins", [])])]),
    ("Textile", None, [("Sustainable Fabrics", [("Cotton Based", [])])]),
    ("Electronics", None, [("Semiconductors", [("Microprocessors", [])])]),
]

SAMPLE_PRODUCTS = [
    ("Industrial Grade Resin", "Resins"),
    ("Organic Cotton Twill", "Cotton Based"),
    ("ARM Cortex Controller", "Microprocessors"),
]


class TaxonomyWorkspace:
    def __init__(
        self,
        *,
        palette_size: int = DEFAULT_PALETTE_SIZE,
        delete_policy: DeletePolicy = DeletePolicy.CASCADE,
    ):
        self.store = NodeStore()
        self.products: list[Product] = []
        self.builder = TreeBuilder(self.store, self.products)
        self.engine = MutationEngine(
            self.store, self.builder, palette_size=palette_size, delete_policy=delete_policy
        )
        self.proposals = ProposalMachine()

    @property
    def revision(self) -> int:
        return self.store.revision

    # -- reads -----------------------------------------------------------------

    def nodes(self) -> list[Node]:
        return self.store.all()

    def get(self, node_id: str) -> Node:
        return self.store.require(node_id)

    def forest(self, query: str = "", mode: FilterMode = FilterMode.BRANCH) -> list[TreeView]:
        return filter_tree(self.builder.forest(), query, mode)

    def expand_ids(self, forest: list[TreeView]) -> set[str]:
        return collect_ids(forest)

    def path(self, node_id: str) -> list[Node]:
        return ancestry(self.store, node_id)

    def stock_code(
        self, node_id: str, *, color_code: Optional[str] = None, product_number: Optional[int] = None
    ) -> str:
        return branch_codes.compose_stock_code(
            self.path(node_id), color_code=color_code, product_number=product_number
        )

    def products_by_node(self, node_id: str, *, include_descendants: bool = False) -> list[Product]:
        if include_descendants:
            ids = self.builder.descendant_ids(node_id)
        else:
            ids = {self.store.require(node_id).id}
        return [p for p in self.products if p.node_id in ids]

    def counts(self) -> dict[str, Any]:
        return {"total": self.builder.total_products(), "by_node": self.builder.per_node_counts()}

    # -- products --------------------------------------------------------------

    def add_product(self, name: str, node_id: str, product_id: Optional[str] = None) -> Product:
        self.store.require(node_id)
        product = Product(id=product_id or f"PRD-{uuid.uuid4().hex[:8]}", name=name, node_id=node_id)
        self.products.append(product)
        self.builder.invalidate()
        return product

    def drop_products(self, product_ids: list[str]) -> int:
        doomed = set(product_ids)
        before = len(self.products)
        self.products[:] = [p for p in self.products if p.id not in doomed]
        self.builder.invalidate()
        return before - len(self.products)

    # -- two-phase structural changes -----------------------------------------

    def propose_move(
        self, node_id: str, target_id: Optional[str], drop_kind: DropKind
    ) -> Proposal[MovePlan]:
        plan = self.engine.plan_move(node_id, target_id, drop_kind)
        return self.proposals.propose(ProposalAction.MOVE, plan, self.revision)

    def propose_delete(self, node_id: str) -> Proposal[DeletePlan]:
        plan = self.engine.plan_delete(node_id)
        return self.proposals.propose(ProposalAction.DELETE, plan, self.revision)

    def confirm(self, proposal_id: str) -> Any:
        return self.proposals.confirm(proposal_id, self._apply)

    def cancel(self, proposal_id: str) -> Proposal:
        return self.proposals.cancel(proposal_id)

    def delete(self, node_id: str) -> DeletePlan:
        return self._finish_delete(self.engine.delete(node_id))

    def _apply(self, plan: Any) -> Any:
        if isinstance(plan, MovePlan):
            return self.engine.apply_move(plan)
        return self._finish_delete(self.engine.apply_delete(plan))

    def _finish_delete(self, plan: DeletePlan) -> DeletePlan:
        if plan.orphaned_product_ids:
            dropped = self.drop_products(plan.orphaned_product_ids)
            logger.bind(node_id=plan.node_id, dropped=dropped).info("products_dropped_with_node")
        return plan

    # -- seed ------------------------------------------------------------------

    def seed_sample(self) -> bool:
        """Load the sample taxonomy into an empty store; False if not empty."""

        if len(self.store):
            return False
        by_name: dict[str, str] = {}

        def add_branch(parent_id: Optional[str], name: str, children: list) -> None:
            node = self.engine.add(parent_id, name)
            by_name[name] = node.id
            for child_name, grandchildren in children:
                add_branch(node.id, child_name, grandchildren)

        for sector_name, description, categories in SAMPLE_TREE:
            sector = self.engine.add(None, sector_name, description=description)
            by_name[sector_name] = sector.id
            for name, children in categories:
                add_branch(sector.id, name, children)
        for product_name, node_name in SAMPLE_PRODUCTS:
            self.add_product(product_name, by_name[node_name])
        logger.bind(nodes=len(self.store), products=len(self.products)).info("sample_tree_seeded")
        return True
