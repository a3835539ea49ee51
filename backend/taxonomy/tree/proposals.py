"""Propose, then confirm or cancel, a structural change.

``Idle -> Proposed -> (Applied | Cancelled)``. At most one proposal is pending
at a time; proposing again cancels the earlier one. Confirming hands the
stored plan back to an ``apply`` callback, which re-validates it against the
current store before writing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from loguru import logger

from taxonomy.tree.errors import ErrorKind, ProposalError, TaxonomyError

PlanT = TypeVar("PlanT")
ResultT = TypeVar("ResultT")


class ProposalAction(str, Enum):
    MOVE = "move"
    DELETE = "delete"


class ProposalState(str, Enum):
    IDLE = "idle"
    PROPOSED = "proposed"
    APPLIED = "applied"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class Proposal(Generic[PlanT]):
    action: ProposalAction
    plan: PlanT
    revision: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ProposalState = ProposalState.PROPOSED
    result: Any = None


class ProposalMachine:
    def __init__(self) -> None:
        self._current: Optional[Proposal] = None

    @property
    def state(self) -> ProposalState:
        if self._current is None:
            return ProposalState.IDLE
        return self._current.state

    @property
    def pending(self) -> Optional[Proposal]:
        if self._current is not None and self._current.state is ProposalState.PROPOSED:
            return self._current
        return None

    def propose(self, action: ProposalAction, plan: PlanT, revision: int) -> Proposal[PlanT]:
        previous = self.pending
        if previous is not None:
            previous.state = ProposalState.CANCELLED
            logger.bind(proposal_id=previous.id, action=previous.action.value).info(
                "proposal_superseded"
            )
        proposal = Proposal(action=action, plan=plan, revision=revision)
        self._current = proposal
        logger.bind(proposal_id=proposal.id, action=action.value).info("proposal_created")
        return proposal

    def _take(self, proposal_id: str) -> Proposal:
        pending = self.pending
        if pending is None or pending.id != proposal_id:
            raise ProposalError(
                ErrorKind.NO_PENDING_PROPOSAL,
                f"No pending proposal with id {proposal_id!r}",
            )
        return pending

    def confirm(self, proposal_id: str, apply: Callable[[Any], ResultT]) -> ResultT:
        proposal = self._take(proposal_id)
        try:
            result = apply(proposal.plan)
        except TaxonomyError as exc:
            proposal.state = ProposalState.CANCELLED
            logger.bind(proposal_id=proposal.id, kind=exc.kind.value).warning("proposal_rejected")
            raise
        proposal.state = ProposalState.APPLIED
        proposal.result = result
        logger.bind(proposal_id=proposal.id, action=proposal.action.value).info("proposal_applied")
        return result

    def cancel(self, proposal_id: str) -> Proposal:
        proposal = self._take(proposal_id)
        proposal.state = ProposalState.CANCELLED
        logger.bind(proposal_id=proposal.id, action=proposal.action.value).info("proposal_cancelled")
        return proposal
