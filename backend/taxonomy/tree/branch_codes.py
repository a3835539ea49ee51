"""Branch code suggestion, validation and stock-code composition."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Collection, Iterable, Optional, Sequence

from loguru import logger

from taxonomy.models.node import Node
from taxonomy.tree.errors import AllocationExhaustedError, ErrorKind, InvalidBranchCodeError

MAX_CODE_LENGTH = 5
STOCK_CODE_PREFIX = "P"
PRODUCT_NUMBER_PLACEHOLDER = "XXXX"

_VOWELS = re.compile(r"[AEIOU]")
_NOT_CODE_CHAR = re.compile(r"[^A-Z0-9]")
_CODE_CHARS = re.compile(r"^[A-Z0-9]+$")
_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True, slots=True)
class BranchCodeIssue:
    kind: ErrorKind
    message: str

    def to_error(self, code: str) -> InvalidBranchCodeError:
        return InvalidBranchCodeError(self.kind, self.message, code)


def existing_codes(nodes: Iterable[Node], *, exclude_id: Optional[str] = None) -> set[str]:
    return {n.branch_code for n in nodes if n.branch_code and n.id != exclude_id}


def _words(name: str) -> list[str]:
    words = (_NOT_CODE_CHAR.sub("", w) for w in name.strip().upper().split())
    return [w for w in words if w]


def suggest(name: str, existing: Collection[str]) -> str:
    """Suggest a short code for ``name`` that is not in ``existing``.

    One word: its first two consonants, or its first two characters when it
    has fewer than two. Several words: their initials. When the result is
    taken, the first four characters get a digit suffix 1-9.
    """

    words = _words(name)
    if not words:
        return ""
    if len(words) == 1:
        word = words[0]
        consonants = _VOWELS.sub("", word)
        code = consonants[:2] if len(consonants) >= 2 else word[:2]
    else:
        code = "".join(w[0] for w in words)[:MAX_CODE_LENGTH]
    code = code[:MAX_CODE_LENGTH]

    if code not in existing:
        return code
    base = code[: MAX_CODE_LENGTH - 1]
    for digit in range(1, 10):
        candidate = f"{base}{digit}"
        if candidate not in existing:
            return candidate
    logger.bind(name=name, base=base).warning("branch_code_exhausted")
    raise AllocationExhaustedError(base)


def validate(code: str, existing: Collection[str]) -> Optional[BranchCodeIssue]:
    """Return the first problem with ``code``, or ``None``. Empty is valid."""

    if not code:
        return None
    if code != code.upper():
        return BranchCodeIssue(ErrorKind.INVALID_BRANCH_CODE, "Must be uppercase")
    if len(code) > MAX_CODE_LENGTH:
        return BranchCodeIssue(ErrorKind.INVALID_BRANCH_CODE, f"Max {MAX_CODE_LENGTH} characters")
    if _WHITESPACE.search(code):
        return BranchCodeIssue(ErrorKind.INVALID_BRANCH_CODE, "No spaces allowed")
    if not _CODE_CHARS.match(code):
        return BranchCodeIssue(ErrorKind.INVALID_BRANCH_CODE, "Only uppercase letters and numbers")
    if code in existing:
        return BranchCodeIssue(ErrorKind.DUPLICATE_BRANCH_CODE, "Code already in use")
    return None


def ensure_valid(code: str, existing: Collection[str]) -> None:
    issue = validate(code, existing)
    if issue is not None:
        raise issue.to_error(code)


def plan_backfill(nodes: Sequence[Node]) -> list[tuple[str, str]]:
    """Suggested ``(node_id, code)`` pairs for nodes without a code.

    Each planned code counts as taken for the nodes after it. Nodes whose
    suggestion is exhausted or empty are left without a code.
    """

    taken = existing_codes(nodes)
    plan: list[tuple[str, str]] = []
    for node in nodes:
        if node.branch_code:
            continue
        try:
            code = suggest(node.name, taken)
        except AllocationExhaustedError:
            continue
        if code:
            taken.add(code)
            plan.append((node.id, code))
    return plan


def compose_stock_code(
    path: Sequence[Node],
    *,
    color_code: Optional[str] = None,
    product_number: Optional[int] = None,
) -> str:
    """``P.<branch codes root to leaf>[.<colour>].<product number>``."""

    segments = [STOCK_CODE_PREFIX]
    segments.extend(node.branch_code for node in path if node.branch_code)
    if color_code:
        segments.append(color_code)
    if product_number is None:
        segments.append(PRODUCT_NUMBER_PLACEHOLDER)
    else:
        segments.append(str(product_number).zfill(4))
    return ".".join(segments)
