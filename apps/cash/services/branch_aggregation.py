"""
Multi-branch cash overview.

Each selected branch is loaded independently; a branch that fails to load
is reported in the per-branch results and left out of the totals while the
others are still aggregated.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from django.utils import timezone

from apps.pricing.money import ZERO

from ..models import CashMovement, CashRegisterSession, SessionStatus
from .reconciliation import (
    balance_since_opening,
    expected_cash_balance,
    expenses_today,
    income_today,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionBalances:
    expected_cash: Decimal = ZERO
    income_today: Decimal = ZERO
    expenses_today: Decimal = ZERO
    balance_since_opening: Decimal = ZERO

    def __add__(self, other):
        return SessionBalances(
            expected_cash=self.expected_cash + other.expected_cash,
            income_today=self.income_today + other.income_today,
            expenses_today=self.expenses_today + other.expenses_today,
            balance_since_opening=self.balance_since_opening + other.balance_since_opening,
        )


@dataclass(frozen=True)
class BranchResult:
    branch_ref: str
    session: Optional[CashRegisterSession] = None
    balances: SessionBalances = field(default_factory=SessionBalances)
    error: Optional[str] = None

    @property
    def ok(self):
        return self.error is None

    @property
    def is_open(self):
        return self.session is not None


@dataclass(frozen=True)
class BranchReport:
    branches: List[BranchResult]
    totals: SessionBalances

    @property
    def errors(self):
        return {result.branch_ref: result.error for result in self.branches if not result.ok}

    @property
    def total_branches(self):
        return len(self.branches)

    @property
    def open_count(self):
        return sum(1 for result in self.branches if result.ok and result.is_open)

    @property
    def closed_count(self):
        return sum(1 for result in self.branches if result.ok and not result.is_open)

    @property
    def all_open(self):
        loaded = self.open_count + self.closed_count
        return loaded > 0 and self.open_count == loaded

    @property
    def all_closed(self):
        loaded = self.open_count + self.closed_count
        return loaded > 0 and self.closed_count == loaded

    @property
    def mixed_status(self):
        return self.open_count > 0 and self.closed_count > 0


def session_balances(session, today=None) -> SessionBalances:
    """Compute the balances of one open session from the database."""
    today = today or timezone.localdate()
    movements = list(session.movements.select_related('payment_method'))

    if timezone.localtime(session.opened_at).date() == today:
        day_movements = movements
    else:
        # Drawer open since an earlier day: report the whole branch's day
        day_movements = list(
            CashMovement.objects.filter(
                session__branch_ref=session.branch_ref,
                occurred_at__date=today,
            ).select_related('payment_method')
        )

    return SessionBalances(
        expected_cash=expected_cash_balance(session, movements),
        income_today=income_today(session, day_movements, today),
        expenses_today=expenses_today(session, day_movements, today),
        balance_since_opening=balance_since_opening(session, movements),
    )


def branch_balances(branch_ref, today=None) -> BranchResult:
    """Balances of a branch's open session; zero when it has none."""
    session = CashRegisterSession.objects.filter(
        branch_ref=branch_ref,
        status=SessionStatus.OPEN,
    ).first()
    if session is None:
        return BranchResult(branch_ref=branch_ref)
    return BranchResult(
        branch_ref=branch_ref,
        session=session,
        balances=session_balances(session, today),
    )


def aggregate_branches(branch_refs, today=None) -> BranchReport:
    """
    Sum expected cash, today's income/expenses and balance since opening
    across branches.

    Args:
        branch_refs (iterable[str]): Branches to include; duplicates ignored.
        today (date, optional): Day used for the "today" figures. Defaults to
            the current local date.

    Returns:
        BranchReport: Per-branch results (with errors) and pointwise totals.
    """
    results = []
    totals = SessionBalances()

    for branch_ref in dict.fromkeys(branch_refs):
        try:
            result = branch_balances(branch_ref, today)
        except Exception as exc:
            logger.exception('Failed to load cash balances for branch %s', branch_ref)
            results.append(BranchResult(branch_ref=branch_ref, error=str(exc) or exc.__class__.__name__))
            continue

        results.append(result)
        totals = totals + result.balances

    return BranchReport(branches=results, totals=totals)


def open_branch_refs():
    """Branches that currently have an open register."""
    return list(
        CashRegisterSession.objects.filter(status=SessionStatus.OPEN)
        .order_by('branch_ref')
        .values_list('branch_ref', flat=True)
    )
