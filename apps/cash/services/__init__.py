"""
Cash app services layer.

Reconciliation functions are pure; session management runs every
state-changing operation in one transaction with the session row locked.
"""

from ..exceptions import (
    CashServiceError,
    NoOpenRegisterError,
    AlreadyClosedError,
    RegisterAlreadyOpenError,
    SessionNotFoundError,
    ImmutableMovementError,
)

from .reconciliation import (
    ReconciliationResult,
    expected_cash_balance,
    income_today,
    expenses_today,
    balance_since_opening,
    payment_method_totals,
    classify_difference,
    reconcile,
)

from .session_management import (
    open_session,
    get_open_session,
    lock_open_session,
    record_movement,
    close_session,
    close_branch_session,
    last_closing_balance,
)

from .branch_aggregation import (
    SessionBalances,
    BranchResult,
    BranchReport,
    session_balances,
    branch_balances,
    aggregate_branches,
    open_branch_refs,
)


__all__ = [
    # Exceptions
    'CashServiceError',
    'NoOpenRegisterError',
    'AlreadyClosedError',
    'RegisterAlreadyOpenError',
    'SessionNotFoundError',
    'ImmutableMovementError',

    # Reconciliation
    'ReconciliationResult',
    'expected_cash_balance',
    'income_today',
    'expenses_today',
    'balance_since_opening',
    'payment_method_totals',
    'classify_difference',
    'reconcile',

    # Session Management
    'open_session',
    'get_open_session',
    'lock_open_session',
    'record_movement',
    'close_session',
    'close_branch_session',
    'last_closing_balance',

    # Branch Aggregation
    'SessionBalances',
    'BranchResult',
    'BranchReport',
    'session_balances',
    'branch_balances',
    'aggregate_branches',
    'open_branch_refs',
]
