"""
Cash App - Register Sessions and Cash Ledger Reconciliation

Tracks register sessions per branch and the cash movements recorded while
they are open, and reconciles the expected drawer balance against the
operator's count at close.

Key Features:
- One open register session per branch (database constraint)
- Immutable, direction-signed cash movements
- Expected cash, today's income/expenses and balance since opening
- Balanced/surplus/shortage classification snapshotted at close
- Multi-branch aggregation tolerant of per-branch failures

Architecture:
- Models: CashRegisterSession, CashMovement
- Services: reconciliation (pure), session_management (transactional),
  branch_aggregation
- Management command: reconcile_registers
"""

__version__ = '1.0.0'
