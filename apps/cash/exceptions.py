"""
Domain-specific exceptions for cash app.

Exception Hierarchy:
    CashServiceError
    ├── NoOpenRegisterError
    ├── AlreadyClosedError
    ├── RegisterAlreadyOpenError
    ├── SessionNotFoundError
    └── ImmutableMovementError
"""


class CashServiceError(Exception):
    """Base exception for all cash service errors."""
    pass


class NoOpenRegisterError(CashServiceError):
    """Raised when a movement or close needs an open session and the branch has none."""

    def __init__(self, branch_ref):
        self.branch_ref = branch_ref
        super().__init__(f'No open cash register for branch {branch_ref!r}')


class AlreadyClosedError(CashServiceError):
    """Raised when closing a session that has already been closed."""

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f'Cash register session {session_id} is already closed')


class RegisterAlreadyOpenError(CashServiceError):
    """Raised when opening a register for a branch that already has one open."""

    def __init__(self, branch_ref):
        self.branch_ref = branch_ref
        super().__init__(f'Branch {branch_ref!r} already has an open cash register')


class SessionNotFoundError(CashServiceError):
    """Raised when a register session does not exist."""
    pass


class ImmutableMovementError(CashServiceError):
    """Raised when an existing cash movement is modified or deleted."""
    pass
