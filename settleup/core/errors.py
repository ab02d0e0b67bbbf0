class LedgerError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class InvalidInput(LedgerError):
    status_code = 400


class NotFound(LedgerError):
    status_code = 404


class Forbidden(LedgerError):
    status_code = 403


class InvalidState(LedgerError):
    status_code = 400


class Conflict(LedgerError):
    status_code = 409


class LedgerInvariantError(LedgerError):
    """Stored ledger data is inconsistent. Never the caller's fault."""

    status_code = 500
