"""Domain error taxonomy.

Each error carries the HTTP status and the stable machine-readable code it is
reported with; translation to responses happens once in ``api.errors``.
"""

class InventoryError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class InvalidArgument(InventoryError):
    status_code = 400
    code = "invalid_argument"

class NotFound(InventoryError):
    status_code = 404
    code = "not_found"

class AlreadyExists(InventoryError):
    status_code = 400
    code = "already_exists"

class ConcurrentUpdate(InventoryError):
    status_code = 409
    code = "concurrent_update"

class StoreUnavailable(InventoryError):
    status_code = 503
    code = "store_unavailable"

class LedgerWriteFailed(InventoryError):
    """Raised by the ledger; callers treat it as a warning, never a request failure."""
    code = "ledger_write_failed"
