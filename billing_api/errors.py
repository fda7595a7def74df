# billing_api/errors.py
"""Typed failures raised by the ledger, listing and reporting code.

Every error carries a machine-readable ``code`` and the HTTP status the API
answers with. Handlers in ``billing_api.main`` render them as
``{"error": message, "code": code}``.
"""


class BillingError(Exception):
    code = "billing_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BillingError):
    code = "not_found"
    status_code = 404


class Unauthorized(BillingError):
    code = "unauthorized"
    status_code = 401


class Forbidden(BillingError):
    code = "forbidden"
    status_code = 403


class AlreadyPaid(BillingError):
    code = "already_paid"
    status_code = 409


class InsufficientFunds(BillingError):
    code = "insufficient_funds"
    status_code = 422


class DepositLimitExceeded(BillingError):
    code = "deposit_limit_exceeded"
    status_code = 422


class InvalidInput(BillingError):
    code = "invalid_input"
    status_code = 422


class StorageFailure(BillingError):
    code = "storage_failure"
    status_code = 500
