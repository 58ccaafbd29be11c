class InvoiceServiceError(Exception):
    """Base error for invoice operations, carries the HTTP status it maps to."""

    http_status = 500
    message = "Invoice service error"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidType(InvoiceServiceError):
    http_status = 400
    message = "Invalid invoice type"


class InvalidId(InvoiceServiceError):
    http_status = 400
    message = "Invalid ID"


class InvalidAmount(InvoiceServiceError):
    http_status = 400
    message = "Invalid payment amount"


class InvalidStatus(InvoiceServiceError):
    http_status = 400
    message = "Invalid status value"


class NotFound(InvoiceServiceError):
    http_status = 404
    message = "Invoice not found"


class DuplicateInvoiceNumber(InvoiceServiceError):
    """Raised when the unique constraint on invoice_number rejects an insert.

    Two concurrent creates in the same prefix/month can read the same last
    number and allocate the same sequence. The caller may retry the request.
    """

    http_status = 409
    message = "Invoice number already allocated, please retry"


class StorageFailure(InvoiceServiceError):
    http_status = 500
    message = "Database operation failed"

    def __init__(self, message: str = None, error: str = None):
        super().__init__(message)
        self.error = error
