"""
Typed Exception Hierarchy for the Invoice Kernel.

Every error has a typed exception class, a machine-readable ``code``
class attribute, and carries its context as attributes rather than only
inside the message string.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InvoiceKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidFieldError
    |   +-- MissingReceiverIdentityError
    |   +-- InvalidReceiverIdentityError
    |   +-- EmptyInvoiceError
    |
    +-- ConfigurationError
        +-- TaxCodeTableError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_FIELD               | Strict mode: non-numeric numeric field
                | MISSING_RECEIVER_IDENTITY   | Receiver or its VKN/TCKN is absent
                | INVALID_RECEIVER_IDENTITY   | VKN/TCKN is not 10 or 11 digits
                | EMPTY_INVOICE               | Invoice has no line items
----------------|-----------------------------|-----------------------------------------
Configuration   | TAX_CODE_TABLE_ERROR        | Classification table missing keys/codes

===============================================================================
HANDLING PATTERNS
===============================================================================

    errors = validate_invoice(invoice)
    if errors:
        return {"error": errors[0].code, "message": str(errors[0])}

    try:
        item = line_item_from_mapping(form_row, strict=True)
    except InvalidFieldError as e:
        return {"error": e.code, "fields": e.field_errors}

The calculation engines never raise for arithmetic: permissive input
coercion resolves malformed numbers to safe defaults before any
calculation starts.
"""


class InvoiceKernelError(Exception):
    """
    Base exception for all invoice kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "INVOICE_KERNEL_ERROR"


# Validation exceptions


class ValidationError(InvoiceKernelError):
    """Base exception for invoice input validation failures."""

    code: str = "VALIDATION_ERROR"


class InvalidFieldError(ValidationError):
    """
    One or more numeric fields could not be parsed.

    Raised only by the strict parsing path; the permissive path defaults
    the same fields instead.
    """

    code: str = "INVALID_FIELD"

    def __init__(self, field_errors: list[dict]):
        self.field_errors = field_errors
        names = ", ".join(e["field"] for e in field_errors)
        super().__init__(
            f"Invalid numeric value for {len(field_errors)} field(s): {names}"
        )


class MissingReceiverIdentityError(ValidationError):
    """Invoice has no receiver tax identity (VKN/TCKN)."""

    code: str = "MISSING_RECEIVER_IDENTITY"

    def __init__(self):
        super().__init__("Receiver VKN/TCKN is required")


class InvalidReceiverIdentityError(ValidationError):
    """Receiver tax identity is neither a 10-digit VKN nor an 11-digit TCKN."""

    code: str = "INVALID_RECEIVER_IDENTITY"

    def __init__(self, tax_id: str):
        self.tax_id = tax_id
        super().__init__(
            f"Receiver tax id must be a 10-digit VKN or 11-digit TCKN: {tax_id!r}"
        )


class EmptyInvoiceError(ValidationError):
    """Invoice has no line items."""

    code: str = "EMPTY_INVOICE"

    def __init__(self):
        super().__init__("Invoice must contain at least one line item")


# Configuration exceptions


class ConfigurationError(InvoiceKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class TaxCodeTableError(ConfigurationError):
    """Tax code classification table is malformed."""

    code: str = "TAX_CODE_TABLE_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid tax code table {source}: {reason}")
