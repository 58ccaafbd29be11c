from enum import Enum
from typing import Optional

from app.services.errors import InvalidStatus, InvalidType


class InvoiceType(str, Enum):
    """Collection selector: which invoice table an operation targets."""

    HOTEL = "hotel"
    TAXPLUS = "taxplus"

    @property
    def table_name(self) -> str:
        return f"{self.value}_invoices"

    @property
    def prefix(self) -> str:
        return INVOICE_PREFIXES[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "InvoiceType":
        # Routes without a type segment target the TaxPlus table
        if value is None or not value.strip() or value.strip().lower() == "default":
            return cls.TAXPLUS
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidType(f"Invalid invoice type: {value}") from None


INVOICE_PREFIXES = {
    InvoiceType.HOTEL: "INV/SV",
    InvoiceType.TAXPLUS: "INV/TP",
}


class InvoiceStatus(str, Enum):
    UNPAID = "unpaid"
    DEPOSIT_PAID = "deposit-paid"
    PAID = "paid"

    @classmethod
    def parse(cls, value: Optional[str]) -> "InvoiceStatus":
        if not isinstance(value, str):
            raise InvalidStatus()
        normalized = value.strip().lower()
        if normalized in STATUS_ALIASES:
            return STATUS_ALIASES[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidStatus() from None


# Istilah lama yang masih dikirim oleh frontend
STATUS_ALIASES = {
    "belum lunas": InvoiceStatus.UNPAID,
    "dp lunas": InvoiceStatus.DEPOSIT_PAID,
    "lunas": InvoiceStatus.PAID,
}
