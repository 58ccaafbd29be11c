import re
import shutil
import logging
import uuid
from math import ceil
from pathlib import Path
from typing import Any, Iterable, Optional

from app.models.invoice import InvoiceStatus
from app.services.errors import InvalidAmount, InvalidId

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 4
DOWN_PAYMENT_NOTES = "Down Payment"
DEFAULT_PAYMENT_NOTES = "Payment"


def format_currency(amount: float) -> str:
    try:
        formatted = (
            f"{amount:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
        )
        return f"Rp {formatted}"
    except Exception:
        return f"Rp {amount:.2f}".replace(".", ",")


def to_amount(value: Any) -> float:
    """
    Nilai nominal dari line item / payment. Kosong atau tidak valid dihitung 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def calculate_total_amount(line_items: Optional[Iterable[dict]]) -> float:
    return sum(
        to_amount(item.get("total"))
        for item in line_items or []
        if isinstance(item, dict)
    )


def calculate_total_paid(payments: Optional[Iterable[dict]]) -> float:
    return sum(
        to_amount(payment.get("amount"))
        for payment in payments or []
        if isinstance(payment, dict)
    )


def derive_status(total_paid: float, total_amount: float) -> str:
    if total_paid >= total_amount:
        return InvoiceStatus.PAID.value
    if total_paid > 0:
        return InvoiceStatus.DEPOSIT_PAID.value
    return InvoiceStatus.UNPAID.value


def down_payment_status(down_payment: float, total_amount: float) -> str:
    if down_payment <= 0:
        return InvoiceStatus.UNPAID.value
    if down_payment >= total_amount:
        return InvoiceStatus.PAID.value
    return InvoiceStatus.DEPOSIT_PAID.value


def validate_payment_amount(amount: Any) -> float:
    if amount is None or isinstance(amount, bool):
        raise InvalidAmount()
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidAmount() from None
    # also rejects NaN
    if not value > 0:
        raise InvalidAmount()
    return value


def invoice_number_scope(prefix: str, year: int, month: int) -> str:
    return f"{prefix}/{year}/{month:02d}/"


def next_sequence(last_invoice_number: Optional[str]) -> int:
    if not last_invoice_number:
        return 1
    last_segment = last_invoice_number.rsplit("/", 1)[-1]
    match = re.match(r"\s*(\d+)", last_segment)
    if not match:
        return 1
    return int(match.group(1)) + 1


def format_invoice_number(prefix: str, year: int, month: int, sequence: int) -> str:
    return f"{invoice_number_scope(prefix, year, month)}{sequence:0{SEQUENCE_WIDTH}d}"


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return ceil(total / limit)


def parse_invoice_id(value: Any) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        raise InvalidId() from None


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def ensure_stayvie_logo(public_dir: str) -> bool:
    """
    Salin Logo.png menjadi Logo_stayvie.png kalau logo hotel belum ada,
    supaya invoice hotel tetap punya logo placeholder.
    """
    public_path = Path(public_dir)
    taxplus_logo = public_path / "Logo.png"
    stayvie_logo = public_path / "Logo_stayvie.png"

    if taxplus_logo.is_file() and not stayvie_logo.exists():
        shutil.copyfile(taxplus_logo, stayvie_logo)
        logger.info("Created placeholder %s", stayvie_logo)
        return True
    return False
