import logging
import uuid
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Union

from fastapi import Request

from app.db.invoice_store import InvoiceStore
from app.models.invoice import InvoiceStatus, InvoiceType
from app.services.errors import InvalidAmount, InvalidType, NotFound
from app.utils.helpers import (
    DEFAULT_PAYMENT_NOTES,
    DOWN_PAYMENT_NOTES,
    calculate_total_amount,
    calculate_total_paid,
    derive_status,
    down_payment_status,
    format_currency,
    format_invoice_number,
    invoice_number_scope,
    next_sequence,
    parse_invoice_id,
    to_amount,
    total_pages,
    validate_payment_amount,
)

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def payment_timestamp(value: Union[date, datetime], tzinfo) -> str:
    """ISO timestamp with UTC offset for a payment record.

    A plain date means midnight of that day. Naive values take `tzinfo`.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=tzinfo)
    return value.isoformat()


def status_after_payment(line_items: list, payments: list) -> str:
    return derive_status(
        calculate_total_paid(payments), calculate_total_amount(line_items)
    )


class InvoiceService:
    """Invoice operations over one store per collection selector.

    Invoice numbers are allocated read-then-write: the last number in the
    prefix/year/month scope is read and incremented. Two concurrent creates in
    the same scope can compute the same number; the unique constraint on
    invoice_number rejects the second insert with DuplicateInvoiceNumber and
    nothing is retried here.
    """

    def __init__(
        self,
        stores: Dict[InvoiceType, InvoiceStore],
        clock: Callable[[], datetime] = _local_now,
    ):
        self._stores = dict(stores)
        self._clock = clock

    def _resolve(self, invoice_type: Union[InvoiceType, str, None]):
        if not isinstance(invoice_type, InvoiceType):
            invoice_type = InvoiceType.parse(invoice_type)
        store = self._stores.get(invoice_type)
        if store is None:
            raise InvalidType(f"Invalid invoice type: {invoice_type.value}")
        return invoice_type, store

    def ensure_schema(self) -> None:
        for store in self._stores.values():
            store.ensure_table()

    def list_invoices(
        self,
        invoice_type: Union[InvoiceType, str, None],
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        _, store = self._resolve(invoice_type)
        page = max(page, 1)
        search = search or None

        total = store.count(search)
        data = []
        if limit > 0:
            data = store.find_page(search, offset=(page - 1) * limit, limit=limit)

        return {
            "data": data,
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages(total, limit),
        }

    def get_invoice(self, invoice_type: Union[InvoiceType, str, None], invoice_id) -> dict:
        _, store = self._resolve(invoice_type)
        invoice = store.find_by_id(parse_invoice_id(invoice_id))
        if invoice is None:
            raise NotFound()
        return invoice

    def create_invoice(
        self,
        invoice_type: Union[InvoiceType, str, None],
        client_name: str,
        client_phone: Optional[str],
        invoice_date: Union[date, datetime],
        line_items: List[dict],
        down_payment: Optional[float] = 0,
    ) -> dict:
        invoice_type, store = self._resolve(invoice_type)
        down_payment = to_amount(down_payment)
        if down_payment < 0:
            raise InvalidAmount("Down payment cannot be negative")
        line_items = list(line_items or [])

        # Year/month come from the wall clock, not from invoice_date
        now = self._clock()
        prefix = invoice_type.prefix
        last_number = store.find_last_invoice_number(
            invoice_number_scope(prefix, now.year, now.month)
        )
        invoice_number = format_invoice_number(
            prefix, now.year, now.month, next_sequence(last_number)
        )

        total_amount = calculate_total_amount(line_items)
        payments = []
        if down_payment > 0:
            payments.append(
                {
                    "amount": down_payment,
                    "date": payment_timestamp(invoice_date, now.tzinfo),
                    "notes": DOWN_PAYMENT_NOTES,
                }
            )

        invoice = {
            "id": str(uuid.uuid4()),
            "invoiceNumber": invoice_number,
            "clientName": client_name,
            "clientPhone": client_phone,
            "invoiceDate": invoice_date,
            "lineItems": line_items,
            "payments": payments,
            "status": down_payment_status(down_payment, total_amount),
            "type": invoice_type.value,
            "createdAt": now,
        }
        store.insert(invoice)

        logger.info(
            "Created invoice %s for %s, total %s, status %s",
            invoice_number,
            client_name,
            format_currency(total_amount),
            invoice["status"],
        )
        return invoice

    def add_payment(
        self,
        invoice_type: Union[InvoiceType, str, None],
        invoice_id,
        amount,
        payment_date: Optional[Union[date, datetime]] = None,
        notes: Optional[str] = None,
    ) -> dict:
        _, store = self._resolve(invoice_type)
        invoice_id = parse_invoice_id(invoice_id)
        amount = validate_payment_amount(amount)

        now = self._clock()
        payment = {
            "amount": amount,
            "date": payment_timestamp(payment_date or now, now.tzinfo),
            "notes": notes or DEFAULT_PAYMENT_NOTES,
        }
        invoice = store.append_payment(invoice_id, payment, status_after_payment)
        if invoice is None:
            raise NotFound()

        total_amount = calculate_total_amount(invoice["lineItems"])
        total_paid = calculate_total_paid(invoice["payments"])
        logger.info(
            "Payment of %s added to invoice %s, paid %s of %s, status %s",
            format_currency(amount),
            invoice["invoiceNumber"],
            format_currency(total_paid),
            format_currency(total_amount),
            invoice["status"],
        )
        return {
            "status": invoice["status"],
            "totalAmount": total_amount,
            "totalPaid": total_paid,
        }

    def set_status(
        self, invoice_type: Union[InvoiceType, str, None], invoice_id, status
    ) -> str:
        _, store = self._resolve(invoice_type)
        invoice_id = parse_invoice_id(invoice_id)
        new_status = InvoiceStatus.parse(status).value

        if not store.update_status(invoice_id, new_status):
            raise NotFound()
        logger.info("Status of invoice %s set to %s", invoice_id, new_status)
        return new_status

    def delete_invoice(self, invoice_type: Union[InvoiceType, str, None], invoice_id) -> None:
        _, store = self._resolve(invoice_type)
        invoice_id = parse_invoice_id(invoice_id)

        if not store.delete(invoice_id):
            raise NotFound()
        logger.info("Deleted invoice %s from %s", invoice_id, store.table_name)


def build_invoice_service(db_pool) -> InvoiceService:
    return InvoiceService(
        {
            invoice_type: InvoiceStore(invoice_type.table_name, db_pool)
            for invoice_type in InvoiceType
        }
    )


def get_invoice_service(request: Request) -> InvoiceService:
    return request.app.state.invoice_service
