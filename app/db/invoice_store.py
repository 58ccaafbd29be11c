import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

import psycopg2
import psycopg2.errors
from psycopg2.extras import Json

from app.db.queries import invoice_queries
from app.services.errors import DuplicateInvoiceNumber, StorageFailure
from app.utils.helpers import escape_like

logger = logging.getLogger(__name__)


def _row_to_invoice(row) -> dict:
    return {
        "id": str(row[0]),
        "invoiceNumber": row[1],
        "clientName": row[2],
        "clientPhone": row[3],
        "invoiceDate": row[4],
        "lineItems": row[5] or [],
        "payments": row[6] or [],
        "status": row[7],
        "type": row[8],
        "createdAt": row[9],
    }


def _rollback(conn) -> None:
    # a closed connection has nothing to roll back and would raise InterfaceError
    if conn.closed:
        return
    try:
        conn.rollback()
    except psycopg2.Error as e:
        logger.warning("Rollback failed: %s", e)


def _search_params(search: Optional[str]) -> tuple:
    if not search:
        return (None, None)
    return (search, f"%{escape_like(search)}%")


class InvoiceStore:
    """Reads and writes invoice documents in one PostgreSQL table.

    Every method borrows a connection from the pool, commits on success and
    rolls back on any error. Driver errors are re-raised as StorageFailure
    (or DuplicateInvoiceNumber for the invoice_number unique constraint).
    """

    def __init__(self, table_name: str, db_pool):
        self.table_name = table_name
        self._db_pool = db_pool

    def _query(self, template: str) -> str:
        return template.format(
            table=self.table_name, columns=invoice_queries.INVOICE_COLUMNS
        )

    @contextmanager
    def _cursor(self, action: str):
        try:
            conn = self._db_pool.getconn()
        except psycopg2.Error as e:
            logger.error("Could not get a database connection to %s: %s", action, e)
            raise StorageFailure(f"Failed to {action}", error=str(e)) from e

        cursor = None
        try:
            cursor = conn.cursor()
            yield cursor
            conn.commit()
        except psycopg2.errors.UniqueViolation as e:
            _rollback(conn)
            logger.warning("Duplicate invoice number in %s: %s", self.table_name, e)
            raise DuplicateInvoiceNumber() from e
        except psycopg2.Error as e:
            _rollback(conn)
            logger.error("Failed to %s in %s: %s", action, self.table_name, e)
            raise StorageFailure(f"Failed to {action}", error=str(e)) from e
        except Exception:
            _rollback(conn)
            raise
        finally:
            if cursor is not None and not cursor.closed:
                cursor.close()
            self._db_pool.putconn(conn, close=bool(conn.closed))

    def ensure_table(self) -> None:
        with self._cursor("create invoice table") as cursor:
            cursor.execute(self._query(invoice_queries.CREATE_INVOICE_TABLE))
        logger.info("Table %s is ready", self.table_name)

    def count(self, search: Optional[str] = None) -> int:
        with self._cursor("count invoices") as cursor:
            cursor.execute(
                self._query(invoice_queries.COUNT_INVOICES), _search_params(search)
            )
            return cursor.fetchone()[0]

    def find_page(
        self, search: Optional[str] = None, offset: int = 0, limit: int = 10
    ) -> List[dict]:
        with self._cursor("get invoices") as cursor:
            cursor.execute(
                self._query(invoice_queries.GET_PAGINATED_INVOICES),
                (*_search_params(search), limit, offset),
            )
            return [_row_to_invoice(row) for row in cursor.fetchall()]

    def find_by_id(self, invoice_id: str) -> Optional[dict]:
        with self._cursor("get invoice details") as cursor:
            cursor.execute(self._query(invoice_queries.GET_INVOICE_BY_ID), (invoice_id,))
            row = cursor.fetchone()
        return _row_to_invoice(row) if row else None

    def find_last_invoice_number(self, scope: str) -> Optional[str]:
        with self._cursor("allocate invoice number") as cursor:
            cursor.execute(
                self._query(invoice_queries.GET_LAST_INVOICE_NUMBER),
                (f"{escape_like(scope)}%",),
            )
            row = cursor.fetchone()
        return row[0] if row else None

    def insert(self, invoice: dict) -> str:
        with self._cursor("create invoice") as cursor:
            cursor.execute(
                self._query(invoice_queries.INSERT_INVOICE),
                (
                    invoice["id"],
                    invoice["invoiceNumber"],
                    invoice["clientName"],
                    invoice["clientPhone"],
                    invoice["invoiceDate"],
                    Json(invoice["lineItems"]),
                    Json(invoice["payments"]),
                    invoice["status"],
                    invoice["type"],
                    invoice["createdAt"],
                ),
            )
        return invoice["id"]

    def append_payment(
        self,
        invoice_id: str,
        payment: dict,
        compute_status: Callable[[list, list], str],
    ) -> Optional[dict]:
        """Append a payment and store the recomputed status in one transaction.

        Returns the updated invoice, or None when no row has that id.
        """
        with self._cursor("add payment") as cursor:
            cursor.execute(
                self._query(invoice_queries.GET_INVOICE_PAYMENT_STATE_FOR_UPDATE),
                (invoice_id,),
            )
            row = cursor.fetchone()
            if not row:
                return None

            line_items = row[0] or []
            payments = list(row[1] or []) + [payment]
            new_status = compute_status(line_items, payments)

            cursor.execute(
                self._query(invoice_queries.UPDATE_INVOICE_PAYMENTS_AND_STATUS),
                (Json(payments), new_status, invoice_id),
            )
            return _row_to_invoice(cursor.fetchone())

    def update_status(self, invoice_id: str, status: str) -> bool:
        with self._cursor("update invoice status") as cursor:
            cursor.execute(
                self._query(invoice_queries.UPDATE_INVOICE_STATUS), (status, invoice_id)
            )
            return cursor.rowcount > 0

    def delete(self, invoice_id: str) -> bool:
        with self._cursor("delete invoice") as cursor:
            cursor.execute(self._query(invoice_queries.DELETE_INVOICE_BY_ID), (invoice_id,))
            return cursor.rowcount > 0
