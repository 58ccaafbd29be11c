import copy
import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URI", "postgresql://localhost/invoices_test")
os.environ.setdefault("PUBLIC_DIR", "./tests/_missing_public")

from app.main import app  # noqa: E402
from app.models.invoice import InvoiceType  # noqa: E402
from app.services.errors import DuplicateInvoiceNumber  # noqa: E402
from app.services.invoice_service import InvoiceService, get_invoice_service  # noqa: E402


class FakeInvoiceStore:
    """In-memory stand-in for InvoiceStore with the same method surface."""

    def __init__(self, table_name):
        self.table_name = table_name
        self.rows = {}
        self.ensured = False

    def ensure_table(self):
        self.ensured = True

    def _matching(self, search):
        rows = list(self.rows.values())
        if search:
            needle = search.lower()
            rows = [r for r in rows if needle in (r["clientName"] or "").lower()]
        return rows

    def count(self, search=None):
        return len(self._matching(search))

    def find_page(self, search=None, offset=0, limit=10):
        rows = sorted(
            self._matching(search),
            key=lambda r: (r["invoiceDate"], r["createdAt"]),
            reverse=True,
        )
        return [copy.deepcopy(r) for r in rows[offset:offset + limit]]

    def find_by_id(self, invoice_id):
        row = self.rows.get(invoice_id)
        return copy.deepcopy(row) if row else None

    def find_last_invoice_number(self, scope):
        numbers = [
            r["invoiceNumber"]
            for r in self.rows.values()
            if r["invoiceNumber"].startswith(scope)
        ]
        return max(numbers, key=lambda n: (len(n), n), default=None)

    def insert(self, invoice):
        if any(r["invoiceNumber"] == invoice["invoiceNumber"] for r in self.rows.values()):
            raise DuplicateInvoiceNumber()
        self.rows[invoice["id"]] = copy.deepcopy(invoice)
        return invoice["id"]

    def append_payment(self, invoice_id, payment, compute_status):
        row = self.rows.get(invoice_id)
        if row is None:
            return None
        row["payments"] = row["payments"] + [payment]
        row["status"] = compute_status(row["lineItems"], row["payments"])
        return copy.deepcopy(row)

    def update_status(self, invoice_id, status):
        if invoice_id not in self.rows:
            return False
        self.rows[invoice_id]["status"] = status
        return True

    def delete(self, invoice_id):
        return self.rows.pop(invoice_id, None) is not None


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def stores():
    return {t: FakeInvoiceStore(t.table_name) for t in InvoiceType}


@pytest.fixture
def service(stores, clock):
    return InvoiceService(stores, clock=clock)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_invoice_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
