from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from app.services.invoice_service import InvoiceService, get_invoice_service

router = APIRouter()

ServiceDep = Annotated[InvoiceService, Depends(get_invoice_service)]


class CreateInvoicePayload(BaseModel):
    clientName: str
    clientPhone: Optional[str] = None
    invoiceDate: date
    lineItems: List[Dict[str, Any]] = []
    downPayment: Optional[float] = 0


class AddPaymentPayload(BaseModel):
    # amount is validated by the service so a missing or non-positive value is a 400
    amount: Optional[float] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None


class UpdateStatusPayload(BaseModel):
    status: Optional[str] = None


@router.get("")
def get_default_invoices(
    service: ServiceDep,
    search: str = Query(""),
    page: int = Query(1),
    limit: int = Query(10),
):
    return service.list_invoices(None, search=search, page=page, limit=limit)


@router.get("/{invoice_type}")
def get_invoices(
    invoice_type: str,
    service: ServiceDep,
    search: str = Query(""),
    page: int = Query(1),
    limit: int = Query(10),
):
    return service.list_invoices(invoice_type, search=search, page=page, limit=limit)


@router.get("/{invoice_type}/{invoice_id}")
def get_invoice(invoice_type: str, invoice_id: str, service: ServiceDep):
    return service.get_invoice(invoice_type, invoice_id)


def _create(invoice_type: Optional[str], payload: CreateInvoicePayload, service: InvoiceService):
    invoice = service.create_invoice(
        invoice_type,
        client_name=payload.clientName,
        client_phone=payload.clientPhone,
        invoice_date=payload.invoiceDate,
        line_items=payload.lineItems,
        down_payment=payload.downPayment,
    )
    return {
        "message": "Invoice created successfully",
        "data": invoice["id"],
        "invoiceNumber": invoice["invoiceNumber"],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_default_invoice(payload: CreateInvoicePayload, service: ServiceDep):
    return _create(None, payload, service)


@router.post("/{invoice_type}", status_code=status.HTTP_201_CREATED)
def create_invoice(invoice_type: str, payload: CreateInvoicePayload, service: ServiceDep):
    return _create(invoice_type, payload, service)


@router.post("/{invoice_type}/{invoice_id}/payment")
def add_payment(
    invoice_type: str,
    invoice_id: str,
    payload: AddPaymentPayload,
    service: ServiceDep,
):
    result = service.add_payment(
        invoice_type,
        invoice_id,
        payload.amount,
        payment_date=payload.date,
        notes=payload.notes,
    )
    return {"message": "Payment added successfully", **result}


@router.patch("/{invoice_type}/{invoice_id}/status")
def update_invoice_status(
    invoice_type: str,
    invoice_id: str,
    payload: UpdateStatusPayload,
    service: ServiceDep,
):
    new_status = service.set_status(invoice_type, invoice_id, payload.status)
    return {"message": "Invoice status updated successfully", "status": new_status}


@router.delete("/{invoice_id}")
def delete_default_invoice(invoice_id: str, service: ServiceDep):
    service.delete_invoice(None, invoice_id)
    return {"message": "Invoice deleted successfully"}


@router.delete("/{invoice_type}/{invoice_id}")
def delete_invoice(invoice_type: str, invoice_id: str, service: ServiceDep):
    service.delete_invoice(invoice_type, invoice_id)
    return {"message": "Invoice deleted successfully"}
