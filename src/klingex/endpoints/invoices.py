"""Payment invoice endpoints."""

from __future__ import annotations

from typing import Any

from klingex.errors import KlingExError
from klingex.http import HttpClient
from klingex.models import (
    Invoice,
    InvoiceFees,
    InvoicePage,
    InvoicePaymentPage,
    InvoiceStatusInfo,
)


class InvoicesEndpoint:
    """Create and track crypto payment invoices."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def create(
        self,
        amount: str,
        asset: str,
        description: str | None = None,
        external_id: str | None = None,
        webhook_url: str | None = None,
        redirect_url: str | None = None,
        expires_in: int | None = None,
    ) -> Invoice:
        """Create a new payment invoice.

        Args:
            amount: Amount in ``asset``
            asset: Asset symbol, e.g. "USDT"
            description: Free-form description
            external_id: Your own reference ID
            webhook_url: URL notified on payment
            redirect_url: URL the payer lands on afterwards
            expires_in: Minutes until expiry (server default 60)
        """
        body: dict[str, Any] = {
            "amount": amount,
            "asset": asset,
            "description": description,
            "external_id": external_id,
            "webhook_url": webhook_url,
            "redirect_url": redirect_url,
            "expires_in": expires_in,
        }
        response = await self._http.post(
            "/api/invoices", {k: v for k, v in body.items() if v is not None}
        )
        if not response.get("data"):
            raise KlingExError("Failed to create invoice")
        return Invoice.model_validate(response["data"])

    async def list(self, limit: int = 50, offset: int = 0, status: str | None = None) -> InvoicePage:
        response = await self._http.get(
            "/api/invoices", {"limit": limit, "offset": offset, "status": status}
        )
        return InvoicePage.model_validate(response)

    async def get(self, invoice_id: str) -> Invoice:
        response = await self._http.get(f"/api/invoices/{invoice_id}")
        if not response.get("data"):
            raise KlingExError("Invoice not found", code="NOT_FOUND")
        return Invoice.model_validate(response["data"])

    async def status(self, invoice_id: str) -> InvoiceStatusInfo:
        """Get invoice payment status (cheap enough for polling)."""
        response = await self._http.get(f"/api/invoices/{invoice_id}/status")
        return InvoiceStatusInfo.model_validate(response)

    async def cancel(self, invoice_id: str) -> dict:
        """Cancel a pending invoice."""
        return await self._http.post(f"/api/invoices/{invoice_id}/cancel")

    async def pdf(self, invoice_id: str) -> bytes:
        """Download the invoice as PDF."""
        content = await self._http.get(f"/api/invoices/{invoice_id}/pdf")
        if isinstance(content, str):
            return content.encode()
        return content

    async def fees(self, asset: str, amount: str) -> InvoiceFees:
        """Estimate fees for an invoice; zero fees when the server has no estimate."""
        response = await self._http.get("/api/invoices/fees", {"asset": asset, "amount": amount})
        if not response.get("data"):
            return InvoiceFees()
        return InvoiceFees.model_validate(response["data"])

    async def payment_page(self, invoice_id: str) -> InvoicePaymentPage:
        """Get public payment page data (no auth required)."""
        response = await self._http.get(f"/api/invoices/{invoice_id}/pay")
        return InvoicePaymentPage.model_validate(response)
