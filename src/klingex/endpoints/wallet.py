"""Wallet endpoints: balances, deposits and withdrawals (authenticated)."""

from __future__ import annotations

from typing import Any

from klingex.errors import KlingExError
from klingex.http import HttpClient
from klingex.logging import get_logger
from klingex.models import (
    Balance,
    DepositAddress,
    DepositHistory,
    Transaction,
    WithdrawalHistory,
    WithdrawResponse,
)

logger = get_logger(__name__)


class WalletEndpoint:
    """Balances, deposit addresses, withdrawals and transfer history."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def balances(self) -> list[Balance]:
        """Get all wallet balances with available and human-readable amounts."""
        response = await self._http.get("/api/user-balances")
        balances = []
        for item in response.get("data") or []:
            balance = Balance.model_validate(item)
            try:
                balance = balance.with_human_values()
            except ValueError as e:
                logger.warning(f"Could not compute human amounts for {balance.symbol}: {e}")
            balances.append(balance)
        return balances

    async def balance(self, symbol: str) -> Balance | None:
        """Get the balance for one asset symbol (case-insensitive)."""
        wanted = symbol.upper()
        for balance in await self.balances():
            if balance.symbol.upper() == wanted:
                return balance
        return None

    async def deposit_address(self, asset_id: int) -> DepositAddress:
        """Get the deposit address for an asset."""
        response = await self._http.post("/api/deposit-address", {"asset_id": asset_id})
        if not response.get("data"):
            raise KlingExError("Failed to get deposit address")
        return DepositAddress.model_validate(response["data"])

    async def generate_deposit_address(self, asset_id: int) -> DepositAddress:
        """Generate a new deposit address where the asset supports it."""
        response = await self._http.post("/api/generate-deposit-address", {"assetId": asset_id})
        if not response.get("data"):
            raise KlingExError("Failed to generate deposit address")
        return DepositAddress.model_validate(response["data"])

    async def withdraw(
        self,
        asset_id: int,
        symbol: str,
        address: str,
        amount: str,
        memo: str | None = None,
    ) -> WithdrawResponse:
        """Submit a withdrawal request.

        When the response has ``requires_2fa`` set, finish the withdrawal with
        ``confirm_2fa(response.session_token, code)``.
        """
        body: dict[str, Any] = {
            "assetId": asset_id,
            "symbol": symbol,
            "address": address,
            "amount": amount,
        }
        if memo is not None:
            body["destinationTag"] = memo

        response = await self._http.post("/api/submit-withdraw", body)
        return WithdrawResponse.model_validate(response)

    async def confirm_2fa(self, session_token: str, code: str) -> dict:
        """Complete withdrawal 2FA verification."""
        return await self._http.post(
            "/api/withdrawal/complete-2fa",
            {"sessionToken": session_token, "code": code},
        )

    async def deposits(self, limit: int = 50, offset: int = 0) -> DepositHistory:
        response = await self._http.get("/api/deposits", {"limit": limit, "offset": offset})
        return DepositHistory.model_validate(response)

    async def withdrawals(self, limit: int = 50, offset: int = 0) -> WithdrawalHistory:
        response = await self._http.get("/api/withdrawals", {"limit": limit, "offset": offset})
        return WithdrawalHistory.model_validate(response)

    async def history(self) -> list[Transaction]:
        """Get deposits, withdrawals and trades in one list."""
        response = await self._http.get("/api/history")
        return [Transaction.model_validate(item) for item in response.get("data") or []]
