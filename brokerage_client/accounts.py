"""
Brokerage Client - Account Order Endpoints.

Thin consumers of `Client.get` / `post` / `delete` bound to one
account number. Each method is exactly one request; nothing here
retries or reconciles.
"""

import logging
from typing import Tuple, Union

from .client import Client
from .schema import items_decoder
from .types import (
    AccountNumber,
    DryRunResult,
    LiveOrderRecord,
    Order,
    OrderId,
    OrderPlacedResult,
)


logger = logging.getLogger(__name__)


class Account:
    """Order operations for a single account."""

    def __init__(self, client: Client, account_number: Union[AccountNumber, str]):
        if not isinstance(account_number, AccountNumber):
            account_number = AccountNumber(str(account_number))
        self._client = client
        self.account_number = account_number

    def _path(self, suffix: str = "") -> str:
        return f"/accounts/{self.account_number.value}/orders{suffix}"

    async def place_order(self, order: Order) -> OrderPlacedResult:
        """
        Submit an order for execution.

        Not idempotent: do not blindly resubmit after a timeout.
        """
        result = await self._client.post(self._path(), order, OrderPlacedResult)
        logger.info(
            "Order %s placed on %s: %s",
            result.order.id,
            self.account_number,
            result.order.status.encode(),
        )
        for warning in result.warnings:
            logger.warning("Broker warning %s: %s", warning.code, warning.message)
        return result

    async def dry_run(self, order: Order) -> DryRunResult:
        """Preview buying power and fee impact without executing."""
        return await self._client.post(self._path("/dry-run"), order, DryRunResult)

    async def live_orders(self) -> Tuple[LiveOrderRecord, ...]:
        return await self._client.get(self._path("/live"), items_decoder(LiveOrderRecord))

    async def get_order(self, order_id: Union[OrderId, str, int]) -> LiveOrderRecord:
        return await self._client.get(self._path(f"/{order_id}"), LiveOrderRecord)

    async def cancel_order(self, order_id: Union[OrderId, str, int]) -> LiveOrderRecord:
        """Request cancellation; the returned status is whatever the broker reports."""
        return await self._client.delete(self._path(f"/{order_id}"), LiveOrderRecord)
