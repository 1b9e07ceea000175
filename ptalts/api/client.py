"""
Request/response client for the PTAlts commerce API.
"""

from typing import Dict, Optional

import httpx

from shared.config import ClientConfig, DEFAULT_BASE_URL
from ptalts.api.base import HttpApi, path_segment
from ptalts.api.models import (
    BalanceResponse,
    OrderDetailsResponse,
    OrderHistoryResponse,
    PurchaseRequest,
    PurchaseResponse,
    RedeemRequest,
    RedeemResponse,
    StatusResponse,
)

STATUS_PATH = "/status"
STOCK_PATH = "/stock"
BALANCE_PATH = "/balance"
PRICES_PATH = "/prices"
PURCHASE_PATH = "/purchase"
REDEEM_PATH = "/redeem"
ORDERS_PATH = "/orders"
ORDER_PATH = "/order/{order_id}"


class ApiClient:
    """Client for the PTAlts commerce endpoints."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.http = HttpApi(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            logger_name="ptalts.api.client",
            transport=transport
        )
        self.logger = self.http.logger

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> "ApiClient":
        return cls(config.api_key, base_url=config.api_url, timeout=config.request_timeout, **kwargs)

    async def get_status(self) -> StatusResponse:
        """Fetch public service status. Does not need authentication."""
        return await self.http.request(
            "GET", STATUS_PATH, StatusResponse, "fetch status", authenticated=False
        )

    async def get_stock(self) -> Dict[str, int]:
        """Fetch current stock as item name -> quantity."""
        # Stocked item names change over time, so this stays an open mapping
        return await self.http.request("GET", STOCK_PATH, Dict[str, int], "fetch stock")

    async def get_balance(self) -> BalanceResponse:
        return await self.http.request("GET", BALANCE_PATH, BalanceResponse, "fetch balance")

    async def get_prices(self) -> Dict[str, int]:
        """Fetch item prices as item name -> price."""
        return await self.http.request("GET", PRICES_PATH, Dict[str, int], "fetch prices")

    async def request_purchase(self, purchase_request: PurchaseRequest) -> PurchaseResponse:
        """Purchase items.

        A 400 reply is a verification failure and is returned as a
        ``PurchaseResponse`` with ``success`` false rather than raised.
        """
        response = await self.http.request(
            "POST",
            PURCHASE_PATH,
            PurchaseResponse,
            "complete purchase",
            payload=purchase_request,
            accepted=(200, 400)
        )
        self.logger.info(
            "Purchase completed" if response.success else "Purchase rejected",
            type=purchase_request.type,
            quantity=purchase_request.quantity,
            order_id=response.order_id
        )
        return response

    async def redeem_token(self, redeem_request: RedeemRequest) -> RedeemResponse:
        """Redeem a token key, with an optional referral."""
        return await self.http.request(
            "POST", REDEEM_PATH, RedeemResponse, "redeem token", payload=redeem_request
        )

    async def get_order_history(self) -> OrderHistoryResponse:
        return await self.http.request("GET", ORDERS_PATH, OrderHistoryResponse, "fetch order history")

    async def get_order_details(self, order_id: str) -> OrderDetailsResponse:
        """Fetch one order, including its accounts."""
        return await self.http.request(
            "GET",
            ORDER_PATH.format(order_id=path_segment(order_id)),
            OrderDetailsResponse,
            "fetch order details"
        )
