"""
Shared fixtures for brokerage client tests.

Payloads mirror real broker responses; HTTP tests run against a
local aiohttp server.
"""

import copy
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from brokerage_client import ClientConfig


ORDER_PLACED_PAYLOAD = {
    "order": {
        "id": 129359,
        "account-number": "5WU44237",
        "time-in-force": "Day",
        "order-type": "Limit",
        "size": 100,
        "underlying-symbol": "AAPL",
        "underlying-instrument-type": "Equity",
        "price": "181.01",
        "price-effect": "Debit",
        "status": "Received",
        "cancellable": True,
        "editable": True,
        "edited": False,
        "received-at": "2024-02-11T21:59:57.143+00:00",
        "updated-at": 1234,
        "global-request-id": "153cc8811e19d5aba6c9bfa083251e56",
        "legs": [
            {
                "instrument-type": "Equity",
                "symbol": "AAPL",
                "quantity": 100,
                "remaining-quantity": 100,
                "action": "Buy to Open",
                "fills": [],
            }
        ],
    },
    "warnings": [
        {
            "code": "tif_next_valid_sesssion",
            "message": "Your order will begin working during next valid session.",
        }
    ],
    "buying-power-effect": {
        "change-in-margin-requirement": "9050.5",
        "change-in-margin-requirement-effect": "Debit",
        "change-in-buying-power": "9050.58",
        "change-in-buying-power-effect": "Debit",
        "current-buying-power": "10056.31",
        "current-buying-power-effect": "Credit",
        "new-buying-power": "1005.73",
        "new-buying-power-effect": "Credit",
        "isolated-order-margin-requirement": "9050.5",
        "isolated-order-margin-requirement-effect": "Debit",
        "is-spread": False,
        "impact": "9050.58",
        "effect": "Debit",
    },
    "fee-calculation": {
        "regulatory-fees": "0.0",
        "regulatory-fees-effect": "None",
        "clearing-fees": "0.08",
        "clearing-fees-effect": "Debit",
        "commission": "0.0",
        "commission-effect": "None",
        "proprietary-index-option-fees": "0.0",
        "proprietary-index-option-fees-effect": "None",
        "total-fees": "0.08",
        "total-fees-effect": "Debit",
    },
}


def _dry_run_payload():
    payload = copy.deepcopy(ORDER_PLACED_PAYLOAD)
    order = payload["order"]
    for key in ("id", "underlying-instrument-type", "received-at", "updated-at", "global-request-id"):
        del order[key]
    order["legs"] = [
        {
            "instrument-type": "Equity",
            "symbol": "AAPL",
            "quantity": 100,
            "action": "Buy to Open",
        }
    ]
    return payload


@pytest.fixture
def order_placed_payload():
    """Order placement payload (the `data` member of the envelope)."""
    return copy.deepcopy(ORDER_PLACED_PAYLOAD)


@pytest.fixture
def dry_run_payload():
    """Dry-run payload: no broker id, legs without remaining quantity."""
    return _dry_run_payload()


@pytest.fixture
def live_order_payload():
    """A single live order record."""
    return copy.deepcopy(ORDER_PLACED_PAYLOAD["order"])


@pytest.fixture
def broker_server():
    """
    Factory for a local broker API.

    Usage:
        async with broker_server([("GET", "/path", handler)]) as config:
            ...
    Yields a ClientConfig pointed at the server.
    """

    @asynccontextmanager
    async def start(routes):
        app = web.Application()
        for method, path, handler in routes:
            app.router.add_route(method, path, handler)
        server = TestServer(app)
        await server.start_server()
        try:
            yield ClientConfig(base_url=f"http://{server.host}:{server.port}")
        finally:
            await server.close()

    return start
