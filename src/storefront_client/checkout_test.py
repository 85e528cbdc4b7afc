#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Tests for the checkout orchestrator."""

import asyncio

from absl.testing import absltest
import httpx

from storefront_client.checkout import CheckoutOrchestrator
from storefront_client.enums import Currency
from storefront_client.enums import OrderStatus
from storefront_client.enums import PaymentMethod
from storefront_client.enums import PaymentStatus
from storefront_client.exceptions import BusinessError
from storefront_client.exceptions import NetworkError
from storefront_client.exceptions import ValidationError
from storefront_client.gateway import GatewayClient
from storefront_client.models.order_types import Recipient
from storefront_client.models.shipping_types import Destination
from storefront_client.session import InMemorySessionStore
from storefront_client.session import Session
from storefront_client.testing_util import FakeApi
from storefront_client.testing_util import RecordingNavigator
from storefront_client.testing_util import VirtualScheduler
from storefront_client.testing_util import json_body
from storefront_client.testing_util import make_config

QUOTE_PATH = "/orders/calculate-shipping"

JAKARTA = Destination(
    country="ID",
    province="DKI Jakarta",
    city="Jakarta Selatan",
    postal_code="12190",
    street="Jl. Jenderal Sudirman No. 1",
)

TOKYO = Destination(
    country="JP",
    city="Tokyo",
    postal_code="100-0005",
    street="1-1 Marunouchi, Chiyoda",
)

RECIPIENT = Recipient(name="Sari Dewi", phone="+6281234567890", notes="Gate B")


def _domestic_quote(**option_overrides) -> dict:
  option = {
      "courier": "jne",
      "courier_name": "JNE",
      "service": "reg",
      "service_name": "Reguler",
      "price_id": "rate-jne-reg",
      "cost": 18000,
  }
  option.update(option_overrides)
  option = {key: value for key, value in option.items() if value is not None}
  return {"data": {"shippingType": "DOMESTIC", "options": [option]}}


INTERNATIONAL_QUOTE = {
    "data": {
        "shippingType": "INTERNATIONAL",
        "options": [{"zone_id": "zone-east-asia", "cost": 350000}],
    }
}


def _order(status="PENDING", payment_status="PENDING") -> dict:
  return {
      "data": {
          "order_number": "ORD-20260101-0001",
          "status": status,
          "payment_status": payment_status,
          "total": 218000,
          "currency": "IDR",
      }
  }


class _FakeCart:

  def __init__(self, error=None):
    self.error = error
    self.clears = 0

  async def clear(self) -> None:
    self.clears += 1
    if self.error is not None:
      raise self.error


class CheckoutOrchestratorTest(absltest.TestCase):

  def setUp(self) -> None:
    super().setUp()
    self.api = FakeApi()
    self.cart = _FakeCart()
    self.scheduler = VirtualScheduler()

  def _checkout(self) -> CheckoutOrchestrator:
    gateway = GatewayClient(
        make_config(),
        InMemorySessionStore(Session(access_token="token")),
        RecordingNavigator(),
        transport=self.api.transport(),
    )
    return CheckoutOrchestrator(
        gateway, make_config(), self.cart, scheduler=self.scheduler
    )

  def test_domestic_order_carries_courier_fields(self) -> None:
    self.api.route("POST", QUOTE_PATH, _domestic_quote())
    self.api.route("POST", "/orders", _order())

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(JAKARTA, 1500)
      return await checkout.place_order(
          RECIPIENT, PaymentMethod.MIDTRANS_SNAP, Currency.IDR
      )

    order = asyncio.run(scenario())
    self.assertEqual(order.order_number, "ORD-20260101-0001")
    self.assertEqual(order.status, OrderStatus.PENDING)
    self.assertEqual(self.cart.clears, 1)
    self.assertEqual(
        json_body(self.api.calls("POST", "/orders")[0]),
        {
            "shipping_type": "DOMESTIC",
            "recipient_name": "Sari Dewi",
            "recipient_phone": "+6281234567890",
            "shipping_address": "Jl. Jenderal Sudirman No. 1",
            "shipping_city": "Jakarta Selatan",
            "shipping_province": "DKI Jakarta",
            "shipping_country": "ID",
            "shipping_postal_code": "12190",
            "shipping_notes": "Gate B",
            "biteship_courier": "jne",
            "biteship_service": "reg",
            "biteship_price_id": "rate-jne-reg",
            "payment_method": "MIDTRANS_SNAP",
            "currency": "IDR",
        },
    )

  def test_missing_rate_id_is_refused_locally(self) -> None:
    self.api.route("POST", QUOTE_PATH, _domestic_quote(price_id=None))

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(JAKARTA, 1500)
      await checkout.place_order(RECIPIENT, PaymentMethod.MIDTRANS_SNAP)

    with self.assertRaises(ValidationError) as cm:
      asyncio.run(scenario())
    self.assertEqual(list(cm.exception.field_errors), ["rate_id"])
    self.assertEmpty(self.api.calls("POST", "/orders"))
    self.assertEqual(self.cart.clears, 0)

  def test_international_order_carries_zone(self) -> None:
    self.api.route("POST", QUOTE_PATH, INTERNATIONAL_QUOTE)
    self.api.route("POST", "/orders", _order())

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(TOKYO, 900)
      await checkout.place_order(RECIPIENT, PaymentMethod.PAYPAL, Currency.USD)

    asyncio.run(scenario())
    body = json_body(self.api.calls("POST", "/orders")[0])
    self.assertEqual(body["shipping_type"], "INTERNATIONAL")
    self.assertEqual(body["shipping_zone_id"], "zone-east-asia")
    self.assertNotIn("biteship_courier", body)
    self.assertNotIn("shipping_province", body)

  def test_order_requires_quote(self) -> None:

    async def scenario():
      await self._checkout().place_order(RECIPIENT, PaymentMethod.PAYPAL)

    with self.assertRaises(ValidationError):
      asyncio.run(scenario())
    self.assertEmpty(self.api.requests)

  def test_rejected_order_leaves_cart_alone(self) -> None:
    self.api.route("POST", QUOTE_PATH, _domestic_quote())
    self.api.route(
        "POST",
        "/orders",
        lambda request: httpx.Response(
            409, json={"message": "Insufficient stock for Batik Shirt"}
        ),
    )

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(JAKARTA, 1500)
      try:
        await checkout.place_order(RECIPIENT, PaymentMethod.MIDTRANS_SNAP)
      finally:
        self.assertIsNone(checkout.order)

    with self.assertRaises(BusinessError) as cm:
      asyncio.run(scenario())
    self.assertEqual(cm.exception.message, "Insufficient stock for Batik Shirt")
    self.assertEqual(self.cart.clears, 0)

  def test_cart_clear_failure_still_returns_order(self) -> None:
    self.cart = _FakeCart(NetworkError("Cart service down", status_code=503))
    self.api.route("POST", QUOTE_PATH, _domestic_quote())
    self.api.route("POST", "/orders", _order())

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(JAKARTA, 1500)
      return await checkout.place_order(RECIPIENT, PaymentMethod.MIDTRANS_SNAP)

    with self.assertLogs("storefront_client.checkout", level="WARNING"):
      order = asyncio.run(scenario())
    self.assertEqual(order.order_number, "ORD-20260101-0001")
    self.assertEqual(self.cart.clears, 1)

  def test_payment_flow_refreshes_order_when_paid(self) -> None:
    order_number = "ORD-20260101-0001"
    self.api.route("POST", QUOTE_PATH, _domestic_quote())
    self.api.route("POST", "/orders", _order())
    self.api.route(
        "POST",
        "/payment/create",
        {
            "data": {
                "token": "snap-token",
                "payment_url": "https://pay.example/snap/snap-token",
                "payment_id": "PAY-1",
            }
        },
    )
    self.api.route(
        "GET",
        f"/payment/{order_number}/status",
        [
            {"data": {"payment_status": "PENDING"}},
            {"data": {"payment_status": "PAID"}},
        ],
    )
    self.api.route(
        "GET", f"/orders/{order_number}", _order("PAID", "PAID")
    )
    statuses = []

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(JAKARTA, 1500)
      await checkout.place_order(RECIPIENT, PaymentMethod.MIDTRANS_SNAP)
      launch = await checkout.start_payment()
      self.assertEqual(launch.order_number, order_number)
      self.assertEqual(launch.token, "snap-token")
      self.assertEqual(launch.redirect_url, "https://pay.example/snap/snap-token")

      poll = asyncio.ensure_future(
          checkout.await_payment(on_status_change=statuses.append)
      )
      await self.scheduler.advance(5)
      return checkout, await poll

    checkout, status = asyncio.run(scenario())
    self.assertEqual(status, PaymentStatus.PAID)
    self.assertEqual(statuses, [PaymentStatus.PENDING, PaymentStatus.PAID])
    self.assertEqual(checkout.order.status, OrderStatus.PAID)
    self.assertLen(self.api.calls("GET", f"/orders/{order_number}"), 1)
    self.assertEqual(
        json_body(self.api.calls("POST", "/payment/create")[0]),
        {"order_number": order_number, "payment_method": "MIDTRANS_SNAP"},
    )

  def test_paid_is_returned_when_order_reload_fails(self) -> None:
    order_number = "ORD-20260101-0001"
    self.api.route("POST", QUOTE_PATH, _domestic_quote())
    self.api.route("POST", "/orders", _order())
    self.api.route(
        "GET",
        f"/payment/{order_number}/status",
        {"data": {"payment_status": "PAID"}},
    )
    self.api.route(
        "GET",
        f"/orders/{order_number}",
        lambda request: httpx.Response(503, json={"message": "Down"}),
    )

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(JAKARTA, 1500)
      await checkout.place_order(RECIPIENT, PaymentMethod.MIDTRANS_SNAP)
      return checkout, await checkout.await_payment()

    with self.assertLogs("storefront_client.checkout", level="WARNING"):
      checkout, status = asyncio.run(scenario())
    self.assertEqual(status, PaymentStatus.PAID)
    self.assertEqual(checkout.order.status, OrderStatus.PENDING)
    self.assertLen(self.api.calls("GET", f"/orders/{order_number}"), 1)

  def test_failed_requote_invalidates_previous_quote(self) -> None:
    self.api.route("POST", QUOTE_PATH, _domestic_quote())
    self.api.route("POST", "/orders", _order())

    async def scenario():
      checkout = self._checkout()
      await checkout.quote_shipping(JAKARTA, 1000)
      with self.assertRaises(ValidationError):
        await checkout.quote_shipping(JAKARTA, 45000)
      await checkout.place_order(RECIPIENT, PaymentMethod.MIDTRANS_SNAP)

    with self.assertRaises(ValidationError):
      asyncio.run(scenario())
    self.assertEmpty(self.api.calls("POST", "/orders"))
    self.assertEqual(self.cart.clears, 0)

  def test_cancel_order_reloads_detail(self) -> None:
    order_number = "ORD-20260101-0001"
    self.api.route(
        "DELETE",
        f"/orders/{order_number}",
        {"status": "success", "message": "Order cancelled"},
    )
    self.api.route(
        "GET", f"/orders/{order_number}", _order("CANCELLED", "CANCELLED")
    )

    async def scenario():
      return await self._checkout().cancel_order(order_number)

    order = asyncio.run(scenario())
    self.assertEqual(order.status, OrderStatus.CANCELLED)


if __name__ == "__main__":
  absltest.main()
