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

"""Order and payment endpoints of the commerce API."""

import logging
from typing import Optional
import urllib.parse

from . import boundary
from . import constants
from .enums import PaymentMethod
from .enums import PaymentStatus
from .gateway import GatewayClient
from .models.order_types import CreateOrderRequest
from .models.order_types import Order
from .models.order_types import PaymentLaunch
from .models.order_types import PaymentRequest
from .models.order_types import PaymentStatusReport
from .scheduling import AbortSignal

logger = logging.getLogger(__name__)


def _order_path(order_number: str) -> str:
  return f"{constants.ORDERS_PATH}/{urllib.parse.quote(order_number, safe='')}"


def _payment_status_path(order_number: str) -> str:
  quoted = urllib.parse.quote(order_number, safe="")
  return f"/payment/{quoted}/status"


class OrdersApi:
  """Thin typed wrapper over the order and payment routes."""

  def __init__(self, gateway: GatewayClient):
    self._gateway = gateway

  async def create_order(self, request: CreateOrderRequest) -> Order:
    payload = await self._gateway.post(
        constants.ORDERS_PATH, json=boundary.to_wire(request)
    )
    order = boundary.from_wire(Order, payload)
    logger.info("Created order %s (%s)", order.order_number, order.status.value)
    return order

  async def get_order(self, order_number: str) -> Order:
    payload = await self._gateway.get(_order_path(order_number))
    return boundary.from_wire(Order, payload)

  async def cancel_order(self, order_number: str) -> Order:
    """Cancels an unpaid order and returns its updated detail."""
    await self._gateway.delete(_order_path(order_number))
    logger.info("Cancelled order %s", order_number)
    return await self.get_order(order_number)

  async def create_payment(
      self, order_number: str, payment_method: PaymentMethod
  ) -> PaymentLaunch:
    request = PaymentRequest(
        order_number=order_number, payment_method=payment_method
    )
    payload = await self._gateway.post(
        constants.PAYMENT_CREATE_PATH, json=boundary.to_wire(request)
    )
    body = boundary.unwrap(payload)
    if isinstance(body, dict):
      body = {**boundary.to_wire(request), **body}
    return boundary.from_wire(PaymentLaunch, body)

  async def get_payment_status(
      self, order_number: str, abort: Optional[AbortSignal] = None
  ) -> PaymentStatus:
    payload = await self._gateway.get(
        _payment_status_path(order_number), abort=abort
    )
    return boundary.from_wire(PaymentStatusReport, payload).status
