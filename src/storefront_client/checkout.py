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

"""Checkout orchestration: quote, order, payment, settlement.

A `CheckoutOrchestrator` owns one checkout attempt. Order placement and
payment initiation never overlap; payment polling runs on its own once the
payment was launched.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Optional, Protocol

from .config import ClientConfig
from .enums import Currency
from .enums import DestinationType
from .enums import PaymentMethod
from .enums import PaymentStatus
from .exceptions import StorefrontError
from .exceptions import ValidationError
from .gateway import GatewayClient
from .host import VisibilitySource
from .models.order_types import CreateOrderRequest
from .models.order_types import Order
from .models.order_types import PaymentLaunch
from .models.order_types import Recipient
from .models.shipping_types import Destination
from .models.shipping_types import ShippingOption
from .models.shipping_types import ShippingQuote
from .orders import OrdersApi
from .polling import PaymentStatusPoller
from .polling import StatusObserver
from .scheduling import AbortSignal
from .scheduling import LoopScheduler
from .scheduling import Scheduler
from .shipping import ShippingQuoter

logger = logging.getLogger(__name__)


class ClearableCart(Protocol):

  def clear(self) -> Awaitable[None]:
    ...


class CheckoutOrchestrator:
  """Drives one checkout from shipping quote to settled payment."""

  def __init__(
      self,
      gateway: GatewayClient,
      config: ClientConfig,
      cart: ClearableCart,
      scheduler: Optional[Scheduler] = None,
      visibility: Optional[VisibilitySource] = None,
  ):
    scheduler = scheduler or LoopScheduler()
    self.quoter = ShippingQuoter(gateway, config, scheduler)
    self.orders = OrdersApi(gateway)
    self.poller = PaymentStatusPoller(
        self.orders.get_payment_status,
        scheduler,
        visibility=visibility,
        interval=config.poll_interval,
        max_attempts=config.poll_max_attempts,
        max_consecutive_errors=config.poll_max_consecutive_errors,
    )
    self._cart = cart
    self._step_lock = asyncio.Lock()
    self.order: Optional[Order] = None
    self.payment: Optional[PaymentLaunch] = None
    self._payment_method = PaymentMethod.MIDTRANS_SNAP

  async def quote_shipping(
      self,
      destination: Destination,
      total_weight_grams: float,
      skip_cache: bool = False,
  ) -> ShippingQuote:
    return await self.quoter.calculate(
        destination, total_weight_grams, skip_cache=skip_cache
    )

  def select_option(self, option_id: str) -> ShippingOption:
    return self.quoter.select_option(option_id)

  async def place_order(
      self,
      recipient: Recipient,
      payment_method: PaymentMethod,
      currency: Currency = Currency.IDR,
  ) -> Order:
    """Creates the order for the current quote and selected option.

    The cart is cleared only once the order exists. A failure to clear it is
    logged and does not fail the step.

    Args:
      recipient: Who receives the parcel.
      payment_method: How the order will be paid.
      currency: Currency the order is priced in.

    Returns:
      The created order.

    Raises:
      ValidationError: No quote, no selection, or the selected option lacks
        the identifiers the carrier needs. Nothing was sent.
      StorefrontError: The server rejected the order; the cart is untouched.
    """
    async with self._step_lock:
      request = self._order_request(recipient, payment_method, currency)
      order = await self.orders.create_order(request)
      self.order = order
      self.payment = None
      self._payment_method = payment_method
      try:
        await self._cart.clear()
      except StorefrontError as exc:
        logger.warning(
            "Order %s created but the cart could not be cleared: %s",
            order.order_number,
            exc.message,
        )
      return order

  async def start_payment(
      self, payment_method: Optional[PaymentMethod] = None
  ) -> PaymentLaunch:
    async with self._step_lock:
      order = self._require_order()
      method = payment_method or self._payment_method
      self.payment = await self.orders.create_payment(
          order.order_number, method
      )
      logger.info(
          "Payment session for %s via %s", order.order_number, method.value
      )
      return self.payment

  async def await_payment(
      self,
      abort: Optional[AbortSignal] = None,
      on_status_change: Optional[StatusObserver] = None,
  ) -> PaymentStatus:
    """Polls the current order's payment; a PAID transition reloads the order."""
    order_number = self._require_order().order_number

    async def observe(status: PaymentStatus) -> None:
      if on_status_change is not None:
        result = on_status_change(status)
        if inspect.isawaitable(result):
          await result
      if status is PaymentStatus.PAID:
        try:
          await self.refresh_order(order_number)
        except StorefrontError as exc:
          logger.warning(
              "Payment for %s settled but the order could not be reloaded: %s",
              order_number,
              exc.message,
          )

    return await self.poller.poll(
        order_number, abort=abort, on_status_change=observe
    )

  async def refresh_order(self, order_number: Optional[str] = None) -> Order:
    order_number = order_number or self._require_order().order_number
    order = await self.orders.get_order(order_number)
    if self.order is None or self.order.order_number == order_number:
      self.order = order
    return order

  async def cancel_order(self, order_number: Optional[str] = None) -> Order:
    order_number = order_number or self._require_order().order_number
    order = await self.orders.cancel_order(order_number)
    if self.order is not None and self.order.order_number == order_number:
      self.order = order
    return order

  def _require_order(self) -> Order:
    if self.order is None:
      raise ValidationError("Place the order first")
    return self.order

  def _order_request(
      self,
      recipient: Recipient,
      payment_method: PaymentMethod,
      currency: Currency,
  ) -> CreateOrderRequest:
    destination = self.quoter.destination
    quote = self.quoter.current_quote
    option = self.quoter.selected
    if destination is None or quote is None:
      raise ValidationError("Calculate shipping before placing the order")
    if option is None:
      raise ValidationError(
          "Select a shipping option",
          {"shipping_option": "No shipping option selected"},
      )

    if quote.destination_type is DestinationType.DOMESTIC:
      carrier_fields = {
          "courier_code": option.courier_code,
          "service_code": option.service_code,
          "rate_id": option.rate_id,
      }
    else:
      carrier_fields = {"zone_id": option.zone_id}
    missing = {
        name: "Missing from the selected shipping option"
        for name, value in carrier_fields.items()
        if not value
    }
    if missing:
      raise ValidationError(
          "The selected shipping option cannot be used for this order",
          missing,
      )

    return CreateOrderRequest(
        destination_type=quote.destination_type,
        recipient_name=recipient.name,
        recipient_phone=recipient.phone,
        street=destination.street.strip(),
        city=destination.city.strip(),
        province=destination.province,
        country=destination.country.strip().upper(),
        postal_code=destination.postal_code.strip(),
        notes=recipient.notes,
        payment_method=payment_method,
        currency=currency,
        **carrier_fields,
    )
