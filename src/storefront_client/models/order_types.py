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

"""Order and payment payloads."""

from typing import Any, Optional

from pydantic import Field

from ..boundary import WireModel
from ..enums import Currency
from ..enums import DestinationType
from ..enums import OrderStatus
from ..enums import PaymentMethod
from ..enums import PaymentStatus


class Recipient(WireModel):
  name: str
  phone: str
  notes: Optional[str] = None


class CreateOrderRequest(WireModel):
  """Body of `POST /orders`.

  Exactly one of the courier triple (`courier_code`, `service_code`,
  `rate_id`) or `zone_id` is set, depending on `destination_type`.
  """

  destination_type: DestinationType = Field(alias="shipping_type")
  recipient_name: str
  recipient_phone: str
  street: str = Field(alias="shipping_address")
  city: str = Field(alias="shipping_city")
  province: Optional[str] = Field(default=None, alias="shipping_province")
  country: str = Field(alias="shipping_country")
  postal_code: str = Field(alias="shipping_postal_code")
  notes: Optional[str] = Field(default=None, alias="shipping_notes")
  courier_code: Optional[str] = Field(default=None, alias="biteship_courier")
  service_code: Optional[str] = Field(default=None, alias="biteship_service")
  rate_id: Optional[str] = Field(default=None, alias="biteship_price_id")
  zone_id: Optional[str] = Field(default=None, alias="shipping_zone_id")
  payment_method: PaymentMethod
  currency: Currency


class Order(WireModel):
  order_number: str
  status: OrderStatus
  payment_status: Optional[PaymentStatus] = None
  payment_method: Optional[str] = None
  subtotal: Optional[float] = None
  shipping_cost: Optional[float] = None
  total: Optional[float] = None
  currency: Optional[Currency] = None
  items: list[dict[str, Any]] = Field(default_factory=list)
  tracking_number: Optional[str] = None


class PaymentRequest(WireModel):
  order_number: str
  payment_method: PaymentMethod


class PaymentLaunch(WireModel):
  """What the external checkout surface needs to collect the payment."""

  order_number: str
  payment_method: PaymentMethod
  provider: Optional[str] = Field(default=None, alias="payment_provider")
  redirect_url: Optional[str] = Field(default=None, alias="payment_url")
  token: Optional[str] = None
  provider_payment_id: Optional[str] = Field(default=None, alias="payment_id")
  amount: Optional[float] = None
  currency: Optional[str] = None
  expires_at: Optional[str] = None


class PaymentStatusReport(WireModel):
  order_number: Optional[str] = None
  status: PaymentStatus = Field(alias="payment_status")
  paid_at: Optional[str] = None
