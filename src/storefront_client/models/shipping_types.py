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

"""Shipping destination and quote payloads."""

from typing import Optional

from pydantic import ConfigDict
from pydantic import Field

from ..boundary import WireModel
from ..enums import DestinationType


class Destination(WireModel):
  """Where a parcel goes. Fields may be missing until the buyer fills them."""

  country: Optional[str] = None
  province: Optional[str] = None
  city: Optional[str] = None
  postal_code: Optional[str] = None
  street: Optional[str] = Field(default=None, alias="address")


class QuoteRequest(WireModel):
  country: str
  province: Optional[str] = None
  city: str
  postal_code: str
  street: str = Field(alias="address")
  total_weight_grams: float = Field(alias="total_weight")


class ShippingOption(WireModel):
  """One priced way of delivering the parcel.

  Domestic options name a courier service and carry the rate identifier the
  fulfillment partner needs at order time; international options name a
  shipping zone instead.
  """

  model_config = ConfigDict(frozen=True)

  courier_code: Optional[str] = Field(default=None, alias="courier")
  courier_name: Optional[str] = None
  service_code: Optional[str] = Field(default=None, alias="service")
  service_name: Optional[str] = None
  rate_id: Optional[str] = Field(default=None, alias="price_id")
  zone_id: Optional[str] = None
  zone_name: Optional[str] = None
  cost: float
  estimated_days_min: Optional[int] = Field(default=None, alias="min_day")
  estimated_days_max: Optional[int] = Field(default=None, alias="max_day")

  @property
  def courier_or_zone_id(self) -> Optional[str]:
    return self.zone_id or self.courier_code

  @property
  def option_id(self) -> str:
    """Stable key used to select this option."""
    if self.rate_id:
      return self.rate_id
    if self.zone_id:
      return self.zone_id
    return f"{self.courier_code}:{self.service_code}"


class ShippingQuote(WireModel):
  model_config = ConfigDict(frozen=True)

  destination_type: DestinationType = Field(alias="shippingType")
  options: tuple[ShippingOption, ...] = ()

  def cheapest(self) -> Optional[ShippingOption]:
    if not self.options:
      return None
    return min(self.options, key=lambda option: option.cost)

  def find(self, option_id: str) -> Optional[ShippingOption]:
    for option in self.options:
      if option.option_id == option_id:
        return option
    return None
