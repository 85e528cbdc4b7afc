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

"""Cart and catalog pricing payloads."""

import datetime
import math
from typing import Optional

from pydantic import Field

from ..boundary import WireModel
from ..enums import Currency


class LocalCartItem(WireModel):
  """A guest cart line, persisted client-side only."""

  variant_id: str
  quantity: int = Field(ge=1)
  added_at: datetime.datetime = Field(
      default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
  )


class MergeLine(WireModel):
  variant_id: str
  quantity: int


class MergeRequest(WireModel):
  items: list[MergeLine]


class AddItemRequest(WireModel):
  variant_id: str
  quantity: int


class UpdateQuantityRequest(WireModel):
  quantity: int


class CartLine(WireModel):
  line_id: Optional[str] = Field(default=None, alias="id")
  product_id: Optional[str] = None
  variant_id: str
  quantity: int
  unit_price: Optional[float] = None
  subtotal: float = 0
  is_available: bool = True


class CartSummary(WireModel):
  total_items: int = 0
  total_quantity: int = 0
  subtotal: float = 0
  unavailable_items: int = 0

  @classmethod
  def of(cls, lines: list[CartLine]) -> "CartSummary":
    return cls(
        total_items=len(lines),
        total_quantity=sum(line.quantity for line in lines),
        subtotal=sum(line.subtotal for line in lines if line.is_available),
        unavailable_items=sum(1 for line in lines if not line.is_available),
    )


class ServerCart(WireModel):
  cart_id: Optional[str] = Field(default=None, alias="id")
  items: list[CartLine] = Field(default_factory=list)
  summary: CartSummary = Field(default_factory=CartSummary)

  def line_for(self, variant_id: str) -> Optional[CartLine]:
    for line in self.items:
      if line.variant_id == variant_id:
        return line
    return None


class Promotion(WireModel):
  discount_rate: float = Field(alias="discount")
  end_date: Optional[datetime.datetime] = None
  is_active: bool = True

  def applies_at(self, moment: datetime.datetime) -> bool:
    if not self.is_active:
      return False
    return self.end_date is None or self.end_date > moment


class VariantPricing(WireModel):
  """Current catalog price of a variant, fetched fresh on every guest read."""

  variant_id: str = Field(alias="id")
  product_id: Optional[str] = None
  product_name: Optional[str] = None
  variant_name: Optional[str] = None
  price_idr: float = Field(default=0, alias="id_price")
  price_usd: float = Field(default=0, alias="en_price")
  stock: Optional[int] = None
  is_active: bool = True
  promotion: Optional[Promotion] = None

  def unit_price(
      self, currency: Currency, moment: datetime.datetime
  ) -> float:
    base = self.price_idr if currency is Currency.IDR else self.price_usd
    if self.promotion is not None and self.promotion.applies_at(moment):
      # Halves round up.
      return math.floor(base * (1 - self.promotion.discount_rate) + 0.5)
    return base


class MergeRecord(WireModel):
  """Marks that the guest cart was folded into the server cart."""

  merged: bool = False
  merged_at: Optional[datetime.datetime] = None
