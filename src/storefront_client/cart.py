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

"""Guest and server carts, and the one-time merge between them.

Before login the cart lives in the host key-value store and is priced
against the catalog on every read. After login every cart operation goes to
the server. On the first authentication of a session the guest cart is
merged into the server cart; a `MergeRecord` keyed by the session id keeps
the merge from running twice.
"""

import asyncio
import datetime
import logging
from typing import Callable, Optional
import urllib.parse

import pydantic
from pydantic import BaseModel
from pydantic import ConfigDict

from . import boundary
from . import constants
from .enums import Currency
from .exceptions import AuthError
from .exceptions import BusinessError
from .exceptions import StorefrontError
from .exceptions import ValidationError
from .gateway import GatewayClient
from .models.cart_types import AddItemRequest
from .models.cart_types import CartLine
from .models.cart_types import CartSummary
from .models.cart_types import LocalCartItem
from .models.cart_types import MergeLine
from .models.cart_types import MergeRecord
from .models.cart_types import MergeRequest
from .models.cart_types import ServerCart
from .models.cart_types import UpdateQuantityRequest
from .models.cart_types import VariantPricing
from .session import KeyValueStore
from .session import SessionStore

logger = logging.getLogger(__name__)

_LOCAL_CART = pydantic.TypeAdapter(list[LocalCartItem])


def _utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


class LocalCartStore:
  """Guest cart lines in the host key-value store, keyed by variant id."""

  def __init__(self, kv: KeyValueStore):
    self._kv = kv

  def items(self) -> list[LocalCartItem]:
    raw = self._kv.get(constants.GUEST_CART_KEY)
    if not raw:
      return []
    try:
      return _LOCAL_CART.validate_json(raw)
    except pydantic.ValidationError:
      logger.warning("Discarding unreadable guest cart")
      self._kv.delete(constants.GUEST_CART_KEY)
      return []

  def is_empty(self) -> bool:
    return not self.items()

  def add(self, variant_id: str, quantity: int = 1) -> None:
    if quantity < 1:
      raise ValidationError(
          "Quantity must be at least 1", {"quantity": str(quantity)}
      )
    items = self.items()
    for index, item in enumerate(items):
      if item.variant_id == variant_id:
        items[index] = item.model_copy(
            update={"quantity": item.quantity + quantity}
        )
        break
    else:
      items.append(LocalCartItem(variant_id=variant_id, quantity=quantity))
    self._save(items)

  def update(self, variant_id: str, quantity: int) -> None:
    """Sets the quantity of a line; zero or less removes it."""
    if quantity <= 0:
      self.remove(variant_id)
      return
    items = [
        item.model_copy(update={"quantity": quantity})
        if item.variant_id == variant_id
        else item
        for item in self.items()
    ]
    self._save(items)

  def remove(self, variant_id: str) -> None:
    self._save(
        [item for item in self.items() if item.variant_id != variant_id]
    )

  def clear(self) -> None:
    self._kv.delete(constants.GUEST_CART_KEY)

  def _save(self, items: list[LocalCartItem]) -> None:
    if not items:
      self.clear()
      return
    self._kv.set(
        constants.GUEST_CART_KEY,
        _LOCAL_CART.dump_json(items, by_alias=True).decode(),
    )


class MergeOutcome(BaseModel):
  """Result of folding the guest cart into the server cart.

  Attributes:
    merged: The session's merge record is set.
    cart: The server cart after the attempt, if it could be loaded.
    error: The merge or cart load failure, if any.
  """

  model_config = ConfigDict(arbitrary_types_allowed=True)

  merged: bool
  cart: Optional[ServerCart] = None
  error: Optional[StorefrontError] = None


class CartReconciler:
  """Routes cart operations to the guest or the server cart."""

  def __init__(
      self,
      gateway: GatewayClient,
      session_store: SessionStore,
      kv: KeyValueStore,
      currency: Currency = Currency.IDR,
      clock: Optional[Callable[[], datetime.datetime]] = None,
  ):
    self._gateway = gateway
    self._session_store = session_store
    self._kv = kv
    self._currency = currency
    self._clock = clock or _utcnow
    self._merges: dict[str, asyncio.Task] = {}
    self.local = LocalCartStore(kv)

  @property
  def is_authenticated(self) -> bool:
    return self._session_store.get() is not None

  async def get_cart(self) -> ServerCart:
    if self.is_authenticated:
      return await self._load_server_cart()
    return await self._price_guest_cart()

  async def add_item(self, variant_id: str, quantity: int = 1) -> ServerCart:
    if not self.is_authenticated:
      self.local.add(variant_id, quantity)
      return await self._price_guest_cart()
    request = AddItemRequest(variant_id=variant_id, quantity=quantity)
    await self._gateway.post(
        constants.CART_ITEMS_PATH, json=boundary.to_wire(request)
    )
    return await self._load_server_cart()

  async def update_quantity(self, variant_id: str, quantity: int) -> ServerCart:
    if not self.is_authenticated:
      self.local.update(variant_id, quantity)
      return await self._price_guest_cart()
    if quantity <= 0:
      return await self.remove_item(variant_id)
    line_id = await self._server_line_id(variant_id)
    await self._gateway.patch(
        self._line_path(line_id),
        json=boundary.to_wire(UpdateQuantityRequest(quantity=quantity)),
    )
    return await self._load_server_cart()

  async def remove_item(self, variant_id: str) -> ServerCart:
    if not self.is_authenticated:
      self.local.remove(variant_id)
      return await self._price_guest_cart()
    line_id = await self._server_line_id(variant_id)
    await self._gateway.delete(self._line_path(line_id))
    return await self._load_server_cart()

  async def clear(self) -> None:
    if not self.is_authenticated:
      self.local.clear()
      return
    await self._gateway.delete(constants.CART_PATH)

  async def on_authenticated(self) -> MergeOutcome:
    """Merges the guest cart once for the current session.

    Concurrent calls for the same session share one merge. Calls after a
    successful merge only reload the server cart.

    Returns:
      What happened; a failed merge is reported, not raised.

    Raises:
      AuthError: There is no session.
    """
    session = self._session_store.get()
    if session is None:
      raise AuthError("Cannot merge the guest cart without a session")
    session_id = session.session_id

    merge = self._merges.get(session_id)
    if merge is None:
      merge = asyncio.ensure_future(self._merge(session_id))
      self._merges[session_id] = merge
      merge.add_done_callback(lambda _: self._merges.pop(session_id, None))
    return await asyncio.shield(merge)

  def merge_record(self, session_id: str) -> MergeRecord:
    raw = self._kv.get(constants.MERGE_RECORD_KEY_PREFIX + session_id)
    if not raw:
      return MergeRecord()
    try:
      return MergeRecord.model_validate_json(raw)
    except pydantic.ValidationError:
      logger.warning("Ignoring unreadable merge record for this session")
      return MergeRecord()

  async def _merge(self, session_id: str) -> MergeOutcome:
    if self.merge_record(session_id).merged:
      logger.debug("Guest cart already merged for this session")
      return await self._outcome(merged=True)

    items = self.local.items()
    if not items:
      self._mark_merged(session_id)
      return await self._outcome(merged=True)

    request = MergeRequest(
        items=[
            MergeLine(variant_id=item.variant_id, quantity=item.quantity)
            for item in items
        ]
    )
    try:
      await self._gateway.post(
          constants.CART_MERGE_PATH, json=boundary.to_wire(request)
      )
    except StorefrontError as exc:
      logger.warning(
          "Guest cart merge failed, keeping %d local line(s): %s",
          len(items),
          exc.message,
      )
      return await self._outcome(merged=False, error=exc)

    self.local.clear()
    self._mark_merged(session_id)
    logger.info("Merged %d guest cart line(s) into the server cart", len(items))
    return await self._outcome(merged=True)

  async def _outcome(
      self, merged: bool, error: Optional[StorefrontError] = None
  ) -> MergeOutcome:
    try:
      cart = await self._load_server_cart()
    except StorefrontError as exc:
      logger.warning("Could not load the server cart: %s", exc.message)
      return MergeOutcome(merged=merged, error=error or exc)
    return MergeOutcome(merged=merged, cart=cart, error=error)

  def _mark_merged(self, session_id: str) -> None:
    record = MergeRecord(merged=True, merged_at=self._clock())
    self._kv.set(
        constants.MERGE_RECORD_KEY_PREFIX + session_id,
        record.model_dump_json(),
    )

  async def _load_server_cart(self) -> ServerCart:
    payload = await self._gateway.get(constants.CART_PATH)
    return boundary.from_wire(ServerCart, payload)

  async def _server_line_id(self, variant_id: str) -> str:
    cart = await self._load_server_cart()
    line = cart.line_for(variant_id)
    if line is None or not line.line_id:
      raise ValidationError(
          "Item is not in the cart", {"variant_id": variant_id}
      )
    return line.line_id

  @staticmethod
  def _line_path(line_id: str) -> str:
    return (
        f"{constants.CART_ITEMS_PATH}/{urllib.parse.quote(line_id, safe='')}"
    )

  async def _price_guest_cart(self) -> ServerCart:
    items = self.local.items()
    if not items:
      return ServerCart()
    pricings = await asyncio.gather(
        *(self._variant_pricing(item.variant_id) for item in items)
    )
    moment = self._clock()
    lines = []
    for item, pricing in zip(items, pricings):
      if (
          pricing is None
          or not pricing.is_active
          or (pricing.stock is not None and pricing.stock <= 0)
      ):
        lines.append(
            CartLine(
                variant_id=item.variant_id,
                quantity=item.quantity,
                is_available=False,
            )
        )
        continue
      unit_price = pricing.unit_price(self._currency, moment)
      lines.append(
          CartLine(
              product_id=pricing.product_id,
              variant_id=item.variant_id,
              quantity=item.quantity,
              unit_price=unit_price,
              subtotal=unit_price * item.quantity,
          )
      )
    return ServerCart(items=lines, summary=CartSummary.of(lines))

  async def _variant_pricing(self, variant_id: str) -> Optional[VariantPricing]:
    path = f"{constants.VARIANT_PATH}/{urllib.parse.quote(variant_id, safe='')}"
    try:
      payload = await self._gateway.get(path)
    except BusinessError as exc:
      if exc.status_code == 404:
        logger.info("Variant %s is no longer in the catalog", variant_id)
        return None
      raise
    return boundary.from_wire(VariantPricing, payload)
