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

"""Shipping quotes for a checkout.

The quote endpoint is the pricing oracle; this module only checks that a
destination and parcel are quotable, classifies the destination, keeps the
latest quote with its selected option, and caches quotes for a short while.
"""

import logging
from typing import Optional

from . import boundary
from . import constants
from .config import ClientConfig
from .enums import DestinationType
from .exceptions import ValidationError
from .gateway import GatewayClient
from .models.shipping_types import Destination
from .models.shipping_types import QuoteRequest
from .models.shipping_types import ShippingOption
from .models.shipping_types import ShippingQuote
from .scheduling import LoopScheduler
from .scheduling import Scheduler

logger = logging.getLogger(__name__)

_CacheKey = tuple[str, str, str, float]


class ShippingQuoter:
  """Requests shipping quotes and tracks the one currently in effect."""

  def __init__(
      self,
      gateway: GatewayClient,
      config: ClientConfig,
      scheduler: Optional[Scheduler] = None,
  ):
    self._gateway = gateway
    self._domestic_country = config.domestic_country.upper()
    self._cache_ttl = config.quote_cache_ttl
    self._scheduler = scheduler or LoopScheduler()
    self._cache: dict[_CacheKey, tuple[float, ShippingQuote]] = {}
    self.destination: Optional[Destination] = None
    self.current_quote: Optional[ShippingQuote] = None
    self.selected: Optional[ShippingOption] = None

  def classify(self, country: str) -> DestinationType:
    if country.strip().upper() == self._domestic_country:
      return DestinationType.DOMESTIC
    return DestinationType.INTERNATIONAL

  def validate(
      self, destination: Destination, total_weight_grams: float
  ) -> QuoteRequest:
    """Checks that the destination and parcel can be quoted.

    Args:
      destination: Where the parcel goes.
      total_weight_grams: Combined weight of the cart, in grams.

    Returns:
      The quote request to send.

    Raises:
      ValidationError: With one entry per offending field.
    """
    errors = {}
    required = ["country", "city", "postal_code", "street"]
    if destination.country and (
        self.classify(destination.country) is DestinationType.DOMESTIC
    ):
      required.append("province")
    for field in required:
      value = getattr(destination, field)
      if value is None or not value.strip():
        errors[field] = "This field is required"

    street = (destination.street or "").strip()
    if "street" not in errors and not (
        constants.MIN_ADDRESS_LENGTH
        <= len(street)
        <= constants.MAX_ADDRESS_LENGTH
    ):
      errors["street"] = (
          f"Address must be between {constants.MIN_ADDRESS_LENGTH} and"
          f" {constants.MAX_ADDRESS_LENGTH} characters"
      )

    if not (
        constants.MIN_PARCEL_WEIGHT_GRAMS
        <= total_weight_grams
        <= constants.MAX_PARCEL_WEIGHT_GRAMS
    ):
      errors["total_weight_grams"] = (
          f"Total weight must be between {constants.MIN_PARCEL_WEIGHT_GRAMS}"
          f" and {constants.MAX_PARCEL_WEIGHT_GRAMS} grams"
      )

    if errors:
      raise ValidationError("Shipping details are incomplete", errors)

    return QuoteRequest(
        country=destination.country.strip().upper(),
        province=destination.province.strip() if destination.province else None,
        city=destination.city.strip(),
        postal_code=destination.postal_code.strip(),
        street=street,
        total_weight_grams=total_weight_grams,
    )

  async def calculate(
      self,
      destination: Destination,
      total_weight_grams: float,
      skip_cache: bool = False,
  ) -> ShippingQuote:
    """Quotes shipping and makes the result the current quote.

    A newer call supersedes an older one still in flight; the older caller
    gets `CancellationError`.

    Args:
      destination: Where the parcel goes.
      total_weight_grams: Combined weight of the cart, in grams.
      skip_cache: Always ask the server, ignoring cached quotes.

    Returns:
      The quote, with `selected` set to its default option.

    Raises:
      ValidationError: The destination or weight cannot be quoted.
      StorefrontError: The quote request failed.

    Either way the previous quote and selection are dropped.
    """
    self.reset()
    request = self.validate(destination, total_weight_grams)
    key = (
        request.country,
        request.city.lower(),
        request.postal_code,
        request.total_weight_grams,
    )

    quote = None if skip_cache else self._cached(key)
    if quote is not None:
      logger.debug("Using cached shipping quote for %s", key)
      self._gateway.cancel(constants.SHIPPING_QUOTE_CANCEL_KEY)
    else:
      payload = await self._gateway.post(
          constants.SHIPPING_QUOTE_PATH,
          json=boundary.to_wire(request),
          cancel_key=constants.SHIPPING_QUOTE_CANCEL_KEY,
      )
      body = boundary.unwrap(payload)
      if isinstance(body, dict) and "shippingType" not in body:
        body = {**body, "shippingType": self.classify(request.country).value}
      quote = boundary.from_wire(ShippingQuote, body)
      self._cache[key] = (self._scheduler.now(), quote)

    self.destination = destination
    self.current_quote = quote
    self.selected = self._default_option(quote)
    logger.info(
        "Shipping quote: %s, %d option(s)",
        quote.destination_type.value,
        len(quote.options),
    )
    return quote

  def select_option(self, option_id: str) -> ShippingOption:
    if self.current_quote is None:
      raise ValidationError("Calculate shipping before choosing an option")
    option = self.current_quote.find(option_id)
    if option is None:
      raise ValidationError(
          "Unknown shipping option", {"shipping_option": option_id}
      )
    self.selected = option
    return option

  def clear_cache(self) -> None:
    self._cache.clear()

  def reset(self) -> None:
    self.destination = None
    self.current_quote = None
    self.selected = None

  def _cached(self, key: _CacheKey) -> Optional[ShippingQuote]:
    entry = self._cache.get(key)
    if entry is None:
      return None
    stored_at, quote = entry
    if self._scheduler.now() - stored_at >= self._cache_ttl:
      del self._cache[key]
      return None
    return quote

  @staticmethod
  def _default_option(quote: ShippingQuote) -> Optional[ShippingOption]:
    if quote.destination_type is DestinationType.DOMESTIC:
      return quote.cheapest()
    return quote.options[0] if quote.options else None
