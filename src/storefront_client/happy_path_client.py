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

"""Happy path client for a storefront commerce API.

This script walks one buyer journey end to end:
1. Adding an item to the guest cart.
2. Logging in, which merges the guest cart into the server cart.
3. Quoting shipping for the destination and picking an option.
4. Placing the order.
5. Opening a payment session.
6. Polling the payment until it settles or polling gives up.

Usage:
  storefront-happy-path --api_base_url=http://localhost:3000/api/v1 \
      --email=buyer@example.com --password=secret --variant_id=...
"""

import asyncio
import logging

from absl import app as absl_app
from absl import flags
from dotenv import load_dotenv

from .auth import AuthService
from .cart import CartReconciler
from .checkout import CheckoutOrchestrator
from .config import ClientConfig
from .enums import Currency
from .enums import PaymentMethod
from .exceptions import StorefrontError
from .gateway import GatewayClient
from .host import LoggingNavigator
from .models.order_types import Recipient
from .models.shipping_types import Destination
from .session import InMemoryKeyValueStore
from .session import InMemorySessionStore

FLAGS = flags.FLAGS
flags.DEFINE_string("email", None, "Account email")
flags.DEFINE_string("password", None, "Account password")
flags.DEFINE_string("variant_id", None, "Variant to buy")
flags.DEFINE_integer("quantity", 1, "Quantity to buy")
flags.DEFINE_float("weight_grams", 500, "Total parcel weight in grams")
flags.DEFINE_string("country", "ID", "Destination country code")
flags.DEFINE_string("province", "DKI Jakarta", "Destination province")
flags.DEFINE_string("city", "Jakarta Selatan", "Destination city")
flags.DEFINE_string("postal_code", "12190", "Destination postal code")
flags.DEFINE_string(
    "address", "Jl. Jenderal Sudirman No. 1", "Destination street address"
)
flags.DEFINE_string("recipient_name", "Happy Path Buyer", "Recipient name")
flags.DEFINE_string("recipient_phone", "+6281234567890", "Recipient phone")
flags.DEFINE_enum_class(
    "payment_method", PaymentMethod.MIDTRANS_SNAP, PaymentMethod,
    "Payment method"
)
flags.DEFINE_enum_class("currency", Currency.IDR, Currency, "Order currency")
flags.mark_flags_as_required(["email", "password", "variant_id"])

logger = logging.getLogger(__name__)


async def happy_path(config: ClientConfig) -> None:
  """Runs the buyer journey against the configured API."""
  sessions = InMemorySessionStore()
  kv = InMemoryKeyValueStore()

  async with GatewayClient(config, sessions, LoggingNavigator()) as gateway:
    cart = CartReconciler(gateway, sessions, kv, currency=FLAGS.currency)
    auth = AuthService(gateway, sessions, cart)
    checkout = CheckoutOrchestrator(gateway, config, cart)

    logger.info("STEP 1: Adding %s to the guest cart...", FLAGS.variant_id)
    guest_cart = await cart.add_item(FLAGS.variant_id, FLAGS.quantity)
    logger.info(
        "Guest cart: %d line(s), subtotal %s",
        guest_cart.summary.total_items,
        guest_cart.summary.subtotal,
    )

    logger.info("STEP 2: Logging in as %s...", FLAGS.email)
    sign_in = await auth.login(FLAGS.email, FLAGS.password)
    if sign_in.merge is not None and sign_in.merge.error is not None:
      logger.warning("Guest cart kept locally: %s", sign_in.merge.error.message)
    server_cart = sign_in.merge.cart if sign_in.merge else None
    if server_cart is not None:
      logger.info(
          "Server cart holds %d item(s)", server_cart.summary.total_quantity
      )

    logger.info("STEP 3: Quoting shipping...")
    destination = Destination(
        country=FLAGS.country,
        province=FLAGS.province,
        city=FLAGS.city,
        postal_code=FLAGS.postal_code,
        street=FLAGS.address,
    )
    quote = await checkout.quote_shipping(destination, FLAGS.weight_grams)
    for option in quote.options:
      logger.info(
          " - %s %s: %s", option.option_id, option.service_name, option.cost
      )
    if checkout.quoter.selected is None:
      logger.error("No shipping option available for this destination")
      return
    logger.info("Selected %s", checkout.quoter.selected.option_id)

    logger.info("STEP 4: Placing the order...")
    order = await checkout.place_order(
        Recipient(name=FLAGS.recipient_name, phone=FLAGS.recipient_phone),
        FLAGS.payment_method,
        FLAGS.currency,
    )
    logger.info("Order %s total %s", order.order_number, order.total)

    logger.info("STEP 5: Opening a payment session...")
    launch = await checkout.start_payment()
    logger.info("Complete the payment at %s", launch.redirect_url)

    logger.info("STEP 6: Waiting for the payment to settle...")
    status = await checkout.await_payment(
        on_status_change=lambda s: logger.info("Payment status: %s", s.value)
    )
    logger.info("Order %s ended with payment %s", order.order_number,
                status.value)


def main(argv):
  """Main entry point for the happy path client."""
  del argv
  logging.basicConfig(
      level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
  )
  try:
    asyncio.run(happy_path(ClientConfig.from_flags()))
  except StorefrontError as exc:
    logger.error("Happy path failed (%s): %s", exc.code, exc.message)
    for field, message in exc.field_errors.items():
      logger.error("  %s: %s", field, message)
    raise SystemExit(1) from exc


def run():
  load_dotenv()
  absl_app.run(main)


if __name__ == "__main__":
  run()
