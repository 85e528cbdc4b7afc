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

"""Endpoint paths, storage keys and defaults."""

DEFAULT_API_BASE_URL = "http://localhost:3000/api/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0

AUTH_LOGIN_PATH = "/auth/login"
AUTH_REGISTER_PATH = "/auth/register"
AUTH_REFRESH_PATH = "/auth/refresh"
AUTH_LOGOUT_PATH = "/auth/logout"

# A 401 from these routes is a plain credential failure, never a stale token.
SKIP_REFRESH_PATHS = (
    AUTH_LOGIN_PATH,
    AUTH_REGISTER_PATH,
    AUTH_REFRESH_PATH,
    "/auth/forgot-password",
    "/auth/reset-password",
)

# Pages a logged out visitor may sit on without being bounced to login.
UNAUTHENTICATED_ROUTES = (
    "/login",
    "/register",
    "/forgot-password",
    "/reset-password",
)
LOGIN_ROUTE = "/login"

SHIPPING_QUOTE_PATH = "/orders/calculate-shipping"
ORDERS_PATH = "/orders"
PAYMENT_CREATE_PATH = "/payment/create"

CART_PATH = "/cart"
CART_ITEMS_PATH = "/cart/items"
CART_MERGE_PATH = "/cart/merge"
VARIANT_PATH = "/products/variants"

SHIPPING_QUOTE_CANCEL_KEY = "shipping-calculate"

GUEST_CART_KEY = "storefront_guest_cart"
MERGE_RECORD_KEY_PREFIX = "storefront_cart_merge:"

DOMESTIC_COUNTRY = "ID"
MIN_ADDRESS_LENGTH = 10
MAX_ADDRESS_LENGTH = 500
MIN_PARCEL_WEIGHT_GRAMS = 1
MAX_PARCEL_WEIGHT_GRAMS = 30_000
QUOTE_CACHE_TTL_SECONDS = 5 * 60

POLL_INTERVAL_SECONDS = 5.0
POLL_MAX_ATTEMPTS = 36
POLL_MAX_CONSECUTIVE_ERRORS = 3
