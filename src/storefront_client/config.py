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

"""Shared configuration for the storefront client."""

import os

from absl import flags
from pydantic import BaseModel
from pydantic import Field

from . import constants

FLAGS = flags.FLAGS

API_BASE_URL_ENV = "STOREFRONT_API_BASE_URL"

# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_string(
      "api_base_url",
      None,
      f"Base URL of the commerce API. Falls back to ${API_BASE_URL_ENV}.",
  )
  flags.DEFINE_float(
      "request_timeout", constants.DEFAULT_TIMEOUT_SECONDS, "Request timeout"
  )
  flags.DEFINE_string(
      "domestic_country",
      constants.DOMESTIC_COUNTRY,
      "Country code treated as a domestic shipping destination",
  )
  flags.DEFINE_float(
      "poll_interval",
      constants.POLL_INTERVAL_SECONDS,
      "Seconds between payment status checks",
  )
  flags.DEFINE_integer(
      "poll_max_attempts",
      constants.POLL_MAX_ATTEMPTS,
      "Maximum payment status polling ticks",
  )
  flags.DEFINE_integer(
      "poll_max_consecutive_errors",
      constants.POLL_MAX_CONSECUTIVE_ERRORS,
      "Consecutive failed status checks tolerated before polling aborts",
  )
except flags.DuplicateFlagError:
  pass


class ClientConfig(BaseModel):
  """Runtime settings shared by the gateway and the orchestration layer."""

  api_base_url: str = constants.DEFAULT_API_BASE_URL
  request_timeout: float = Field(default=constants.DEFAULT_TIMEOUT_SECONDS, gt=0)
  domestic_country: str = constants.DOMESTIC_COUNTRY
  quote_cache_ttl: float = Field(
      default=constants.QUOTE_CACHE_TTL_SECONDS, ge=0
  )
  poll_interval: float = Field(default=constants.POLL_INTERVAL_SECONDS, gt=0)
  poll_max_attempts: int = Field(default=constants.POLL_MAX_ATTEMPTS, ge=1)
  poll_max_consecutive_errors: int = Field(
      default=constants.POLL_MAX_CONSECUTIVE_ERRORS, ge=1
  )

  @classmethod
  def from_flags(cls) -> "ClientConfig":
    """Builds a config from parsed absl flags and the environment."""
    base_url = FLAGS.api_base_url or os.environ.get(
        API_BASE_URL_ENV, constants.DEFAULT_API_BASE_URL
    )
    return cls(
        api_base_url=base_url,
        request_timeout=FLAGS.request_timeout,
        domestic_country=FLAGS.domestic_country.upper(),
        poll_interval=FLAGS.poll_interval,
        poll_max_attempts=FLAGS.poll_max_attempts,
        poll_max_consecutive_errors=FLAGS.poll_max_consecutive_errors,
    )
