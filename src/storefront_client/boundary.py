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

"""Translation between client models and the commerce API wire format.

Each payload exchanged with the API is declared once as a `WireModel` in
`storefront_client.models`; field aliases on those models are the only place
where client attribute names are mapped to wire names. This module turns
those models into request bodies, parses response bodies back into them, and
normalizes HTTP failures into `StorefrontError` subclasses.
"""

import json
import logging
from typing import Any, TypeVar

import httpx
import pydantic
from pydantic import BaseModel
from pydantic import ConfigDict

from .exceptions import AuthError
from .exceptions import BusinessError
from .exceptions import NetworkError
from .exceptions import StorefrontError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"

# Throttling and timeouts are as transient as a dropped connection.
TRANSIENT_STATUS_CODES = frozenset({408, 429})

M = TypeVar("M", bound=BaseModel)


class WireModel(BaseModel):
  """Base class for all payloads sent to or received from the API."""

  model_config = ConfigDict(populate_by_name=True, extra="ignore")


def to_wire(dto: BaseModel) -> dict[str, Any]:
  """Serializes `dto` under its wire names, dropping unset optionals."""
  return dto.model_dump(mode="json", by_alias=True, exclude_none=True)


def unwrap(payload: Any) -> Any:
  """Strips the `{"status": ..., "data": ...}` response envelope."""
  if isinstance(payload, dict) and isinstance(
      payload.get("data"), (dict, list)
  ):
    return payload["data"]
  return payload


def from_wire(model: type[M], payload: Any) -> M:
  """Parses a (possibly enveloped) response body into `model`."""
  try:
    return model.model_validate(unwrap(payload))
  except pydantic.ValidationError as exc:
    logger.error("Unexpected %s payload: %s", model.__name__, exc)
    raise StorefrontError(
        f"Malformed {model.__name__} in server response",
        code="MALFORMED_RESPONSE",
    ) from exc


def parse_body(response: httpx.Response) -> Any:
  """Decodes a JSON response body; an empty body decodes to `{}`."""
  if not response.content:
    return {}
  try:
    return response.json()
  except json.JSONDecodeError as exc:
    raise StorefrontError(
        "Server returned a non-JSON response",
        code="MALFORMED_RESPONSE",
        status_code=response.status_code,
    ) from exc


def _field_errors(body: Any) -> dict[str, str]:
  errors = body.get("errors") if isinstance(body, dict) else None
  if not isinstance(errors, list):
    return {}
  return {
      err["field"]: err["message"]
      for err in errors
      if isinstance(err, dict) and err.get("field") and err.get("message")
  }


def error_from_response(response: httpx.Response) -> StorefrontError:
  """Normalizes an HTTP error response into a `StorefrontError`."""
  try:
    body = response.json() if response.content else None
  except json.JSONDecodeError:
    body = None

  message = None
  if isinstance(body, dict) and isinstance(body.get("message"), str):
    message = body["message"]
  message = message or response.reason_phrase or DEFAULT_ERROR_MESSAGE

  status = response.status_code
  if status == 401:
    return AuthError(message, status_code=status)
  if status in TRANSIENT_STATUS_CODES or status >= 500:
    return NetworkError(message, status_code=status)
  return BusinessError(
      message, status_code=status, field_errors=_field_errors(body)
  )


def error_from_transport(exc: httpx.HTTPError) -> NetworkError:
  """Normalizes a transport failure (no response) into a `NetworkError`."""
  return NetworkError(str(exc) or exc.__class__.__name__)
