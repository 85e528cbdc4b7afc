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

"""Custom exceptions for the storefront client.

Every failure that leaves the client surfaces as a `StorefrontError` carrying
a human readable message and, where the server supplied them, per-field
errors suitable for inline display.
"""

from typing import Optional


class StorefrontError(Exception):
  """Base class for all storefront client exceptions."""

  def __init__(
      self,
      message: str,
      code: str = "INTERNAL_ERROR",
      status_code: Optional[int] = None,
      field_errors: Optional[dict[str, str]] = None,
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    self.field_errors = field_errors or {}
    super().__init__(self.message)


class AuthError(StorefrontError):
  """Raised when the session cannot be kept authenticated."""

  def __init__(self, message: str, status_code: Optional[int] = 401):
    super().__init__(message, code="AUTH_FAILED", status_code=status_code)


class ValidationError(StorefrontError):
  """Raised when a local precondition fails. No request was sent."""

  def __init__(
      self, message: str, field_errors: Optional[dict[str, str]] = None
  ):
    super().__init__(
        message, code="VALIDATION_FAILED", field_errors=field_errors
    )


class NetworkError(StorefrontError):
  """Raised on transient transport failures (timeouts, 5xx, throttling)."""

  def __init__(self, message: str, status_code: Optional[int] = None):
    super().__init__(message, code="NETWORK_ERROR", status_code=status_code)


class BusinessError(StorefrontError):
  """Raised when the server rejects a well-formed request."""

  def __init__(
      self,
      message: str,
      status_code: int = 400,
      field_errors: Optional[dict[str, str]] = None,
  ):
    super().__init__(
        message,
        code="BUSINESS_RULE_REJECTED",
        status_code=status_code,
        field_errors=field_errors,
    )


class CancellationError(StorefrontError):
  """Raised when a request or polling loop was explicitly aborted."""

  def __init__(self, message: str = "Request was cancelled"):
    super().__init__(message, code="CANCELLED")
