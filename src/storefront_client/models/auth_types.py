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

"""Authentication payloads."""

from typing import Any, Optional

from pydantic import Field

from ..boundary import WireModel


class LoginRequest(WireModel):
  email: str
  password: str


class RegisterRequest(WireModel):
  email: str
  password: str
  first_name: str
  last_name: str
  phone: Optional[str] = Field(default=None, alias="phone_number")


class TokenGrant(WireModel):
  """Credentials issued on login or registration."""

  access_token: str
  refresh_token: Optional[str] = None
  expires_in: Optional[float] = None
  user: dict[str, Any] = Field(default_factory=dict)


class RefreshRequest(WireModel):
  refresh_token: str


class RefreshGrant(WireModel):
  access_token: str
  expires_in: Optional[float] = None
