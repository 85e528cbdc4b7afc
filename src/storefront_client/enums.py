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

"""Enumerations for the storefront client.

These mirror the status vocabularies of the commerce API so that values can
be compared directly against what the server sends.
"""

import enum


class OrderStatus(str, enum.Enum):
  PENDING = "PENDING"
  PAID = "PAID"
  PROCESSING = "PROCESSING"
  SHIPPED = "SHIPPED"
  DELIVERED = "DELIVERED"
  COMPLETED = "COMPLETED"
  CANCELLED = "CANCELLED"
  FAILED = "FAILED"


class PaymentStatus(str, enum.Enum):
  PENDING = "PENDING"
  PAID = "PAID"
  FAILED = "FAILED"
  EXPIRED = "EXPIRED"
  CANCELLED = "CANCELLED"

  @property
  def is_terminal(self) -> bool:
    return self is not PaymentStatus.PENDING


class DestinationType(str, enum.Enum):
  DOMESTIC = "DOMESTIC"
  INTERNATIONAL = "INTERNATIONAL"


class PaymentMethod(str, enum.Enum):
  MIDTRANS_SNAP = "MIDTRANS_SNAP"
  PAYPAL = "PAYPAL"


class Currency(str, enum.Enum):
  IDR = "IDR"
  USD = "USD"
