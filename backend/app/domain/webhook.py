"""
Renewal Webhook Models

Boundary models for MamoPay billing events. The gateway posts loosely-typed
JSON; it is mapped here onto closed enumerations and a strict event model
before any processor sees it.
"""

import copy
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from app.domain.subscription import PaymentType
from app.infrastructure.exceptions import InvalidPaymentDateError


class WebhookEventType(str, Enum):
    """Gateway event names the billing core distinguishes."""
    SUBSCRIPTION_SUCCEEDED = "subscription.succeeded"
    CHARGE_SUCCEEDED = "charge.succeeded"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Any) -> "WebhookEventType":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class ChargeStatus(str, Enum):
    """Charge states; only captured charges move money."""
    CAPTURED = "captured"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Any) -> "ChargeStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class PaymentDetails(BaseModel):
    """``custom_data.details`` attached to the payment link at checkout."""
    email: Optional[str] = None
    plan_type: Optional[str] = Field(default=None, alias="planType")
    addon_type: Optional[str] = Field(default=None, alias="addonType")
    payment_type: Optional[str] = Field(default=None, alias="paymentType")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class CustomData(BaseModel):
    details: PaymentDetails = Field(default_factory=PaymentDetails)

    model_config = ConfigDict(extra="allow")


class CustomerDetails(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class RenewalWebhookEvent(BaseModel):
    """
    Validated recurring-charge event.

    ``next_payment_date`` is left untyped here: a missing or malformed date is a fatal
    processing error rather than an ignorable payload.
    """
    event_type: WebhookEventType
    status: ChargeStatus
    id: str = Field(min_length=1)
    amount: float
    amount_currency: str
    subscription_id: str = Field(min_length=1)
    next_payment_date: Optional[Any] = None
    custom_data: CustomData = Field(default_factory=CustomData)
    customer_details: Optional[CustomerDetails] = None

    model_config = ConfigDict(extra="allow")

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def require_email(self) -> "RenewalWebhookEvent":
        if not self.email:
            raise ValueError("custom_data.details.email is required")
        return self

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RenewalWebhookEvent":
        """Validate a raw payload, keeping an untouched copy for the audit trail."""
        event = cls.model_validate(payload)
        event._raw = copy.deepcopy(payload)
        return event

    @property
    def raw_payload(self) -> dict[str, Any]:
        return self._raw

    @property
    def transaction_id(self) -> str:
        return self.id

    @property
    def details(self) -> PaymentDetails:
        return self.custom_data.details

    @property
    def email(self) -> Optional[str]:
        if self.custom_data.details.email:
            return self.custom_data.details.email
        if self.customer_details:
            return self.customer_details.email
        return None

    @property
    def payment_type(self) -> Optional[PaymentType]:
        """
        Declared payment kind.

        Defaults from the declared item when absent; None when the value
        is not a known payment type.
        """
        declared = self.details.payment_type
        if declared is None:
            if self.details.addon_type:
                return PaymentType.ADDON_PURCHASE
            return PaymentType.PLAN_PURCHASE
        try:
            return PaymentType(declared)
        except ValueError:
            return None


# =============================================================================
# Response DTOs
# =============================================================================

class WebhookResultData(BaseModel):
    user_id: str = Field(serialization_alias="userId")
    payment_id: str = Field(serialization_alias="paymentId")
    subscription_id: str = Field(serialization_alias="subscriptionId")
    addon_id: Optional[str] = Field(default=None, serialization_alias="addonId")


class WebhookResponse(BaseModel):
    """
    Processor result returned to the gateway.

    Either ``ignored`` with a ``reason`` or a ``message`` with ``data``.
    """
    received: bool = True
    ignored: Optional[bool] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    data: Optional[WebhookResultData] = None

    @classmethod
    def ignore(cls, reason: str) -> "WebhookResponse":
        return cls(ignored=True, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Date Parsing
# =============================================================================

_PAYMENT_DATE_PATTERN = re.compile(r"^([0-9]{1,2})/([0-9]{1,2})/([0-9]{4})$")


def parse_next_payment_date(value: Any) -> datetime:
    """
    Parse the gateway's ``DD/MM/YYYY`` next payment date.

    Returns midnight UTC on that calendar date, independent of server timezone.

    Raises:
        InvalidPaymentDateError: missing, malformed, or non-existent date
    """
    if value is None or value == "":
        raise InvalidPaymentDateError(
            "next_payment_date is required for renewal but was not provided"
        )

    if not isinstance(value, str):
        raise InvalidPaymentDateError(
            f"Invalid next_payment_date format: {value!r}. Expected DD/MM/YYYY.",
            value=str(value),
        )

    match = _PAYMENT_DATE_PATTERN.match(value.strip())
    if not match:
        raise InvalidPaymentDateError(
            f'Invalid next_payment_date format: "{value}". Expected DD/MM/YYYY.',
            value=value,
        )

    day, month, year = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError as e:
        raise InvalidPaymentDateError(
            f'Invalid date: "{value}". This date does not exist in the calendar.',
            value=value,
            original_error=e,
        )
