"""Inbound e-commerce order models.

Mirrors the order payload the storefront delivers in its webhooks
(camelCase on the wire).  Only the fields the workflow reads are modelled;
unknown fields are ignored.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _OrderModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Address(_OrderModel):
    first_name: str = ""
    last_name: str = ""
    address1: str = ""
    address2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country_code: str = ""
    phone: str | None = None


class Money(_OrderModel):
    value: float = 0.0
    currency: str = "USD"


class LineItem(_OrderModel):
    id: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    product_name: str
    quantity: int = 1
    unit_price_paid: Money | None = None


class FormSubmission(_OrderModel):
    """Custom checkout form answers collected with the order."""

    birthdate: str | None = None
    gender: str | None = None
    exam_date: str | None = None
    course_type: str | None = None


class SquarespaceOrder(_OrderModel):
    """One storefront order as received from the webhook or an import."""

    id: str
    order_number: str
    created_on: datetime
    modified_on: datetime | None = None
    test_mode: bool = False
    customer_email: str
    billing_address: Address | None = None
    shipping_address: Address | None = None
    line_items: list[LineItem] = Field(default_factory=list)
    grand_total: Money | None = None
    form_submission: FormSubmission | None = None
