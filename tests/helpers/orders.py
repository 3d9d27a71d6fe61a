"""Storefront order payload builders for tests."""

from typing import Any

from wset_workflow.models.order import SquarespaceOrder


def order_payload(
    *,
    order_id: str = "ord-1001",
    order_number: str = "1001",
    product_names: tuple[str, ...] = ("WSET Level 2 Award in Wines",),
    exam_date: str | None = "2026-03-31",
    course_type: str | None = None,
    email: str = "Alex.Morgan@Example.com",
    created_on: str = "2026-03-01T10:00:00Z",
    billing: bool = True,
    shipping: bool = False,
) -> dict[str, Any]:
    """A camelCase order as the storefront webhook delivers it."""
    address = {
        "firstName": "Alex",
        "lastName": "Morgan",
        "address1": "12 Cellar Lane",
        "city": "Bristol",
        "state": "",
        "postalCode": "BS1 4DJ",
        "countryCode": "GB",
        "phone": "+44 117 000 0000",
    }
    payload: dict[str, Any] = {
        "id": order_id,
        "orderNumber": order_number,
        "createdOn": created_on,
        "customerEmail": email,
        "lineItems": [
            {"id": f"li-{i}", "productName": name, "quantity": 1}
            for i, name in enumerate(product_names)
        ],
        "grandTotal": {"value": 595.0, "currency": "GBP"},
    }
    if billing:
        payload["billingAddress"] = address
    if shipping:
        payload["shippingAddress"] = address
    form = {}
    if exam_date is not None:
        form["examDate"] = exam_date
    if course_type is not None:
        form["courseType"] = course_type
    if form:
        payload["formSubmission"] = {"birthdate": "1990-05-17", "gender": "F", **form}
    return payload


def make_order(**kwargs) -> SquarespaceOrder:
    return SquarespaceOrder.model_validate(order_payload(**kwargs))
