import hashlib
import hmac
import json

import httpx
import pytest

from academy.adapters.payment_stub import PaymentStubGateway
from academy.adapters.razorpay import RazorpayGateway, compute_signature, verify_checkout_signature
from academy.core.ports.payment import PaymentGatewayError, to_paise


@pytest.mark.parametrize("amount,paise", [(0.0, 0), (1.0, 100), (1499.5, 149950), (0.125, 13), (10.004, 1000)])
def test_to_paise(amount, paise):
    assert to_paise(amount) == paise


def test_signature_is_hmac_of_order_and_payment():
    expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    assert compute_signature("secret", "order_1", "pay_1") == expected
    assert verify_checkout_signature("secret", "order_1", "pay_1", expected)
    assert not verify_checkout_signature("secret", "order_1", "pay_2", expected)
    assert not verify_checkout_signature("", "order_1", "pay_1", expected)
    assert not verify_checkout_signature("secret", "order_1", "pay_1", "")


def test_stub_gateway_round_trip():
    gateway = PaymentStubGateway()
    order = gateway.create_order(50000, "INR", "PAY-1", notes={"user_id": "u1"})
    assert order.id.startswith("order_")
    assert order.to_public()["key"] == "rzp_test_stub"

    signature = gateway.sign(order.id, "pay_1")
    assert gateway.verify_signature(order.id, "pay_1", signature)
    assert not gateway.verify_signature(order.id, "pay_1", "forged")

    with pytest.raises(PaymentGatewayError):
        gateway.create_order(0, "INR", "PAY-2")


def _gateway(handler) -> RazorpayGateway:
    return RazorpayGateway("rzp_live_key", "live_secret", transport=httpx.MockTransport(handler))


def test_razorpay_create_order_posts_to_orders_api():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"id": "order_ABC", "amount": 99900, "currency": "INR", "receipt": "PAY-1", "notes": {}},
        )

    order = _gateway(handler).create_order(99900, "INR", "PAY-1")

    assert seen["path"] == "/v1/orders"
    assert seen["auth"].startswith("Basic ")
    assert seen["body"] == {"amount": 99900, "currency": "INR", "receipt": "PAY-1"}
    assert order.id == "order_ABC"
    assert order.key_id == "rzp_live_key"


def test_razorpay_errors_become_gateway_errors():
    def rejected(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"description": "The amount must be at least INR 1.00"}})

    with pytest.raises(PaymentGatewayError, match="at least INR 1.00"):
        _gateway(rejected).create_order(50, "INR", "PAY-1")

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PaymentGatewayError, match="unreachable"):
        _gateway(unreachable).fetch_payment("pay_1")


def test_razorpay_verifies_with_its_secret():
    gateway = _gateway(lambda request: httpx.Response(500))
    signature = compute_signature("live_secret", "order_1", "pay_1")
    assert gateway.verify_signature("order_1", "pay_1", signature)
    assert not gateway.verify_signature("order_1", "pay_1", compute_signature("other", "order_1", "pay_1"))


def test_razorpay_requires_credentials():
    with pytest.raises(ValueError):
        RazorpayGateway("", "secret")
