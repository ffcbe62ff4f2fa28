from datetime import UTC, datetime, timedelta

COURSE = {
    "title": "Options Trading Masterclass",
    "short_description": "Greeks, spreads and hedging",
    "price": 1000.0,
    "is_published": True,
    "category": "Options",
}


def _create_course(api, admin, **fields):
    resp = api.client.post(
        "/api/catalog/courses", json={**COURSE, **fields}, headers=api.headers(admin)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _coupon(api, admin, code="SAVE10", **fields):
    now = datetime.now(UTC)
    payload = {
        "code": code,
        "discount_type": "PERCENTAGE",
        "discount_value": 10,
        "valid_from": (now - timedelta(days=1)).isoformat(),
        "valid_until": (now + timedelta(days=30)).isoformat(),
        **fields,
    }
    resp = api.client.post("/api/coupons", json=payload, headers=api.headers(admin))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# --- Catalog ---


def test_catalog_admin_routes_require_admin(api, student):
    assert api.client.post("/api/catalog/courses", json=COURSE).status_code == 401

    resp = api.client.post("/api/catalog/courses", json=COURSE, headers=api.headers(student))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Admin access required"


def test_create_list_and_fetch_course(api, admin):
    created = _create_course(api, admin)
    assert created["slug"] == "options-trading-masterclass"
    assert created["item_type"] == "COURSE"
    assert created["pricing"]["effective_price"] == 1000.0

    _create_course(api, admin, title="Hidden Draft", is_published=False)

    listing = api.client.get("/api/catalog/courses", params={"limit": 5})
    assert listing.status_code == 200
    body = listing.json()
    assert [i["title"] for i in body["data"]] == ["Options Trading Masterclass"]
    assert body["pagination"] == {"page": 1, "limit": 5, "total": 1, "total_pages": 1}

    by_slug = api.client.get("/api/catalog/course/slug/options-trading-masterclass")
    assert by_slug.status_code == 200
    assert by_slug.json()["data"]["id"] == created["id"]

    assert api.client.get("/api/catalog/course/slug/hidden-draft").status_code == 404

    admin_list = api.client.get("/api/catalog/courses/admin/all", headers=api.headers(admin))
    assert admin_list.json()["pagination"]["total"] == 2


def test_duplicate_slug_conflicts(api, admin):
    _create_course(api, admin)
    resp = api.client.post("/api/catalog/courses", json=COURSE, headers=api.headers(admin))
    assert resp.status_code == 409


def test_unknown_catalog_type_is_404(api):
    resp = api.client.get("/api/catalog/spaceships")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_update_toggle_and_delete(api, admin):
    created = _create_course(api, admin)
    headers = api.headers(admin)
    base = f"/api/catalog/courses/id/{created['id']}"

    updated = api.client.put(base, json={"sale_price": 800.0}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["pricing"]["effective_price"] == 800.0

    toggled = api.client.patch(f"{base}/publish", headers=headers)
    assert toggled.json()["message"] == "Item unpublished"
    assert api.client.get("/api/catalog/courses").json()["pagination"]["total"] == 0

    assert api.client.delete(base, headers=headers).status_code == 200
    assert api.client.get(base, headers=headers).status_code == 404


def test_update_rejects_null_for_required_fields(api, admin):
    created = _create_course(api, admin, sale_price=800.0)
    headers = api.headers(admin)
    base = f"/api/catalog/courses/id/{created['id']}"

    for field in ("title", "price", "is_published", "badges"):
        resp = api.client.put(base, json={field: None}, headers=headers)
        assert resp.status_code == 400, field
        assert resp.json()["errors"][0]["field"] == field

    unchanged = api.client.get(base, headers=headers).json()["data"]
    assert unchanged["title"] == COURSE["title"]
    assert unchanged["price"] == 1000.0

    # optional fields can still be cleared
    cleared = api.client.put(base, json={"sale_price": None}, headers=headers)
    assert cleared.status_code == 200
    assert cleared.json()["data"]["pricing"]["effective_price"] == 1000.0


def test_coupon_update_rejects_null_discount(api, admin):
    coupon = _coupon(api, admin)
    resp = api.client.put(
        f"/api/coupons/{coupon['id']}", json={"discount_value": None}, headers=api.headers(admin)
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["code"] == "discount_value_required"


def test_search_spans_catalog(api, admin):
    _create_course(api, admin)
    resp = api.client.get("/api/search", params={"q": "options"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total"] == 1
    assert data["results"]["COURSE"][0]["title"] == "Options Trading Masterclass"


# --- Cart ---


def test_cart_add_remove_and_merge(api, student, admin):
    course = _create_course(api, admin)
    headers = api.headers(student)
    item = {"item_type": "course", "item_id": course["id"]}

    added = api.client.post("/api/cart/add", json=item, headers=headers)
    assert added.status_code == 201
    assert added.json()["data"]["cart"]["COURSE"] == [course["id"]]
    again = api.client.post("/api/cart/add", json=item, headers=headers)
    assert again.json()["message"] == "Item already in cart"

    merged = api.client.post(
        "/api/cart/merge", json={"cart": {"EBOOK": ["ebook-1"]}}, headers=headers
    )
    assert merged.json()["data"]["count"] == 2

    removed = api.client.post("/api/cart/remove", json=item, headers=headers)
    assert removed.json()["data"]["cart"]["COURSE"] == []

    cleared = api.client.delete("/api/cart", headers=headers)
    assert cleared.json()["data"]["count"] == 0


# --- Checkout ---


def test_paid_checkout_round_trip(api, student, admin):
    course = _create_course(api, admin)
    _coupon(api, admin)
    headers = api.headers(student)
    items = {"COURSE": [course["id"]]}

    coupon = api.client.post(
        "/api/coupons/validate", json={"code": "save10", "total_amount": 1000}, headers=headers
    )
    assert coupon.status_code == 200
    assert coupon.json()["data"]["final_amount"] == 900.0

    quote = api.client.post(
        "/api/orders/quote", json={"items": items, "coupon_code": "SAVE10"}, headers=headers
    )
    assert quote.json()["data"]["final_amount"] == 900.0

    init = api.client.post(
        "/api/orders/init-payment", json={"items": items, "coupon_code": "SAVE10"}, headers=headers
    )
    assert init.status_code == 200
    gateway_order = init.json()["data"]["gateway_order"]
    assert gateway_order["amount"] == 90000

    payment_id = "pay_test123"
    verify = {
        "items": items,
        "coupon_code": "SAVE10",
        "razorpay_order_id": gateway_order["id"],
        "razorpay_payment_id": payment_id,
        "razorpay_signature": api.services.gateway.sign(gateway_order["id"], payment_id),
    }
    resp = api.client.post("/api/orders/verify-payment", json=verify, headers=headers)
    assert resp.status_code == 201
    order = resp.json()["data"]
    assert order["payment_status"] == "PAID"
    assert order["final_amount"] == 900.0
    assert "signature" not in order

    # replaying the same payment returns the same order
    replay = api.client.post("/api/orders/verify-payment", json=verify, headers=headers)
    assert replay.json()["data"]["id"] == order["id"]

    check = api.client.get(f"/api/orders/check-enrollment/course/{course['id']}", headers=headers)
    assert check.json()["data"] == {"is_enrolled": True}

    enrollments = api.client.get("/api/orders/my-enrollments", headers=headers).json()["data"]
    assert enrollments[0]["item"]["title"] == "Options Trading Masterclass"

    mine = api.client.get("/api/orders/my-orders", headers=headers).json()["data"]
    assert [o["id"] for o in mine] == [order["id"]]


def test_verify_payment_rejects_bad_signature(api, student, admin):
    course = _create_course(api, admin)
    headers = api.headers(student)
    items = {"COURSE": [course["id"]]}
    gateway_order = api.client.post(
        "/api/orders/init-payment", json={"items": items}, headers=headers
    ).json()["data"]["gateway_order"]

    resp = api.client.post(
        "/api/orders/verify-payment",
        json={
            "items": items,
            "razorpay_order_id": gateway_order["id"],
            "razorpay_payment_id": "pay_forged",
            "razorpay_signature": "deadbeef",
        },
        headers=headers,
    )
    assert resp.status_code == 400
    assert api.client.get("/api/orders/my-orders", headers=headers).json()["data"] == []


def test_verify_payment_rejects_items_not_in_the_started_payment(api, student, admin):
    course = _create_course(api, admin)
    ebook = api.client.post(
        "/api/catalog/ebooks",
        json={"title": "Candlestick Atlas", "price": 5000.0, "is_published": True},
        headers=api.headers(admin),
    ).json()["data"]
    headers = api.headers(student)
    gateway_order = api.client.post(
        "/api/orders/init-payment", json={"items": {"COURSE": [course["id"]]}}, headers=headers
    ).json()["data"]["gateway_order"]

    resp = api.client.post(
        "/api/orders/verify-payment",
        json={
            "items": {"COURSE": [course["id"]], "EBOOK": [ebook["id"]]},
            "razorpay_order_id": gateway_order["id"],
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": api.services.gateway.sign(gateway_order["id"], "pay_1"),
        },
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["code"] == "items_mismatch"
    assert api.client.get("/api/orders/my-orders", headers=headers).json()["data"] == []


def test_free_course_completion_issues_certificate(api, student, admin):
    course = _create_course(api, admin, title="Trading Psychology", price=0.0, is_free=True)
    headers = api.headers(student)

    init = api.client.post(
        "/api/orders/init-payment", json={"items": {"COURSE": [course["id"]]}}, headers=headers
    )
    assert init.json()["message"] == "No payment required"

    done = api.client.post(
        "/api/orders/complete-free", json={"items": {"COURSE": [course["id"]]}}, headers=headers
    )
    assert done.status_code == 201
    assert done.json()["data"]["payment_status"] == "FREE"

    admin_headers = api.headers(admin)
    session = api.client.post(
        f"/api/courses/{course['id']}/sessions",
        json={"title": "Mindset", "is_published": True},
        headers=admin_headers,
    ).json()["data"]
    chapter = api.client.post(
        f"/api/courses/sessions/{session['id']}/chapters",
        json={"title": "Fear and Greed", "video_url": "https://videos.test/1", "is_published": True},
        headers=admin_headers,
    ).json()["data"]

    halfway = api.client.post(
        f"/api/courses/chapters/{chapter['id']}/progress", json={"progress": 50}, headers=headers
    )
    assert halfway.status_code == 200
    assert halfway.json()["data"]["course"]["percentage"] == 0

    progress = api.client.post(
        f"/api/courses/chapters/{chapter['id']}/progress", json={"progress": 150}, headers=headers
    )
    assert progress.status_code == 200
    assert progress.json()["message"] == "Course completed"
    assert progress.json()["data"]["chapter"]["progress"] == 100
    assert progress.json()["data"]["course"]["completed_at"] is not None

    certs = api.client.get("/api/certificates/mine", headers=headers).json()["data"]
    assert len(certs) == 1
    cert = certs[0]
    assert cert["title"] == "Trading Psychology"
    assert "file_path" not in cert

    verified = api.client.get(f"/api/certificates/verify/{cert['certificate_no'].lower()}")
    assert verified.status_code == 200
    assert verified.json()["data"]["valid"] is True

    pdf = api.client.get(f"/api/certificates/{cert['id']}/download", headers=headers)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_orders_of_other_users_are_hidden(api, student, admin, new_user):
    course = _create_course(api, admin, title="Free Intro", price=0.0, is_free=True)
    order = api.client.post(
        "/api/orders/complete-free",
        json={"items": {"COURSE": [course["id"]]}},
        headers=api.headers(student),
    ).json()["data"]

    stranger = new_user("stranger@example.com")
    resp = api.client.get(f"/api/orders/{order['id']}", headers=api.headers(stranger))
    assert resp.status_code == 404

    as_admin = api.client.get(f"/api/orders/{order['id']}", headers=api.headers(admin))
    assert as_admin.status_code == 200

    listing = api.client.get("/api/orders/admin/all", headers=api.headers(admin))
    assert listing.json()["pagination"]["total"] == 1
