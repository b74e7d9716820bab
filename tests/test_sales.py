"""Tests for Sale API endpoints."""


def post_sale(client, items, paid_amount=0, customer_name="Hotel Grand", customer_phone=None):
    payload = {"customer_name": customer_name, "items": items, "paid_amount": paid_amount}
    if customer_phone is not None:
        payload["customer_phone"] = customer_phone
    return client.post("/api/v1/sales/", json=payload)


def test_create_sale_success(client, stock_product):
    """Test selling bags records the sale and decrements stock."""
    product = stock_product(bags=10)
    
    response = post_sale(
        client,
        [{"product_id": product["id"], "quantity": 3, "unit_price": 1200}],
        paid_amount=1000,
        customer_phone="9123456780",
    )
    
    assert response.status_code == 201
    data = response.json()
    assert data["customer_name"] == "Hotel Grand"
    assert data["customer_phone"] == "9123456780"
    assert data["total_amount"] == 3600
    assert data["paid_amount"] == 1000
    assert data["balance_amount"] == 2600
    assert data["items"][0]["weight"] == 78
    assert data["payments"][0]["transaction_kind"] == "sale"
    
    product = client.get(f"/api/v1/products/{product['id']}").json()
    assert product["quantity"] == 7
    assert product["stock"] == 182


def test_create_sale_insufficient_stock(client, stock_product):
    """Test sale fails when there aren't enough bags."""
    product = stock_product(bags=3)
    
    response = post_sale(client, [{"product_id": product["id"], "quantity": 5, "unit_price": 100}])
    
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "insufficient_stock"
    assert "Insufficient stock for Basmati Rice" in detail["message"]
    assert "Available: 3" in detail["message"]
    assert detail["product_name"] == "Basmati Rice"
    assert detail["available"] == 3
    assert detail["requested"] == 5
    assert detail["unit"] == "bags"


def test_rejected_sale_changes_nothing(client, stock_product):
    """Test a multi-item sale with one short item records nothing at all."""
    basmati = stock_product(bags=10, name="Basmati Rice")
    sona = stock_product(bags=2, name="Sona Masoori", weight_per_bag=10)
    
    response = post_sale(
        client,
        [
            {"product_id": basmati["id"], "quantity": 5, "unit_price": 1200},
            {"product_id": sona["id"], "quantity": 3, "unit_price": 500},
        ],
    )
    
    assert response.status_code == 400
    assert client.get(f"/api/v1/products/{basmati['id']}").json()["quantity"] == 10
    assert client.get(f"/api/v1/products/{sona['id']}").json()["quantity"] == 2
    assert client.get("/api/v1/sales/").json()["total"] == 0


def test_sale_lines_for_same_product_are_summed(client, stock_product):
    """Test two lines of the same product are checked against stock together."""
    product = stock_product(bags=5)
    
    response = post_sale(
        client,
        [
            {"product_id": product["id"], "quantity": 3, "unit_price": 1200},
            {"product_id": product["id"], "quantity": 3, "unit_price": 1100},
        ],
    )
    
    assert response.status_code == 400
    assert "Requested: 6" in response.json()["detail"]["message"]
    assert client.get(f"/api/v1/products/{product['id']}").json()["quantity"] == 5


def test_sale_product_not_found(client):
    """Test sale fails when the product doesn't exist."""
    response = post_sale(client, [{"product_id": 9999, "quantity": 1, "unit_price": 100}])
    
    assert response.status_code == 404


def test_multiple_sales_deplete_stock(client, stock_product):
    """Test multiple sales correctly deplete stock."""
    product = stock_product(bags=5)
    
    first = post_sale(client, [{"product_id": product["id"], "quantity": 3, "unit_price": 100}])
    assert first.status_code == 201
    
    second = post_sale(client, [{"product_id": product["id"], "quantity": 2, "unit_price": 100}])
    assert second.status_code == 201
    
    # No bags left
    third = post_sale(client, [{"product_id": product["id"], "quantity": 1, "unit_price": 100}])
    assert third.status_code == 400
    
    data = client.get(f"/api/v1/products/{product['id']}").json()
    assert data["quantity"] == 0
    assert data["stock"] == 0


def test_sale_by_weight_rounds_up(client, stock_product):
    """Test a sale given in kilograms is charged in whole bags."""
    product = stock_product(bags=10, weight_per_bag=10)
    
    response = post_sale(client, [{"product_id": product["id"], "weight": 21, "unit_price": 450}])
    
    assert response.status_code == 201
    item = response.json()["items"][0]
    assert item["quantity"] == 3
    assert item["amount"] == 1350
    assert client.get(f"/api/v1/products/{product['id']}").json()["stock"] == 70


def test_ledger_scenario(client, create_product):
    """Test purchase, sale, payment and a rejected oversell in sequence."""
    product = create_product(name="Basmati Rice", weight_per_bag=26)
    
    purchase = client.post(
        "/api/v1/purchases/",
        json={
            "biller_name": "Rice Supplier Co.",
            "items": [{"product_id": product["id"], "quantity": 10, "unit_price": 1000}],
            "paid_amount": 5000,
        }
    ).json()
    assert purchase["total_amount"] == 10000
    assert purchase["balance_amount"] == 5000
    current = client.get(f"/api/v1/products/{product['id']}").json()
    assert (current["quantity"], current["stock"]) == (10, 260)
    
    sale = post_sale(client, [{"product_id": product["id"], "quantity": 3, "unit_price": 1200}]).json()
    assert sale["total_amount"] == 3600
    current = client.get(f"/api/v1/products/{product['id']}").json()
    assert (current["quantity"], current["stock"]) == (7, 182)
    
    paid = client.post(f"/api/v1/purchases/{purchase['id']}/payments", json={"amount": 5000}).json()
    assert paid["paid_amount"] == 10000
    assert paid["balance_amount"] == 0
    
    oversell = post_sale(client, [{"product_id": product["id"], "quantity": 8, "unit_price": 1200}])
    assert oversell.status_code == 400
    assert "Available: 7" in oversell.json()["detail"]["message"]
    assert client.get(f"/api/v1/products/{product['id']}").json()["quantity"] == 7


def test_list_sales(client, stock_product):
    """Test listing sales with pagination."""
    product = stock_product(bags=100)
    for _ in range(15):
        post_sale(client, [{"product_id": product["id"], "quantity": 1, "unit_price": 100}])
    
    response = client.get("/api/v1/sales/?page=1&page_size=10")
    
    assert response.status_code == 200
    data = response.json()
    assert len(data["items"]) == 10
    assert data["total"] == 15


def test_get_sale_not_found(client):
    """Test getting a missing sale returns 404."""
    response = client.get("/api/v1/sales/9999")
    
    assert response.status_code == 404
