"""Tests for loose stock conversion and retail bills."""


def convert(client, product_id, bags):
    return client.post(
        "/api/v1/loose-stock/convert",
        json={"product_id": product_id, "bags_quantity": bags}
    )


def post_loose_sale(client, items, paid_amount=0, customer_name="Walk-in"):
    return client.post(
        "/api/v1/loose-sales/",
        json={"customer_name": customer_name, "items": items, "paid_amount": paid_amount}
    )


def test_convert_creates_loose_stock(client, stock_product):
    """Test the first conversion creates the product's loose entry."""
    product = stock_product(bags=10, weight_per_bag=25)
    
    response = convert(client, product["id"], 2)
    
    assert response.status_code == 201
    data = response.json()
    assert data["product_id"] == product["id"]
    assert data["product_name"] == "Basmati Rice"
    assert data["weight_per_bag"] == 25
    assert data["bags_converted"] == 2
    assert data["loose_quantity"] == 50
    
    product = client.get(f"/api/v1/products/{product['id']}").json()
    assert product["quantity"] == 8
    assert product["stock"] == 200


def test_convert_again_grows_same_entry(client, stock_product):
    """Test later conversions add to the existing entry."""
    product = stock_product(bags=10, weight_per_bag=25)
    
    first = convert(client, product["id"], 2).json()
    second = convert(client, product["id"], 3).json()
    
    assert second["id"] == first["id"]
    assert second["bags_converted"] == 5
    assert second["loose_quantity"] == 125
    assert len(client.get("/api/v1/loose-stock/").json()) == 1


def test_convert_insufficient_bags(client, stock_product):
    """Test converting more bags than in stock is rejected."""
    product = stock_product(bags=2)
    
    response = convert(client, product["id"], 3)
    
    assert response.status_code == 400
    assert "Insufficient stock" in response.json()["detail"]["message"]
    assert client.get(f"/api/v1/products/{product['id']}").json()["quantity"] == 2
    assert client.get("/api/v1/loose-stock/").json() == []


def test_convert_product_not_found(client):
    """Test converting a missing product returns 404."""
    response = convert(client, 9999, 1)
    
    assert response.status_code == 404


def test_convert_non_positive_bags(client, stock_product):
    """Test zero bags is a validation error."""
    product = stock_product(bags=2)
    
    response = convert(client, product["id"], 0)
    
    assert response.status_code == 422


def test_create_loose_sale(client, stock_product):
    """Test a retail bill deducts kilograms from loose stock."""
    product = stock_product(bags=4, weight_per_bag=25)
    loose = convert(client, product["id"], 2).json()
    
    response = post_loose_sale(
        client,
        [{"loose_stock_id": loose["id"], "quantity_kg": 12.5, "price_per_kg": 48}],
        paid_amount=600,
    )
    
    assert response.status_code == 201
    data = response.json()
    assert data["total_amount"] == 600
    assert data["paid_amount"] == 600
    assert data["balance_amount"] == 0
    assert data["items"][0]["product_name"] == "Basmati Rice"
    assert data["items"][0]["quantity_kg"] == 12.5
    assert data["payments"][0]["transaction_kind"] == "loose_sale"
    
    loose = client.get(f"/api/v1/loose-stock/{loose['id']}").json()
    assert loose["loose_quantity"] == 37.5
    assert loose["bags_converted"] == 2


def test_loose_sale_insufficient(client, stock_product):
    """Test a retail bill larger than the loose pool is rejected in full."""
    product = stock_product(bags=4, weight_per_bag=10)
    loose = convert(client, product["id"], 1).json()
    
    response = post_loose_sale(
        client,
        [
            {"loose_stock_id": loose["id"], "quantity_kg": 6, "price_per_kg": 50},
            {"loose_stock_id": loose["id"], "quantity_kg": 5, "price_per_kg": 50},
        ],
    )
    
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "Insufficient stock" in detail["message"]
    assert (detail["available"], detail["requested"], detail["unit"]) == (10, 11, "kg")
    assert client.get(f"/api/v1/loose-stock/{loose['id']}").json()["loose_quantity"] == 10
    assert client.get("/api/v1/loose-sales/").json()["total"] == 0


def test_loose_sale_unknown_entry(client):
    """Test a retail bill for a missing loose entry returns 404."""
    response = post_loose_sale(
        client, [{"loose_stock_id": 9999, "quantity_kg": 1, "price_per_kg": 50}]
    )
    
    assert response.status_code == 404


def test_loose_pool_conservation(client, stock_product):
    """Test loose quantity equals everything converted minus everything sold."""
    product = stock_product(bags=10, weight_per_bag=5)
    loose_id = convert(client, product["id"], 3).json()["id"]
    convert(client, product["id"], 2)
    
    for kg in (1.5, 4, 7.25):
        post_loose_sale(client, [{"loose_stock_id": loose_id, "quantity_kg": kg, "price_per_kg": 60}])
    
    loose = client.get(f"/api/v1/loose-stock/{loose_id}").json()
    assert loose["pool_size"] == loose["bags_converted"] * loose["weight_per_bag"] == 25
    assert loose["sold_quantity"] == 1.5 + 4 + 7.25
    assert loose["loose_quantity"] == loose["pool_size"] - loose["sold_quantity"] == 12.25
    
    product = client.get(f"/api/v1/products/{product['id']}").json()
    assert product["quantity"] == 5
    assert product["stock"] == 25


def test_loose_sale_payment(client, stock_product):
    """Test paying off a retail bill in installments."""
    product = stock_product(bags=2, weight_per_bag=10)
    loose = convert(client, product["id"], 1).json()
    sale = post_loose_sale(
        client, [{"loose_stock_id": loose["id"], "quantity_kg": 4, "price_per_kg": 50}]
    ).json()
    
    response = client.post(
        f"/api/v1/loose-sales/{sale['id']}/payments",
        json={"amount": 150, "note": "cash"}
    )
    
    assert response.status_code == 200
    data = response.json()
    assert data["paid_amount"] == 150
    assert data["balance_amount"] == 50
    assert data["payments"][0]["note"] == "cash"


def test_get_loose_stock_not_found(client):
    """Test getting a missing loose entry returns 404."""
    assert client.get("/api/v1/loose-stock/9999").status_code == 404
    assert client.get("/api/v1/loose-sales/9999").status_code == 404
