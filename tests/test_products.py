"""Tests for Product API endpoints."""
from stockroom.config import get_settings
from stockroom.models.category import Category
from stockroom.models.product import Product


PNG = ("photo.png", b"\x89PNG\r\n\x1a\nfake-image-bytes", "image/png")


def stored_images(upload_dir):
    return sorted(p.name for p in upload_dir.iterdir()) if upload_dir.exists() else []


def test_create_product(client, admin_headers):
    """Test creating a new product with a new category."""
    response = client.post(
        "/api/v1/products/",
        data={
            "name": "  Coffee Beans ",
            "price": "4990",
            "stock": "12",
            "sku": " CB-001 ",
            "categoryName": "Groceries"
        },
        headers=admin_headers
    )

    assert response.status_code == 201
    data = response.json()["product"]
    assert data["name"] == "Coffee Beans"
    assert data["price"] == 4990
    assert data["stock"] == 12
    assert data["sku"] == "CB-001"
    assert data["isActive"] is True
    assert data["image"] is None
    assert data["category"]["name"] == "Groceries"
    assert "id" in data
    assert "createdAt" in data


def test_create_product_reuses_category_case_insensitively(client, create_product, db_session):
    """An existing category name is matched regardless of case."""
    first = create_product(name="Mug", categoryName="Kitchen")
    second = create_product(name="Plate", categoryName="  kitchen ")

    assert second["categoryId"] == first["categoryId"]
    assert second["category"]["name"] == "Kitchen"
    assert db_session.query(Category).count() == 1


def test_create_product_unseen_category_creates_exactly_one(client, create_product, db_session):
    create_product(name="Mug", categoryName="Kitchen")
    create_product(name="Drill", categoryName="Tools")

    names = sorted(c.name for c in db_session.query(Category).all())
    assert names == ["Kitchen", "Tools"]


def test_create_product_with_category_id(client, create_product):
    existing = create_product(name="Mug", categoryName="Kitchen")

    product = create_product(name="Bowl", categoryName=None, categoryId=str(existing["categoryId"]))

    assert product["category"]["id"] == existing["categoryId"]


def test_create_product_unknown_category_id(client, admin_headers):
    response = client.post(
        "/api/v1/products/",
        data={"name": "Bowl", "price": "100", "stock": "1", "categoryId": "999"},
        headers=admin_headers
    )

    assert response.status_code == 404
    assert "error" in response.json()


def test_create_product_missing_fields(client, admin_headers):
    response = client.post(
        "/api/v1/products/",
        data={"name": "No price", "stock": "1", "categoryName": "Misc"},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert "Missing required fields" in response.json()["error"]


def test_create_product_requires_single_category_reference(client, create_product, admin_headers):
    existing = create_product(categoryName="Kitchen")

    response = client.post(
        "/api/v1/products/",
        data={
            "name": "Both",
            "price": "100",
            "stock": "1",
            "categoryId": str(existing["categoryId"]),
            "categoryName": "Other"
        },
        headers=admin_headers
    )

    assert response.status_code == 400


def test_create_product_invalid_price(client, admin_headers):
    """Test creating product with invalid price fails."""
    response = client.post(
        "/api/v1/products/",
        data={"name": "Test Product", "price": "-10", "stock": "10", "categoryName": "Misc"},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert "Price" in response.json()["error"]


def test_create_product_invalid_stock(client, admin_headers):
    """Test creating product with negative stock fails."""
    response = client.post(
        "/api/v1/products/",
        data={"name": "Test Product", "price": "100", "stock": "-5", "categoryName": "Misc"},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert "Stock" in response.json()["error"]


def test_create_product_short_category_name(client, admin_headers):
    response = client.post(
        "/api/v1/products/",
        data={"name": "Test Product", "price": "100", "stock": "5", "categoryName": " a "},
        headers=admin_headers
    )

    assert response.status_code == 400


def test_create_product_duplicate_sku(client, create_product, admin_headers):
    create_product(name="First", sku="SKU-1")

    response = client.post(
        "/api/v1/products/",
        data={"name": "Second", "price": "100", "stock": "1", "sku": "  SKU-1  ", "categoryName": "Misc"},
        headers=admin_headers
    )

    assert response.status_code == 409


def test_create_product_sku_too_long(client, admin_headers):
    response = client.post(
        "/api/v1/products/",
        data={"name": "Long", "price": "100", "stock": "1", "sku": "X" * 51, "categoryName": "Misc"},
        headers=admin_headers
    )

    assert response.status_code == 400


def test_create_product_disabled(client, create_product):
    product = create_product(isActive="false")

    assert product["isActive"] is False


def test_create_product_invalid_is_active(client, admin_headers):
    response = client.post(
        "/api/v1/products/",
        data={"name": "Flag", "price": "100", "stock": "1", "categoryName": "Misc", "isActive": "maybe"},
        headers=admin_headers
    )

    assert response.status_code == 400


def test_create_product_requires_admin(client, seller_headers):
    data = {"name": "Nope", "price": "100", "stock": "1", "categoryName": "Misc"}

    assert client.post("/api/v1/products/", data=data).status_code == 401
    assert client.post("/api/v1/products/", data=data, headers=seller_headers).status_code == 403


def test_create_product_with_image(client, create_product, upload_dir):
    product = create_product(files={"image": PNG})

    base = f"{get_settings().BACKEND_URL}/uploads/products/"
    assert product["image"].startswith(base)
    filename = product["image"][len(base):]
    assert filename.endswith(".png")
    assert stored_images(upload_dir) == [filename]


def test_create_product_failure_removes_uploaded_image(client, admin_headers, upload_dir):
    response = client.post(
        "/api/v1/products/",
        data={"name": "Broken", "price": "0", "stock": "1", "categoryName": "Misc"},
        files={"image": PNG},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert stored_images(upload_dir) == []


def test_create_product_rejects_non_image_upload(client, admin_headers, upload_dir):
    response = client.post(
        "/api/v1/products/",
        data={"name": "Doc", "price": "100", "stock": "1", "categoryName": "Misc"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert stored_images(upload_dir) == []


def test_get_product(client, create_product):
    """Test getting a product by ID."""
    product_id = create_product(name="Lookup")["id"]

    response = client.get(f"/api/v1/products/{product_id}")

    assert response.status_code == 200
    data = response.json()["product"]
    assert data["id"] == product_id
    assert data["name"] == "Lookup"


def test_get_product_not_found(client):
    """Test getting non-existent product returns 404."""
    response = client.get("/api/v1/products/9999")

    assert response.status_code == 404
    assert response.json()["error"] == "Product not found"


def test_get_disabled_product_admin_only(client, create_product, admin_headers):
    product_id = create_product(isActive="false")["id"]

    assert client.get(f"/api/v1/products/{product_id}").status_code == 404
    assert client.get(f"/api/v1/products/{product_id}", headers=admin_headers).status_code == 200


def test_list_products(client, create_product):
    """Test listing products with pagination."""
    for i in range(15):
        create_product(name=f"Product {i:02d}", price=str(100 + i))

    response = client.get("/api/v1/products/?page=1&limit=10")

    assert response.status_code == 200
    data = response.json()
    assert len(data["products"]) == 10
    assert data["pagination"] == {
        "currentPage": 1,
        "totalPages": 2,
        "totalItems": 15,
        "itemsPerPage": 10,
        "hasNextPage": True,
        "hasPrevPage": False
    }

    second = client.get("/api/v1/products/?page=2&limit=10").json()
    assert len(second["products"]) == 5
    assert second["pagination"]["hasNextPage"] is False
    assert second["pagination"]["hasPrevPage"] is True


def test_list_products_defaults(client, create_product):
    create_product(name="Banana")
    create_product(name="Apple")

    data = client.get("/api/v1/products/").json()

    assert [p["name"] for p in data["products"]] == ["Apple", "Banana"]
    assert data["filters"]["orderBy"] == "name"
    assert data["filters"]["order"] == "asc"
    assert data["pagination"]["itemsPerPage"] == 10


def test_list_products_rejects_out_of_range_limit(client):
    assert client.get("/api/v1/products/?limit=101").status_code == 400
    assert client.get("/api/v1/products/?page=0").status_code == 400


def test_list_products_sort_by_price_desc(client, create_product):
    create_product(name="Cheap", price="100")
    create_product(name="Pricey", price="900")
    create_product(name="Middle", price="500")

    data = client.get("/api/v1/products/?orderBy=price&order=desc").json()

    assert [p["price"] for p in data["products"]] == [900, 500, 100]


def test_list_products_sort_by_category_name(client, create_product):
    """Sorting by category uses the category name, not its id."""
    create_product(name="In Zeta", categoryName="Zeta")
    create_product(name="In Alpha", categoryName="Alpha")
    create_product(name="In Mid", categoryName="Mid")

    data = client.get("/api/v1/products/?orderBy=category").json()

    assert [p["category"]["name"] for p in data["products"]] == ["Alpha", "Mid", "Zeta"]


def test_list_products_invalid_order_by(client):
    response = client.get("/api/v1/products/?orderBy=sku")

    assert response.status_code == 400
    assert "name, price, stock, category" in response.json()["error"]


def test_list_products_invalid_category_id(client):
    assert client.get("/api/v1/products/?categoryId=0").status_code == 400


def test_search_products(client, create_product):
    """Search matches name, SKU or category name, case-insensitively."""
    create_product(name="Apple iPhone", categoryName="Phones")
    create_product(name="Samsung Galaxy", categoryName="Phones", sku="APL-SAMSUNG")
    create_product(name="Garden Hose", categoryName="Apples and Garden")
    create_product(name="Desk Lamp", categoryName="Office")

    response = client.get("/api/v1/products/?search=apl")
    assert {p["name"] for p in response.json()["products"]} == {"Samsung Galaxy"}

    response = client.get("/api/v1/products/?search=APPLE")
    data = response.json()
    assert data["pagination"]["totalItems"] == 2
    assert {p["name"] for p in data["products"]} == {"Apple iPhone", "Garden Hose"}


def test_search_products_treats_wildcards_literally(client, create_product):
    create_product(name="Hammer", sku="H-1")
    create_product(name="Saw", sku="S_1")
    create_product(name="Discount 50% Drill", sku="D-1")

    def names(term):
        return [p["name"] for p in client.get("/api/v1/products/", params={"search": term}).json()["products"]]

    assert names("_") == ["Saw"]
    assert names("%") == ["Discount 50% Drill"]
    assert names("h_1") == []


def test_filter_products_by_category(client, create_product):
    phone = create_product(name="Phone", categoryName="Phones")
    create_product(name="Lamp", categoryName="Office")

    data = client.get(f"/api/v1/products/?categoryId={phone['categoryId']}").json()

    assert [p["name"] for p in data["products"]] == ["Phone"]
    assert data["filters"]["categoryId"] == phone["categoryId"]


def test_disabled_products_hidden_from_non_admins(client, create_product, admin_headers, seller_headers):
    create_product(name="Visible")
    create_product(name="Hidden", isActive="false")

    anonymous = client.get("/api/v1/products/").json()
    seller = client.get("/api/v1/products/?isActive=false", headers=seller_headers).json()
    admin = client.get("/api/v1/products/", headers=admin_headers).json()
    admin_disabled = client.get("/api/v1/products/?isActive=false", headers=admin_headers).json()

    assert [p["name"] for p in anonymous["products"]] == ["Visible"]
    assert [p["name"] for p in seller["products"]] == ["Visible"]
    assert {p["name"] for p in admin["products"]} == {"Visible", "Hidden"}
    assert [p["name"] for p in admin_disabled["products"]] == ["Hidden"]


def test_update_product(client, create_product, admin_headers):
    """Only the supplied fields change."""
    product = create_product(name="Original Name", price="5000", stock="10", sku="ORIG-1")

    response = client.put(
        f"/api/v1/products/{product['id']}",
        data={"price": "7500"},
        headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()["product"]
    assert data["price"] == 7500
    assert data["name"] == "Original Name"
    assert data["stock"] == 10  # Stock should remain unchanged
    assert data["sku"] == "ORIG-1"
    assert data["categoryId"] == product["categoryId"]


def test_update_product_without_fields(client, create_product, admin_headers, db_session):
    product = create_product(name="Untouched", price="5000")

    response = client.put(f"/api/v1/products/{product['id']}", data={}, headers=admin_headers)

    assert response.status_code == 400
    stored = db_session.get(Product, product["id"])
    assert stored.name == "Untouched"
    assert stored.price == 5000


def test_update_product_not_found(client, admin_headers):
    response = client.put("/api/v1/products/9999", data={"name": "Ghost"}, headers=admin_headers)

    assert response.status_code == 404


def test_update_product_invalid_field(client, create_product, admin_headers):
    product = create_product()

    response = client.put(f"/api/v1/products/{product['id']}", data={"name": "   "}, headers=admin_headers)

    assert response.status_code == 400


def test_update_product_keeps_own_sku(client, create_product, admin_headers):
    product = create_product(name="Keeper", sku="KEEP-1")

    response = client.put(
        f"/api/v1/products/{product['id']}",
        data={"sku": "KEEP-1", "stock": "3"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["product"]["sku"] == "KEEP-1"


def test_update_product_with_only_its_own_sku(client, create_product, admin_headers):
    product = create_product(name="Keeper", sku="KEEP-1", stock="7")

    response = client.put(f"/api/v1/products/{product['id']}", data={"sku": " KEEP-1 "}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["product"]
    assert data["sku"] == "KEEP-1"
    assert data["stock"] == 7


def test_update_product_sku_taken(client, create_product, admin_headers):
    create_product(name="Owner", sku="TAKEN-1")
    other = create_product(name="Other", sku="OTHER-1")

    response = client.put(
        f"/api/v1/products/{other['id']}",
        data={"sku": " TAKEN-1 "},
        headers=admin_headers
    )

    assert response.status_code == 409


def test_update_product_clears_sku(client, create_product, admin_headers):
    product = create_product(sku="GONE-1")

    response = client.put(f"/api/v1/products/{product['id']}", data={"sku": " "}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["product"]["sku"] is None


def test_update_product_changes_category(client, create_product, admin_headers, db_session):
    product = create_product(categoryName="Kitchen")

    response = client.put(
        f"/api/v1/products/{product['id']}",
        data={"categoryName": "Outdoor"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["product"]["category"]["name"] == "Outdoor"
    assert db_session.query(Category).count() == 2


def test_update_product_is_active(client, create_product, admin_headers):
    product = create_product()

    response = client.put(
        f"/api/v1/products/{product['id']}",
        data={"isActive": "false"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["product"]["isActive"] is False


def test_update_product_replaces_image(client, create_product, admin_headers, upload_dir):
    product = create_product(files={"image": PNG})
    old_file = product["image"].rsplit("/", 1)[1]

    response = client.put(
        f"/api/v1/products/{product['id']}",
        files={"image": ("new.webp", b"RIFF-fake-webp", "image/webp")},
        headers=admin_headers
    )

    assert response.status_code == 200
    new_file = response.json()["product"]["image"].rsplit("/", 1)[1]
    assert new_file != old_file
    assert new_file.endswith(".webp")
    assert stored_images(upload_dir) == [new_file]


def test_update_product_failure_removes_new_image(client, create_product, admin_headers, upload_dir):
    product = create_product(files={"image": PNG})
    old_file = product["image"].rsplit("/", 1)[1]

    response = client.put(
        f"/api/v1/products/{product['id']}",
        data={"price": "-1"},
        files={"image": ("new.png", b"\x89PNG-new", "image/png")},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert stored_images(upload_dir) == [old_file]


def test_toggle_product_status(client, create_product, admin_headers):
    product = create_product()

    first = client.patch(f"/api/v1/products/{product['id']}/toggle-status", headers=admin_headers)
    second = client.patch(f"/api/v1/products/{product['id']}/toggle-status", headers=admin_headers)

    assert first.status_code == 200
    assert first.json()["product"]["isActive"] is False
    assert second.json()["product"]["isActive"] is True


def test_toggle_product_status_not_found(client, admin_headers):
    response = client.patch("/api/v1/products/9999/toggle-status", headers=admin_headers)

    assert response.status_code == 404


def test_delete_product(client, create_product, admin_headers, upload_dir):
    """Test deleting a product that was never sold."""
    product = create_product(name="To Delete", files={"image": PNG})

    response = client.delete(f"/api/v1/products/{product['id']}", headers=admin_headers)
    assert response.status_code == 200

    # Verify it's deleted
    get_response = client.get(f"/api/v1/products/{product['id']}", headers=admin_headers)
    assert get_response.status_code == 404
    assert stored_images(upload_dir) == []


def test_delete_sold_product_conflicts(client, create_product, admin_headers, seller_headers):
    product = create_product(stock="5")
    client.patch(f"/api/v1/products/{product['id']}/sell", json={"quantity": 1}, headers=seller_headers)

    response = client.delete(f"/api/v1/products/{product['id']}", headers=admin_headers)

    assert response.status_code == 409
    assert client.get(f"/api/v1/products/{product['id']}").status_code == 200


def test_delete_product_requires_admin(client, create_product, seller_user, auth_headers):
    product = create_product()

    response = client.delete(f"/api/v1/products/{product['id']}", headers=auth_headers(seller_user))

    assert response.status_code == 403
