from bson import ObjectId

from .helpers import bearer, insert_product


def test_empty_wishlist_is_created_on_read(client, user_token, db):
    response = client.get("/api/wishlist", headers=bearer(user_token))
    assert response.status_code == 200
    assert response.get_json() == {"products": []}
    assert db.wishlists.count_documents({}) == 1


def test_first_add_creates_the_wishlist(client, user_token, db):
    product_id = insert_product(db)

    first = client.post("/api/wishlist/add", json={"productId": product_id}, headers=bearer(user_token))
    duplicate = client.post(
        "/api/wishlist/add", json={"productId": product_id}, headers=bearer(user_token)
    )

    assert first.status_code == 201
    assert [product["id"] for product in first.get_json()["products"]] == [product_id]
    assert duplicate.status_code == 400
    assert duplicate.get_json() == {"message": "Product already in wishlist"}


def test_add_to_existing_wishlist(client, user_token, db):
    banana = insert_product(db, name="Banana")
    apple = insert_product(db, name="Apple")
    client.post("/api/wishlist/add", json={"productId": banana}, headers=bearer(user_token))

    response = client.post("/api/wishlist/add", json={"productId": apple}, headers=bearer(user_token))

    assert response.status_code == 200
    assert [product["name"] for product in response.get_json()["products"]] == ["Banana", "Apple"]


def test_add_unknown_product(client, user_token):
    response = client.post(
        "/api/wishlist/add", json={"productId": str(ObjectId())}, headers=bearer(user_token)
    )
    assert response.status_code == 404
    assert response.get_json() == {"message": "Product not found"}


def test_remove_from_wishlist(client, user_token, db):
    banana = insert_product(db, name="Banana")
    client.post("/api/wishlist/add", json={"productId": banana}, headers=bearer(user_token))

    response = client.delete(f"/api/wishlist/remove/{banana}", headers=bearer(user_token))

    assert response.status_code == 200
    assert response.get_json() == {"products": []}


def test_remove_without_wishlist(client, user_token):
    response = client.delete(f"/api/wishlist/remove/{ObjectId()}", headers=bearer(user_token))
    assert response.status_code == 404
    assert response.get_json() == {"message": "Wishlist not found"}
