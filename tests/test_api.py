"""
API tests: FastAPI routes -> services -> repositories -> SQLite, with only the
Redis lock replaced.
"""
from decimal import Decimal

import pytest
import redis
from fastapi.testclient import TestClient

from shopcart.data.models import UserRole


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=UserRole.ADMIN.value)


def _product(client, headers, name="Keyboard", price="100.00", stock=10) -> dict:
    response = client.post(
        "/products/",
        json={"name": name, "description": "", "price": price, "stock": stock},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


class TestHealth:

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAuthAndUsers:

    def test_register_and_login(self, client: TestClient):
        # Arrange
        payload = {"username": "user1", "password": "password", "email": "user1@example.com"}

        # Act
        created = client.post("/users/", json=payload)
        login = client.post("/auth/login", json={"username": "user1", "password": "password"})

        # Assert
        assert created.status_code == 201
        assert created.json()["role"] == "User"
        assert "password" not in created.json()
        assert login.status_code == 200
        assert login.json()["token_type"] == "bearer"
        assert login.json()["access_token"]

    def test_duplicate_username_is_bad_request(self, client: TestClient, alice):
        response = client.post(
            "/users/", json={"username": "alice", "password": "password", "email": "a@example.com"}
        )

        assert response.status_code == 400

    def test_invalid_payload_is_rejected(self, client: TestClient):
        response = client.post("/users/", json={"username": "user1"})

        assert response.status_code == 422

    def test_wrong_password_is_unauthorized(self, client: TestClient, alice):
        response = client.post("/auth/login", json={"username": "alice", "password": "wrong"})

        assert response.status_code == 401

    def test_token_from_login_opens_protected_routes(self, client: TestClient, alice):
        token = client.post(
            "/auth/login", json={"username": "alice", "password": "secret123"}
        ).json()["access_token"]

        response = client.get(f"/users/{alice.id}", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_protected_route_without_token(self, client: TestClient):
        assert client.get("/carts/").status_code == 401

    def test_protected_route_with_garbage_token(self, client: TestClient):
        response = client.get("/carts/", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_update_own_user(self, client: TestClient, alice, auth_headers):
        response = client.put(
            f"/users/{alice.id}", json={"email": "alice@new.example.com"}, headers=auth_headers(alice)
        )

        assert response.status_code == 200
        assert response.json()["email"] == "alice@new.example.com"

    def test_user_cannot_promote_self(self, client: TestClient, alice, auth_headers):
        response = client.put(f"/users/{alice.id}", json={"role": "Admin"}, headers=auth_headers(alice))

        assert response.status_code == 403

    def test_registering_as_admin_gives_a_regular_user(self, client: TestClient):
        payload = {"username": "mallory", "password": "password", "email": "m@example.com", "role": "Admin"}

        created = client.post("/users/", json=payload)
        token = client.post(
            "/auth/login", json={"username": "mallory", "password": "password"}
        ).json()["access_token"]
        response = client.post(
            "/products/",
            json={"name": "Free", "price": "0.01", "stock": 5},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert created.status_code == 201
        assert created.json()["role"] == "User"
        assert response.status_code == 403
        assert client.get("/products/").json() == []

    def test_user_with_cart_cannot_be_deleted(self, client: TestClient, alice, auth_headers):
        client.post("/carts/", headers=auth_headers(alice))

        response = client.delete(f"/users/{alice.id}", headers=auth_headers(alice))

        assert response.status_code == 400
        assert client.get(f"/users/{alice.id}", headers=auth_headers(alice)).status_code == 200

    def test_user_cannot_delete_somebody_else(self, client: TestClient, alice, make_user, auth_headers):
        bob = make_user("bob")

        response = client.delete(f"/users/{bob.id}", headers=auth_headers(alice))

        assert response.status_code == 403

    def test_admin_deletes_user(self, client: TestClient, alice, admin, auth_headers):
        response = client.delete(f"/users/{alice.id}", headers=auth_headers(admin))

        assert response.status_code == 204
        assert client.get(f"/users/{alice.id}", headers=auth_headers(admin)).status_code == 404


class TestProducts:

    def test_admin_creates_and_updates_product(self, client: TestClient, admin, auth_headers):
        product = _product(client, auth_headers(admin), price="19.99", stock=3)

        response = client.put(
            f"/products/{product['id']}", json={"stock": 7}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["stock"] == 7
        assert Decimal(response.json()["price"]) == Decimal("19.99")

    def test_regular_user_cannot_create_product(self, client: TestClient, alice, auth_headers):
        response = client.post(
            "/products/", json={"name": "X", "price": "1.00", "stock": 1}, headers=auth_headers(alice)
        )

        assert response.status_code == 403

    def test_negative_stock_is_rejected(self, client: TestClient, admin, auth_headers):
        response = client.post(
            "/products/", json={"name": "X", "price": "1.00", "stock": -1}, headers=auth_headers(admin)
        )

        assert response.status_code == 422

    def test_catalogue_is_public(self, client: TestClient, admin, auth_headers):
        product = _product(client, auth_headers(admin))

        assert client.get("/products/").status_code == 200
        assert client.get(f"/products/{product['id']}").json()["name"] == "Keyboard"

    def test_missing_product_is_404(self, client: TestClient):
        assert client.get("/products/999").status_code == 404


class TestCartCheckoutFlow:
    """
    Full flow over HTTP: create cart, add/update/remove items, checkout, and
    the transaction and stock afterwards.
    """

    def test_happy_path(self, client: TestClient, alice, admin, auth_headers):
        headers = auth_headers(alice)
        keyboard = _product(client, auth_headers(admin), "Keyboard", "100.00", 10)
        mouse = _product(client, auth_headers(admin), "Mouse", "25.00", 5)

        # Arrange - cart with 2 keyboards and 1 mouse (after update)
        cart = client.post("/carts/", headers=headers).json()
        cart_id = cart["cart_id"]
        client.post(f"/carts/{cart_id}/items", json={"product_id": keyboard["id"], "quantity": 2}, headers=headers)
        added = client.post(
            f"/carts/{cart_id}/items", json={"product_id": mouse["id"], "quantity": 3}, headers=headers
        ).json()
        mouse_item = next(i for i in added["items"] if i["product_id"] == mouse["id"])
        updated = client.put(
            f"/carts/{cart_id}/items/{mouse_item['id']}", json={"quantity": 1}, headers=headers
        )
        assert updated.status_code == 200
        assert Decimal(updated.json()["total"]) == Decimal("225.00")

        # Act
        response = client.post(f"/carts/{cart_id}/checkout", headers=headers)

        # Assert
        assert response.status_code == 201
        transaction = response.json()
        assert transaction["cart_id"] == cart_id
        assert Decimal(transaction["total_price"]) == Decimal("225.00")

        assert client.get(f"/products/{keyboard['id']}").json()["stock"] == 8
        assert client.get(f"/products/{mouse['id']}").json()["stock"] == 4
        assert client.get(f"/carts/{cart_id}", headers=headers).json()["status"] == "CHECKED_OUT"

        listed = client.get("/transactions/", headers=headers).json()
        assert [t["id"] for t in listed] == [transaction["id"]]
        assert client.get(f"/transactions/{transaction['id']}", headers=headers).status_code == 200

    def test_checkout_through_transactions_endpoint(self, client: TestClient, alice, admin, auth_headers):
        headers = auth_headers(alice)
        product = _product(client, auth_headers(admin), stock=2)
        cart_id = client.post("/carts/", headers=headers).json()["cart_id"]
        client.post(f"/carts/{cart_id}/items", json={"product_id": product["id"], "quantity": 2}, headers=headers)

        response = client.post("/transactions/", json={"cart_id": cart_id}, headers=headers)

        assert response.status_code == 201
        assert Decimal(response.json()["total_price"]) == Decimal("200.00")
        assert client.get(f"/products/{product['id']}").json()["stock"] == 0

    def test_insufficient_stock_is_bad_request_and_changes_nothing(
        self, client: TestClient, alice, admin, auth_headers
    ):
        headers = auth_headers(alice)
        keyboard = _product(client, auth_headers(admin), "Keyboard", "100.00", 10)
        mouse = _product(client, auth_headers(admin), "Mouse", "25.00", 5)
        cart_id = client.post("/carts/", headers=headers).json()["cart_id"]
        client.post(f"/carts/{cart_id}/items", json={"product_id": keyboard["id"], "quantity": 2}, headers=headers)
        client.post(f"/carts/{cart_id}/items", json={"product_id": mouse["id"], "quantity": 4}, headers=headers)
        client.put(f"/products/{mouse['id']}", json={"stock": 3}, headers=auth_headers(admin))

        response = client.post(f"/carts/{cart_id}/checkout", headers=headers)

        assert response.status_code == 400
        assert client.get(f"/products/{keyboard['id']}").json()["stock"] == 10
        assert client.get(f"/products/{mouse['id']}").json()["stock"] == 3
        assert client.get(f"/carts/{cart_id}", headers=headers).json()["status"] == "ACTIVE"
        assert client.get("/transactions/", headers=headers).json() == []

    def test_adding_over_stock_is_bad_request(self, client: TestClient, alice, admin, auth_headers):
        headers = auth_headers(alice)
        product = _product(client, auth_headers(admin), stock=1)
        cart_id = client.post("/carts/", headers=headers).json()["cart_id"]

        response = client.post(
            f"/carts/{cart_id}/items", json={"product_id": product["id"], "quantity": 2}, headers=headers
        )

        assert response.status_code == 400

    def test_checkout_while_locked_is_conflict(self, client: TestClient, alice, admin, auth_headers, lock_service):
        headers = auth_headers(alice)
        product = _product(client, auth_headers(admin))
        cart_id = client.post("/carts/", headers=headers).json()["cart_id"]
        client.post(f"/carts/{cart_id}/items", json={"product_id": product["id"], "quantity": 1}, headers=headers)
        lock_service.locks[cart_id] = "another-worker"

        response = client.post(f"/carts/{cart_id}/checkout", headers=headers)

        assert response.status_code == 409

    def test_checkout_with_redis_down_is_service_unavailable(
        self, client: TestClient, alice, admin, auth_headers, lock_service, monkeypatch
    ):
        headers = auth_headers(alice)
        product = _product(client, auth_headers(admin))
        cart_id = client.post("/carts/", headers=headers).json()["cart_id"]
        client.post(f"/carts/{cart_id}/items", json={"product_id": product["id"], "quantity": 1}, headers=headers)

        def _redis_down(**kwargs):
            raise redis.ConnectionError("Connection refused")

        monkeypatch.setattr(lock_service, "acquire_checkout_lock", _redis_down)

        response = client.post(f"/carts/{cart_id}/checkout", headers=headers)
        via_transactions = client.post("/transactions/", json={"cart_id": cart_id}, headers=headers)

        assert response.status_code == 503
        assert via_transactions.status_code == 503
        assert client.get(f"/products/{product['id']}").json()["stock"] == 10
        assert client.get(f"/carts/{cart_id}", headers=headers).json()["status"] == "ACTIVE"

    def test_foreign_cart_is_forbidden(self, client: TestClient, alice, make_user, auth_headers):
        bob = make_user("bob")
        cart_id = client.post("/carts/", headers=auth_headers(alice)).json()["cart_id"]

        assert client.get(f"/carts/{cart_id}", headers=auth_headers(bob)).status_code == 403
        assert client.post(f"/carts/{cart_id}/checkout", headers=auth_headers(bob)).status_code == 403

    def test_missing_cart_is_404(self, client: TestClient, alice, auth_headers):
        headers = auth_headers(alice)

        assert client.get("/carts/999", headers=headers).status_code == 404
        assert client.post("/carts/999/checkout", headers=headers).status_code == 404
        assert client.get("/transactions/999", headers=headers).status_code == 404

    def test_remove_item_and_delete_cart(self, client: TestClient, alice, admin, auth_headers):
        headers = auth_headers(alice)
        product = _product(client, auth_headers(admin))
        cart_id = client.post("/carts/", headers=headers).json()["cart_id"]
        item = client.post(
            f"/carts/{cart_id}/items", json={"product_id": product["id"], "quantity": 1}, headers=headers
        ).json()["items"][0]

        removed = client.delete(f"/carts/{cart_id}/items/{item['id']}", headers=headers)
        deleted = client.delete(f"/carts/{cart_id}", headers=headers)

        assert removed.status_code == 200
        assert removed.json()["items"] == []
        assert Decimal(removed.json()["total"]) == Decimal("0")
        assert deleted.status_code == 204
        assert client.get(f"/carts/{cart_id}", headers=headers).status_code == 404

    def test_cancelled_cart_cannot_be_checked_out(self, client: TestClient, alice, admin, auth_headers):
        headers = auth_headers(alice)
        product = _product(client, auth_headers(admin))
        cart_id = client.post("/carts/", headers=headers).json()["cart_id"]
        client.post(f"/carts/{cart_id}/items", json={"product_id": product["id"], "quantity": 1}, headers=headers)

        cancelled = client.post(f"/carts/{cart_id}/cancel", headers=headers)
        response = client.post(f"/carts/{cart_id}/checkout", headers=headers)

        assert cancelled.json()["status"] == "CANCELLED"
        assert response.status_code == 400
        assert client.get(f"/products/{product['id']}").json()["stock"] == 10
