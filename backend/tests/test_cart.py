"""
Shopping cart tests.

Verifies:
- The cart is created on first add and re-adding merges quantities
- Setting a quantity of 0 removes the line
- Carts are private to their customer
"""

import pytest

from conftest import auth_headers, make_product, token_for
from storefront.errors import NotFound, Unauthorized, ValidationError
from storefront.models import CartItem, ShoppingCart
from storefront.services import cart_service


class TestCartService:

    def test_first_add_creates_cart(self, customer_user, product, db_session):
        assert cart_service.get_cart(customer_user.id) is None
        cart = cart_service.add_to_cart(customer_user.id, product.id, 2)
        assert db_session.query(ShoppingCart).count() == 1
        assert [i["quantity"] for i in cart_service.list_cart_items(customer_user.id)] == [2]
        assert cart_service.get_cart(customer_user.id).id == cart.id

    def test_re_add_merges(self, customer_user, product, db_session):
        cart_service.add_to_cart(customer_user.id, product.id, 2)
        cart_service.add_to_cart(customer_user.id, product.id, 3)
        item = db_session.query(CartItem).one()
        assert item.quantity == 5

    def test_lines_carry_product(self, customer_user, supplier_user, product):
        gadget = make_product(supplier_user, name="Gadget", price="2.50")
        cart_service.add_to_cart(customer_user.id, product.id, 1)
        cart_service.add_to_cart(customer_user.id, gadget.id, 4)
        lines = cart_service.list_cart_items(customer_user.id)
        assert [(l["product"]["name"], l["quantity"]) for l in lines] == [("Widget", 1), ("Gadget", 4)]

    def test_empty_cart_lists_nothing(self, customer_user):
        assert cart_service.list_cart_items(customer_user.id) == []

    @pytest.mark.parametrize("quantity", [0, -1, "2", 1.5, True, 2**63])
    def test_add_rejects_bad_quantity(self, customer_user, product, quantity):
        with pytest.raises(ValidationError):
            cart_service.add_to_cart(customer_user.id, product.id, quantity)

    def test_add_unknown_product(self, customer_user):
        with pytest.raises(NotFound):
            cart_service.add_to_cart(customer_user.id, 9999, 1)

    @pytest.mark.parametrize("product_id", [2**63, 0, "1"])
    def test_add_rejects_bad_product_id(self, customer_user, product_id):
        with pytest.raises(ValidationError):
            cart_service.add_to_cart(customer_user.id, product_id, 1)

    def test_merge_cannot_overflow(self, customer_user, product, db_session):
        cart_service.add_to_cart(customer_user.id, product.id, 2**31 - 1)
        with pytest.raises(ValidationError):
            cart_service.add_to_cart(customer_user.id, product.id, 1)
        assert db_session.query(CartItem).one().quantity == 2**31 - 1

    def test_set_quantity(self, customer_user, product):
        cart = cart_service.add_to_cart(customer_user.id, product.id, 1)
        item = cart_service.update_cart_item_quantity(customer_user.id, cart.id, product.id, 7)
        assert item.quantity == 7

    def test_zero_removes_line(self, customer_user, product, db_session):
        cart = cart_service.add_to_cart(customer_user.id, product.id, 1)
        assert cart_service.update_cart_item_quantity(customer_user.id, cart.id, product.id, 0) is None
        assert db_session.query(CartItem).count() == 0

    def test_other_customers_cart(self, customer_user, other_customer_user, product):
        cart = cart_service.add_to_cart(customer_user.id, product.id, 1)
        with pytest.raises(Unauthorized):
            cart_service.update_cart_item_quantity(other_customer_user.id, cart.id, product.id, 3)

    def test_remove(self, customer_user, product, db_session):
        cart_service.add_to_cart(customer_user.id, product.id, 1)
        cart_service.remove_from_cart(customer_user.id, product.id)
        assert db_session.query(CartItem).count() == 0

    def test_remove_missing_line(self, customer_user, supplier_user, product):
        other = make_product(supplier_user, name="Other")
        cart_service.add_to_cart(customer_user.id, product.id, 1)
        with pytest.raises(NotFound):
            cart_service.remove_from_cart(customer_user.id, other.id)


class TestCartRoutes:

    def test_add_and_list(self, client, customer_headers, product):
        response = client.post("/api/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers)
        assert response.status_code == 201
        cart_id = response.get_json()["cart_id"]

        items = client.get("/api/cart", headers=customer_headers).get_json()["items"]
        assert items[0]["cart_id"] == cart_id
        assert items[0]["product"]["id"] == product.id

    def test_patch_to_zero(self, client, customer_headers, product):
        cart_id = client.post(
            "/api/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers
        ).get_json()["cart_id"]

        response = client.patch(f"/api/cart/{cart_id}/items/{product.id}", json={"quantity": 0}, headers=customer_headers)
        assert response.status_code == 200
        assert client.get("/api/cart", headers=customer_headers).get_json()["items"] == []

    def test_supplier_has_no_cart(self, client, supplier_user, product):
        response = client.get("/api/cart", headers=auth_headers(token_for(supplier_user)))
        assert response.status_code == 403

    def test_oversized_quantity_is_rejected(self, client, customer_headers, product, db_session):
        response = client.post(
            "/api/cart/items", json={"product_id": product.id, "quantity": 2**63}, headers=customer_headers
        )
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "VALIDATION_ERROR"
        assert db_session.query(CartItem).count() == 0
