"""
Role guard and request authentication tests.

Verifies:
- authorize() admits only the listed roles
- Missing / expired / forged tokens yield 401 with distinct codes
- Role denials yield 403 INSUFFICIENT_PERMISSIONS and are audited
"""

from datetime import timedelta

import pytest

from conftest import auth_headers, token_for
from storefront.errors import InsufficientPermissions
from storefront.models import Product, SecurityEvent
from storefront.roles import Role
from storefront.services.role_guard import authorize
from storefront.services.token_service import Claims, get_token_service


def _claims(role: Role) -> Claims:
    return Claims(user_id=9, role=role, issued_at=0, expires_at=60)


# =============================================================================
# authorize()
# =============================================================================

class TestAuthorize:

    def test_allowed_role_passes(self):
        authorize(_claims(Role.SUPPLIER), [Role.SUPPLIER])

    def test_any_of_several(self):
        authorize(_claims(Role.CUSTOMER), [Role.SUPPLIER, Role.CUSTOMER])

    def test_wrong_role(self):
        with pytest.raises(InsufficientPermissions) as exc:
            authorize(_claims(Role.CUSTOMER), [Role.SUPPLIER])
        assert exc.value.user_id == 9
        assert exc.value.status_code == 403

    def test_empty_allow_list_denies(self):
        with pytest.raises(InsufficientPermissions):
            authorize(_claims(Role.SUPPLIER), [])


# =============================================================================
# HTTP layer
# =============================================================================

class TestRequestAuthentication:

    def test_missing_token(self, client, db_session):
        response = client.get("/api/orders")
        assert response.status_code == 401
        assert response.get_json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_non_bearer_header(self, client, db_session):
        response = client.get("/api/orders", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_forged_token(self, client, db_session):
        response = client.get("/api/orders", headers=auth_headers("not.a.jwt"))
        assert response.status_code == 401
        assert response.get_json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_expired_token(self, client, customer_user):
        token = get_token_service().issue(customer_user.id, Role.CUSTOMER, timedelta(seconds=-1))
        response = client.get("/api/orders", headers=auth_headers(token))
        assert response.status_code == 401
        assert response.get_json()["error"]["code"] == "TOKEN_EXPIRED"


class TestRoleDenial:

    def test_customer_cannot_create_product(self, client, customer_user, customer_headers, db_session):
        response = client.post(
            "/api/products",
            json={"name": "Sneaky", "base_price": "1.00"},
            headers=customer_headers,
        )
        assert response.status_code == 403
        body = response.get_json()["error"]
        assert body["code"] == "INSUFFICIENT_PERMISSIONS"
        assert body["user_id"] == customer_user.id

        assert db_session.query(Product).count() == 0
        event = db_session.query(SecurityEvent).filter_by(user_id=customer_user.id).one()
        assert event.event_type == "PERMISSION_DENIED"
        assert event.success is False
        assert event.resource == "/api/products"
        assert event.action == "POST"

    def test_supplier_cannot_place_order(self, client, supplier_headers, product):
        response = client.post(
            "/api/orders",
            json={"items": [{"product_id": product.id, "quantity": 1}]},
            headers=supplier_headers,
        )
        assert response.status_code == 403
        assert response.get_json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"

    def test_supplier_can_create_product(self, client, supplier_headers, db_session):
        response = client.post(
            "/api/products",
            json={"name": "Gadget", "base_price": "5.50", "stock_quantity": 3},
            headers=supplier_headers,
        )
        assert response.status_code == 201
        assert response.get_json()["product"]["name"] == "Gadget"

    def test_ownership_denial_is_audited(self, client, product, other_supplier_user, db_session):
        response = client.patch(
            f"/api/products/{product.id}",
            json={"name": "Hijacked"},
            headers=auth_headers(token_for(other_supplier_user)),
        )
        assert response.status_code == 403
        assert response.get_json()["error"]["code"] == "UNAUTHORIZED"
        event = db_session.query(SecurityEvent).filter_by(user_id=other_supplier_user.id).one()
        assert event.event_type == "OWNERSHIP_DENIED"
