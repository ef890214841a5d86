"""Tests for the application error type and its HTTP rendering."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError

from app.core import AppError, ErrorKind, register_exception_handlers


class TestErrorKind:
    @pytest.mark.parametrize(
        ("kind", "status_code"),
        [
            (ErrorKind.INVALID_REQUEST, 400),
            (ErrorKind.UNAUTHORIZED, 401),
            (ErrorKind.FORBIDDEN, 403),
            (ErrorKind.NOT_FOUND, 404),
            (ErrorKind.VALIDATION_ERROR, 400),
            (ErrorKind.INTERNAL_ERROR, 500),
        ],
    )
    def test_status_codes(self, kind, status_code):
        assert kind.status_code == status_code


class TestAppError:
    def test_body_includes_reason(self):
        error = AppError.unauthorized("Token has been revoked", reason="revoked")

        assert error.to_body() == {
            "error": {
                "code": "unauthorized",
                "message": "Token has been revoked",
                "reason": "revoked",
            }
        }

    def test_body_omits_empty_reason(self):
        assert AppError.not_found("Product 1 not found").to_body() == {
            "error": {"code": "not_found", "message": "Product 1 not found"}
        }

    def test_internal_error_hides_detail(self):
        error = AppError.internal("connection to 10.0.0.5 refused")

        body = error.to_body()

        assert body["error"]["code"] == "internal_error"
        assert "10.0.0.5" not in body["error"]["message"]
        assert error.detail == "connection to 10.0.0.5 refused"

    def test_detail_is_never_serialized(self):
        error = AppError.forbidden("Nope", detail="secret diagnostics")

        assert "secret diagnostics" not in str(error.to_body())


class Payload(BaseModel):
    quantity: int


@pytest.fixture
def error_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/unauthorized")
    async def unauthorized():
        raise AppError.unauthorized("Token has expired", reason="invalid_or_expired")

    @app.get("/forbidden")
    async def forbidden():
        raise AppError.forbidden("User has been blocked", reason="blocked")

    @app.get("/database")
    async def database():
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    @app.post("/payload")
    async def payload(data: Payload):
        return data

    return app


@pytest.fixture
async def error_client(error_app):
    transport = ASGITransport(app=error_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHandlers:
    async def test_unauthorized_sets_www_authenticate(self, error_client):
        response = await error_client.get("/unauthorized")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"]["reason"] == "invalid_or_expired"

    async def test_forbidden(self, error_client):
        response = await error_client.get("/forbidden")

        assert response.status_code == 403
        assert response.json() == {
            "error": {"code": "forbidden", "message": "User has been blocked", "reason": "blocked"}
        }

    async def test_request_validation_is_invalid_request(self, error_client):
        response = await error_client.post("/payload", json={"quantity": "many"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "invalid_request"
        assert "quantity" in body["error"]["message"]

    async def test_unknown_route_is_not_found(self, error_client):
        response = await error_client.get("/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    async def test_wrong_method_keeps_status(self, error_client):
        response = await error_client.delete("/forbidden")

        assert response.status_code == 405
        assert "error" in response.json()

    async def test_database_error_is_generic_internal_error(self, error_client):
        response = await error_client.get("/database")

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "internal_error"
        assert "server closed" not in body["error"]["message"]
