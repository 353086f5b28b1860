from datetime import timedelta
from uuid import uuid4

import jwt
import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from pathgen.auth import create_session_token, get_current_user
from pathgen.config import get_settings
from pathgen.db.base import utcnow
from pathgen.errors import register_exception_handlers
from pathgen.middleware import AuthMiddleware, RequestIDMiddleware


@pytest.fixture
def test_user_id():
    return uuid4()


@pytest.fixture
def test_token(test_user_id):
    token, _ = create_session_token(test_user_id, "ada@example.com")
    return token


@pytest.fixture
def expired_token(test_user_id):
    settings = get_settings()
    issued = utcnow() - timedelta(hours=2)
    payload = {
        "sub": str(test_user_id),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued,
        "exp": issued + timedelta(hours=1),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_app():
    app = FastAPI()
    app.add_middleware(AuthMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    @app.get("/state")
    async def read_state(request: Request):
        user_id = getattr(request.state, "user_id", None)
        return {"user_id": str(user_id) if user_id else None}

    @app.get("/me")
    async def read_me(user_id=Depends(get_current_user)):
        return {"user_id": str(user_id)}

    return app


def test_auth_middleware_sets_user_id(auth_app, test_token, test_user_id):
    client = TestClient(auth_app)
    response = client.get("/state", headers={"Authorization": f"Bearer {test_token}"})
    assert response.status_code == 200
    assert response.json()["user_id"] == str(test_user_id)

    # Ensure dependency uses middleware value
    me_resp = client.get("/me", headers={"Authorization": f"Bearer {test_token}"})
    assert me_resp.status_code == 200
    assert me_resp.json()["user_id"] == str(test_user_id)


def test_auth_middleware_reads_session_cookie(auth_app, test_token, test_user_id):
    client = TestClient(
        auth_app, cookies={get_settings().session_cookie_name: test_token}
    )

    response = client.get("/me")
    assert response.status_code == 200
    assert response.json()["user_id"] == str(test_user_id)


def test_missing_credential_is_401(auth_app):
    client = TestClient(auth_app)
    response = client.get("/me")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_REQUIRED"


def test_invalid_credential_is_403(auth_app):
    client = TestClient(auth_app)

    # The middleware itself never rejects
    state = client.get("/state", headers={"Authorization": "Bearer invalid"})
    assert state.status_code == 200
    assert state.json()["user_id"] is None

    response = client.get("/me", headers={"Authorization": "Bearer invalid"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTH_INVALID"


def test_expired_credential_is_403(auth_app, expired_token):
    client = TestClient(auth_app)
    response = client.get("/me", headers={"Authorization": f"Bearer {expired_token}"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTH_EXPIRED"


def test_token_signed_with_other_secret_is_rejected(auth_app, test_user_id):
    settings = get_settings()
    forged = jwt.encode(
        {
            "sub": str(test_user_id),
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
            "exp": utcnow() + timedelta(hours=1),
        },
        "someone-elses-secret",
        algorithm="HS256",
    )
    client = TestClient(auth_app)
    response = client.get("/me", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 403


def test_request_id_header(auth_app):
    client = TestClient(auth_app)
    response = client.get("/state", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/state").headers["X-Request-ID"]
