import jwt
import pytest

from complaint_desk.core.config import settings
from complaint_desk.core.security import create_session_token, decode_session_token
from complaint_desk.core.structured_logging import build_log_context


def test_session_token_round_trip():
    import uuid

    user_id = uuid.uuid4()
    token = create_session_token(user_id, "ADMIN", 3)

    payload = decode_session_token(token)
    assert payload["sub"] == str(user_id)
    assert payload["role"] == "ADMIN"
    assert payload["token_version"] == 3


def test_previous_secret_still_accepted(monkeypatch):
    import uuid

    token = create_session_token(uuid.uuid4(), "CLIENT", 1)
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", settings.JWT_SECRET)
    monkeypatch.setattr(settings, "JWT_SECRET", "rotated-secret")

    assert decode_session_token(token)["role"] == "CLIENT"


def test_tampered_token_rejected():
    import uuid

    token = create_session_token(uuid.uuid4(), "CLIENT", 1)
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token + "x")


@pytest.mark.asyncio
async def test_revoked_session_is_401(api, db, client_user):
    async with api(client_user) as c:
        client_user.token_version += 1
        db.commit()
        response = await c.get("/complaints")
    assert response.status_code == 401


def test_build_log_context_drops_empty_and_stringifies():
    import uuid

    complaint_id = uuid.uuid4()
    context = build_log_context(
        complaint_id=complaint_id,
        route="/complaints",
        error_class="OperationalError",
        recipient_id=None,
        attempts=2,
    )

    assert context == {
        "complaint_id": str(complaint_id),
        "route": "/complaints",
        "error_class": "OperationalError",
        "attempts": 2,
    }


@pytest.mark.asyncio
async def test_valid_session_resolves_user(api, client_user):
    async with api(client_user) as c:
        response = await c.get("/complaints")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("claims", [{"sub": "not-a-uuid"}, {}])
async def test_malformed_subject_is_401(api, claims):
    from datetime import datetime, timedelta, timezone

    from complaint_desk.core.deps import COOKIE_NAME

    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {**claims, "role": "CLIENT", "token_version": 1, "iat": now, "exp": now + timedelta(hours=1)},
        settings.JWT_SECRET,
        algorithm="HS256",
    )
    async with api() as c:
        c.cookies.set(COOKIE_NAME, token)
        response = await c.get("/complaints")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"
