"""Integration tests for registration, login and bearer tokens."""

import pytest

PASSWORD = "learning1"


async def _register(client, email="new.user@example.com", password=PASSWORD):
    return await client.post(
        "/auth/register",
        json={"name": "Crio User", "email": email, "password": password},
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_returns_user_and_token(client):
    response = await _register(client)

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["user"]["email"] == "new.user@example.com"
    assert data["user"]["walletMoney"] == 500
    assert data["user"]["addresses"] == []
    assert data["tokens"]["access"]["token"]
    assert data["tokens"]["access"]["expires"] > 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_duplicate_email(client):
    await _register(client)
    response = await _register(client, email="NEW.USER@example.com")

    assert response.status_code == 409
    assert response.json()["message"] == "Email already taken"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "email,password",
    [("not-an-email", PASSWORD), ("a@example.com", "short1"), ("a@example.com", "lettersonly")],
)
async def test_register_validation(client, email, password):
    response = await _register(client, email=email, password=password)

    assert response.status_code == 400
    assert response.json()["kind"] == "ValidationError"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_and_use_token(client):
    registered = (await _register(client)).json()
    user_id = registered["user"]["id"]

    login = await client.post(
        "/auth/login", json={"email": "new.user@example.com", "password": PASSWORD}
    )
    assert login.status_code == 200
    token = login.json()["tokens"]["access"]["token"]

    me = await client.get(
        f"/users/{user_id}", headers={"Authorization": f"Bearer {token}"}
    )
    assert me.status_code == 200
    assert me.json()["id"] == user_id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_wrong_password(client):
    await _register(client)

    response = await client.post(
        "/auth/login", json={"email": "new.user@example.com", "password": "wrong1234"}
    )

    assert response.status_code == 401
    assert response.json()["kind"] == "Unauthorized"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_token_is_rejected(client):
    response = await client.get(
        "/cart", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
