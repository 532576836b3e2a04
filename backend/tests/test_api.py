import pytest
from fastapi import status
from fastapi.testclient import TestClient

from sqlalchemy.exc import OperationalError

from rbac_registry import main
from rbac_registry.crud.user import UserRepository
from rbac_registry.dependencies import build_services, get_services
from rbac_registry.main import app


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sqlite_client(db_session):
    app.dependency_overrides[get_services] = lambda: build_services(db_session)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_user(client: TestClient, index: int, role: str | None = None):
    payload = {
        "name": f"User {index}",
        "email": f"user{index}@example.com",
        "birthdate": "1990-05-17",
    }
    if role is not None:
        payload["role"] = {"name": role}
    return client.post("/api/v1/users", json=payload)


def test_permission_endpoints(client: TestClient) -> None:
    created = client.post("/api/v1/permissions", json={"name": "READ"})
    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["name"] == "READ"

    duplicate = client.post("/api/v1/permissions", json={"name": "READ"})
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json()["error"]["code"] == "CONFLICT_ERROR"
    assert duplicate.json()["error"]["message"] == "Permission READ already exists"

    renamed = client.put(
        "/api/v1/permissions", json={"original_name": "READ", "new_name": "VIEW"}
    )
    assert renamed.status_code == status.HTTP_200_OK
    assert renamed.json()["id"] == created.json()["id"]

    listed = client.get("/api/v1/permissions", params={"name": "vi"})
    assert [item["name"] for item in listed.json()] == ["VIEW"]

    deleted = client.delete("/api/v1/permissions/VIEW")
    assert deleted.status_code == status.HTTP_200_OK
    assert client.get("/api/v1/permissions").json() == []


def test_role_endpoints(client: TestClient) -> None:
    for name in ("CREATE", "DELETE"):
        client.post("/api/v1/permissions", json={"name": name})

    created = client.post(
        "/api/v1/roles", json={"name": "admin", "permissions": [{"name": "CREATE"}]}
    )
    assert created.status_code == status.HTTP_201_CREATED

    added = client.patch("/api/v1/roles/add-permission/admin", json={"name": "DELETE"})
    assert [item["name"] for item in added.json()["permissions"]] == ["CREATE", "DELETE"]

    removed = client.patch(
        "/api/v1/roles/remove-permission/admin", json={"name": "CREATE"}
    )
    assert [item["name"] for item in removed.json()["permissions"]] == ["DELETE"]

    replaced = client.put(
        "/api/v1/roles/admin", json={"name": "owner", "permissions": [{"name": "CREATE"}]}
    )
    assert replaced.json()["name"] == "owner"

    missing = client.post(
        "/api/v1/roles", json={"name": "broken", "permissions": [{"name": "MISSING"}]}
    )
    assert missing.status_code == status.HTTP_409_CONFLICT

    deleted = client.delete("/api/v1/roles/owner")
    assert deleted.status_code == status.HTTP_200_OK
    assert client.get("/api/v1/roles").json() == []


def test_role_in_use_cannot_be_deleted(client: TestClient) -> None:
    client.post("/api/v1/roles", json={"name": "admin"})
    _create_user(client, 1, role="admin")

    response = client.delete("/api/v1/roles/admin")

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"]["details"] == {"role": "admin", "users": 1}


def test_user_lifecycle_endpoints(client: TestClient) -> None:
    client.post("/api/v1/roles", json={"name": "viewer"})

    created = _create_user(client, 1)
    assert created.status_code == status.HTTP_201_CREATED
    body = created.json()
    assert body["user_code"] == 1
    assert body["role"] is None
    assert body["deleted"] is False

    assigned = client.patch(
        "/api/v1/users/add-role", json={"user_code": 1, "role_name": "viewer"}
    )
    assert assigned.json()["role"]["name"] == "viewer"

    unassigned = client.patch("/api/v1/users/remove-role/1")
    assert unassigned.json()["role"] is None

    deleted = client.delete("/api/v1/users/1")
    assert deleted.json()["deleted"] is True
    assert client.get("/api/v1/users/deleted").json()["total"] == 1
    assert client.get("/api/v1/users/actives").json()["total"] == 0

    restored = client.patch("/api/v1/users/restore/1")
    assert restored.json()["deleted"] is False

    fetched = client.get("/api/v1/users/1")
    assert fetched.json()["email"] == "user1@example.com"


def test_update_unknown_user_creates_one(client: TestClient) -> None:
    _create_user(client, 1)

    response = client.put(
        "/api/v1/users/999",
        json={"name": "New", "email": "new@example.com", "birthdate": "2000-01-01"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user_code"] == 2


def test_user_listing_uses_default_page_size(client: TestClient) -> None:
    for index in range(1, 13):
        _create_user(client, index)

    first = client.get("/api/v1/users").json()
    second = client.get(
        "/api/v1/users", params={"page": 2, "sortBy": "userCode", "sort": "DESC"}
    ).json()

    assert first["size"] == 10
    assert len(first["content"]) == 10
    assert first["total_pages"] == 2
    assert first["next_page"] == 2
    assert [user["user_code"] for user in second["content"]] == [2, 1]
    assert second["prev_page"] == 1


def test_invalid_payloads_are_rejected(client: TestClient) -> None:
    bad_email = client.post(
        "/api/v1/users",
        json={"name": "X", "email": "not-an-email", "birthdate": "1990-01-01"},
    )
    assert bad_email.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert bad_email.json()["error"]["code"] == "VALIDATION_ERROR"

    bad_page = client.get("/api/v1/users", params={"page": 0})
    assert bad_page.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    blank_name = client.post("/api/v1/permissions", json={"name": "   "})
    assert blank_name.status_code == status.HTTP_400_BAD_REQUEST


def test_unknown_user_code_conflicts(client: TestClient) -> None:
    response = client.get("/api/v1/users/7")

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"]["message"] == "User with userCode 7 does not exist"


def test_unknown_route_uses_not_found_payload(client: TestClient) -> None:
    response = client.get("/api/v1/groups")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["code"] == "NOT_FOUND"
    assert response.json()["error"]["message"] == "Resource not found"


def test_email_race_past_service_check_is_a_conflict(
    sqlite_client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def no_owner(self, email: str):
        return None

    # Both requests pass the existence check; the unique index decides.
    monkeypatch.setattr(UserRepository, "get_by_email", no_owner)

    first = _create_user(sqlite_client, 1)
    assert first.status_code == status.HTTP_201_CREATED
    assert first.json()["user_code"] == 1

    racing = _create_user(sqlite_client, 1)
    assert racing.status_code == status.HTTP_409_CONFLICT
    assert racing.json()["error"]["code"] == "CONFLICT_ERROR"

    # The rolled back insert also rolled back its user_code.
    second = _create_user(sqlite_client, 2)
    assert second.status_code == status.HTTP_201_CREATED
    assert second.json()["user_code"] == 2


def test_startup_fails_when_database_is_unreachable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def unreachable(engine, *, include_metadata: bool = True) -> None:
        raise OperationalError("SELECT 1", {}, OSError("connection refused"))

    monkeypatch.setattr(main, "check_database_connection", unreachable)

    with pytest.raises(OperationalError):
        with TestClient(app):
            pass
