"""User administration API tests: admin gate, updates, deletion."""

import pytest


@pytest.mark.asyncio
async def test_users_routes_are_admin_only(client, alice, bob):
    for method, path in (
        ("GET", "/api/v1/users"),
        ("GET", f"/api/v1/users/{bob.id}"),
        ("PUT", f"/api/v1/users/{bob.id}"),
        ("DELETE", f"/api/v1/users/{bob.id}"),
    ):
        kwargs = {"json": {"username": "hijack"}} if method == "PUT" else {}
        r = await client.request(method, path, headers=alice.headers, **kwargs)
        assert r.status_code == 403, (method, path)
        assert r.json() == {"detail": "Admin access required"}


@pytest.mark.asyncio
async def test_users_routes_require_token(client):
    r = await client.get("/api/v1/users")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_list_users(client, alice, bob, admin):
    r = await client.get("/api/v1/users", headers=admin.headers)
    assert r.status_code == 200
    data = r.json()
    assert {u["username"] for u in data["users"]} == {"alice", "bob", "root"}
    assert data["pagination"]["total"] == 3
    assert all("password" not in u for u in data["users"])

    r = await client.get("/api/v1/users?role=admin", headers=admin.headers)
    assert [u["username"] for u in r.json()["users"]] == ["root"]

    r = await client.get("/api/v1/users?limit=1", headers=admin.headers)
    assert len(r.json()["users"]) == 1
    assert r.json()["pagination"]["has_more"] is True


@pytest.mark.asyncio
async def test_get_user(client, alice, admin):
    r = await client.get(f"/api/v1/users/{alice.id}", headers=admin.headers)
    assert r.status_code == 200
    assert r.json()["email"] == alice.email

    r = await client.get("/api/v1/users/99999", headers=admin.headers)
    assert r.status_code == 404
    assert r.json() == {"detail": "User not found"}


@pytest.mark.asyncio
async def test_admin_updates_any_field(client, alice, admin):
    r = await client.put(
        f"/api/v1/users/{alice.id}",
        json={"username": "alice_admin", "email": "aa@example.com", "role": "admin"},
        headers=admin.headers,
    )
    assert r.status_code == 200
    assert r.json()["username"] == "alice_admin"
    assert r.json()["email"] == "aa@example.com"
    assert r.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_admin_update_rejects_unknown_fields_and_bad_roles(client, alice, admin):
    r = await client.put(
        f"/api/v1/users/{alice.id}", json={"password": "x"}, headers=admin.headers
    )
    assert r.status_code == 400

    r = await client.put(
        f"/api/v1/users/{alice.id}", json={"role": "root"}, headers=admin.headers
    )
    assert r.status_code == 400

    r = await client.put(f"/api/v1/users/{alice.id}", json={}, headers=admin.headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_admin_update_duplicate_identity(client, alice, bob, admin):
    r = await client.put(
        f"/api/v1/users/{alice.id}", json={"email": bob.email}, headers=admin.headers
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_admin_update_missing_user(client, admin):
    r = await client.put(
        "/api/v1/users/99999", json={"username": "ghost"}, headers=admin.headers
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(client, admin):
    r = await client.delete(f"/api/v1/users/{admin.id}", headers=admin.headers)
    assert r.status_code == 400
    assert r.json() == {"detail": "You cannot delete your own account"}

    r = await client.get(f"/api/v1/users/{admin.id}", headers=admin.headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_delete_user_cascades_tasks(client, alice, bob, admin):
    r = await client.post("/api/v1/tasks", json={"title": "doomed"}, headers=alice.headers)
    task_id = r.json()["id"]
    await client.post("/api/v1/tasks", json={"title": "survivor"}, headers=bob.headers)

    r = await client.delete(f"/api/v1/users/{alice.id}", headers=admin.headers)
    assert r.status_code == 200
    assert r.json() == {"deleted": True}

    r = await client.get(f"/api/v1/tasks/{task_id}", headers=admin.headers)
    assert r.status_code == 404

    r = await client.get("/api/v1/tasks", headers=admin.headers)
    assert [t["title"] for t in r.json()["tasks"]] == ["survivor"]

    r = await client.delete(f"/api/v1/users/{alice.id}", headers=admin.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["0", "2147483648", "99999999999999999999"])
async def test_out_of_range_user_id(client, admin, user_id):
    for method, extra in (("GET", {}), ("PUT", {"json": {"username": "x_y"}}), ("DELETE", {})):
        r = await client.request(
            method, f"/api/v1/users/{user_id}", headers=admin.headers, **extra
        )
        assert r.status_code == 400, method
