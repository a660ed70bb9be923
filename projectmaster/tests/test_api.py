import pytest


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert {i["name"] for i in data["integrations"]} == {"memory", "auth.local", "ai"}


@pytest.mark.asyncio
async def test_get_me(client, owner_headers, owner):
    response = await client.get("/api/v1/users/me", headers=owner_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == owner.id
    assert data["role"] == "owner"


@pytest.mark.asyncio
async def test_get_me_rejects_bad_tokens(client):
    response = await client.get("/api/v1/users/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 403

    response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403

    response = await client.get("/api/v1/users/me")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_provision_and_login(client, ops_headers):
    response = await client.post(
        "/api/v1/users",
        headers=ops_headers,
        json={
            "email": "sub@test.com",
            "password": "secret123",
            "role": "contractor",
            "full_name": "Sam Sub",
            "username": "sam",
        },
    )
    assert response.status_code == 201
    created = response.json()
    assert created["role"] == "contractor"
    assert created["username"] == "sam"

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "sub@test.com", "password": "secret123"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user_id"] == created["id"]

    me = await client.get(
        "/api/v1/users/me", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert me.json()["name"] == "Sam Sub"


@pytest.mark.asyncio
async def test_provision_escalation_is_refused(client, pm_headers):
    response = await client.post(
        "/api/v1/users",
        headers=pm_headers,
        json={
            "email": "boss@test.com",
            "password": "secret123",
            "role": "operations_manager",
            "full_name": "Wannabe Boss",
        },
    )
    assert response.status_code == 403
    assert "does not have permission to create" in response.json()["detail"]


@pytest.mark.asyncio
async def test_login_invalid_credentials(client):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@test.com", "password": "wrong"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_without_profile_self_heals(client, auth_provider, seeded_backend):
    credential = await auth_provider.create_user("orphan@test.com", "secret123", {})

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "orphan@test.com", "password": "secret123"},
    )
    assert response.status_code == 200
    row = await seeded_backend.get_row("users", credential.user_id)
    assert row["role"] == "contractor"


@pytest.mark.asyncio
async def test_delete_user(client, ops_headers, pm_headers, contractor, owner):
    response = await client.delete(f"/api/v1/users/{contractor.id}", headers=pm_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Only owners and operations managers can remove users"

    # Project managers are refused before the target is looked up.
    response = await client.delete("/api/v1/users/missing", headers=pm_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/users/{owner.id}", headers=ops_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/users/{contractor.id}", headers=ops_headers)
    assert response.status_code == 204

    response = await client.delete(f"/api/v1/users/{contractor.id}", headers=ops_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_deep_fetch_respects_visibility(client, owner_headers, contractor_headers, project, subcategory, task):
    response = await client.get("/api/v1/projects", headers=owner_headers)
    assert response.status_code == 200
    data = response.json()
    assert [p["id"] for p in data] == [project.id]
    assert data[0]["subcategories"][0]["id"] == subcategory.id
    assert data[0]["subcategories"][0]["tasks"][0]["id"] == task.id
    assert data[0]["projectManagerIds"] == list(project.project_manager_ids)

    response = await client.get("/api/v1/projects", headers=contractor_headers)
    assert [p["id"] for p in response.json()] == [project.id]


@pytest.mark.asyncio
async def test_deep_fetch_hides_unassigned_projects(client, seeded_backend, ops_manager):
    from projectmaster.common.security import create_access_token

    await seeded_backend.upsert("users", {"id": "u-out", "name": "Outsider", "role": "contractor"})
    headers = {"Authorization": f"Bearer {create_access_token({'sub': 'u-out'})}"}
    response = await client.get("/api/v1/projects", headers=headers)
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_update_team(client, pm_headers, ops_headers, contractor_headers, project, contractor, other_contractor, project_manager):
    body = {
        "project_manager_ids": [project_manager.id],
        "contractor_ids": [contractor.id, other_contractor.id, contractor.id],
    }
    response = await client.put(f"/api/v1/projects/{project.id}/team", headers=pm_headers, json=body)
    assert response.status_code == 200
    assert response.json()["contractorIds"] == [contractor.id, other_contractor.id]

    response = await client.put(f"/api/v1/projects/{project.id}/team", headers=contractor_headers, json=body)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_team_validates_roles(client, ops_headers, pm_headers, project, owner, project_manager):
    # A contractor slot cannot hold a project manager.
    response = await client.put(
        f"/api/v1/projects/{project.id}/team",
        headers=ops_headers,
        json={"project_manager_ids": [project_manager.id], "contractor_ids": [project_manager.id]},
    )
    assert response.status_code == 400

    # Project managers cannot change the manager list themselves.
    response = await client.put(
        f"/api/v1/projects/{project.id}/team",
        headers=pm_headers,
        json={"project_manager_ids": [], "contractor_ids": []},
    )
    assert response.status_code == 403

    response = await client.put(
        "/api/v1/projects/missing/team",
        headers=ops_headers,
        json={"project_manager_ids": [], "contractor_ids": []},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_task_summary(client, seeded_backend, contractor_headers, contractor, project, task):
    await seeded_backend.upsert(
        "photos",
        {"id": "ph-1", "parent_type": "task", "parent_id": task.id, "image_url": "x", "uploaded_by": contractor.id},
    )
    await seeded_backend.upsert(
        "photos",
        {"id": "ph-2", "parent_type": "project", "parent_id": project.id, "image_url": "x", "uploaded_by": contractor.id},
    )

    response = await client.get(
        f"/api/v1/projects/{project.id}/tasks/{task.id}/summary", headers=contractor_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["photo_count"] == 1
    assert data["status"] == "pending"
    assert data["summary"] == "'Run conduit' is pending with 1 photo on record."


@pytest.mark.asyncio
async def test_task_summary_falls_back_when_ai_fails(client, owner_headers, project, task, monkeypatch):
    import httpx

    from projectmaster.config import settings
    from projectmaster.integrations.ai_client import FALLBACK_SUMMARY, AIClient
    from projectmaster.main import app

    monkeypatch.setattr(settings, "AI_API_KEY", "sk-test")
    app.state.ai_client = AIClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))

    response = await client.get(
        f"/api/v1/projects/{project.id}/tasks/{task.id}/summary", headers=owner_headers
    )
    assert response.status_code == 200
    assert response.json()["summary"] == FALLBACK_SUMMARY


@pytest.mark.asyncio
async def test_task_summary_checks_access_and_ownership(client, seeded_backend, owner_headers, project, task):
    from projectmaster.common.security import create_access_token

    await seeded_backend.upsert("users", {"id": "u-out", "name": "Outsider", "role": "contractor"})
    outsider = {"Authorization": f"Bearer {create_access_token({'sub': 'u-out'})}"}
    response = await client.get(f"/api/v1/projects/{project.id}/tasks/{task.id}/summary", headers=outsider)
    assert response.status_code == 403

    response = await client.get(f"/api/v1/projects/{project.id}/tasks/missing/summary", headers=owner_headers)
    assert response.status_code == 404

    await seeded_backend.upsert("projects", {"id": "p-2", "name": "Other", "owner_id": "u-owner"})
    response = await client.get(f"/api/v1/projects/p-2/tasks/{task.id}/summary", headers=owner_headers)
    assert response.status_code == 404
