"""API tests for /complaints, /me/notifications, /teams and /projects."""

import pytest

from complaint_desk.db.enums import ComplaintStatus


@pytest.mark.asyncio
async def test_health(api):
    async with api() as c:
        response = await c.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_requires_authentication(api):
    async with api() as c:
        response = await c.get("/complaints")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_mutations_require_csrf_header(api, client_user, project):
    async with api(client_user, csrf=False) as c:
        response = await c.post(
            "/complaints",
            json={
                "project_id": str(project.id),
                "title": "Slow search",
                "description": "Search takes 10s",
                "category": "DELAY",
            },
        )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_submit_and_list(api, client_user, project):
    async with api(client_user) as c:
        created = await c.post(
            "/complaints",
            json={
                "project_id": str(project.id),
                "title": "Slow search",
                "description": "Search takes 10s",
                "category": "DELAY",
                "priority": "HIGH",
            },
        )
        assert created.status_code == 201
        body = created.json()
        assert body["status"] == "PENDING"
        assert body["priority"] == "HIGH"

        listed = await c.get("/complaints")
        history = await c.get(f"/complaints/{body['id']}/history")

    assert [item["id"] for item in listed.json()] == [body["id"]]
    assert [h["status"] for h in history.json()] == ["PENDING"]


@pytest.mark.asyncio
async def test_invalid_category_is_422(api, client_user, project):
    async with api(client_user) as c:
        response = await c.post(
            "/complaints",
            json={
                "project_id": str(project.id),
                "title": "x",
                "description": "y",
                "category": "NOISE",
            },
        )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_status_change_errors_map_to_http(api, complaint, client_user, support):
    async with api(support) as c:
        moved = await c.patch(
            f"/complaints/{complaint.id}/status", json={"status": "IN_PROGRESS"}
        )
        assert moved.status_code == 200
        assert moved.json()["status"] == "IN_PROGRESS"

        stale = await c.patch(
            f"/complaints/{complaint.id}/status",
            json={"status": "RESOLVED", "expected_status": "PENDING"},
        )
        assert stale.status_code == 409
        assert stale.json()["error"] == "Conflict"

        invalid = await c.patch(f"/complaints/{complaint.id}/status", json={"status": "CLOSED"})
        assert invalid.status_code == 409
        assert invalid.json()["error"] == "InvalidTransition"

    async with api(client_user) as c:
        forbidden = await c.patch(
            f"/complaints/{complaint.id}/status", json={"status": "RESOLVED"}
        )
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_assign_client_is_422(api, complaint, admin, client_user):
    async with api(admin) as c:
        response = await c.post(
            f"/complaints/{complaint.id}/assign", json={"assignee_id": str(client_user.id)}
        )
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidRole"


@pytest.mark.asyncio
async def test_missing_complaint_is_404(api, admin):
    async with api(admin) as c:
        response = await c.get("/complaints/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_resolve_and_approve_flow(api, db, complaint, client_user, support):
    from complaint_desk import worker

    async with api(support) as c:
        await c.patch(f"/complaints/{complaint.id}/status", json={"status": "IN_PROGRESS"})
        resolved = await c.post(
            f"/complaints/{complaint.id}/resolve",
            json={"resolution_comment": "Added an index"},
        )
    assert resolved.status_code == 200
    assert resolved.json()["assignee_id"] == str(support.id)

    await worker.run_once(db)

    async with api(client_user) as c:
        inbox = await c.get("/me/notifications")
        assert inbox.json()["unread_count"] == 2
        approved = await c.post(
            f"/complaints/{complaint.id}/resolution-response",
            json={"action": "APPROVE"},
        )
        responses = await c.get(f"/complaints/{complaint.id}/responses")

    assert approved.json()["status"] == ComplaintStatus.CLOSED.value
    assert [r["message"] for r in responses.json()] == [
        "Added an index",
        "I approve this resolution.",
    ]


@pytest.mark.asyncio
async def test_notification_inbox_endpoints(api, db, complaint, support):
    from complaint_desk import worker

    await worker.run_once(db)

    async with api(support) as c:
        count = await c.get("/me/notifications/count")
        assert count.json() == {"count": 1}

        items = (await c.get("/me/notifications")).json()["items"]
        marked = await c.patch(f"/me/notifications/{items[0]['id']}/read")
        assert marked.json()["is_read"] is True

        cleared = await c.delete("/me/notifications/read")
        assert cleared.json() == {"deleted": 1}

        missing = await c.delete(f"/me/notifications/{items[0]['id']}")
        assert missing.status_code == 404


@pytest.mark.asyncio
async def test_assignable_staff_endpoint(api, admin, support, client_user):
    async with api(admin) as c:
        ok = await c.get("/complaints/assignable-staff")
    assert ok.status_code == 200
    assert {s["id"] for s in ok.json()} == {str(admin.id), str(support.id)}

    async with api(client_user) as c:
        denied = await c.get("/complaints/assignable-staff")
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_team_endpoints(api, admin, team, support, make_user):
    async with api(admin) as c:
        duplicate = await c.post(f"/teams/{team.id}/members", json={"user_id": str(support.id)})
        assert duplicate.status_code == 409

        removed = await c.delete(f"/teams/{team.id}/members/{support.id}")
        assert removed.status_code == 204

        created = await c.post("/teams", json={"name": "Infra"})
        assert created.status_code == 201

        project = await c.post(
            "/projects", json={"name": "Pipelines", "team_id": created.json()["id"]}
        )
        assert project.status_code == 201
        fetched = await c.get(f"/projects/{project.json()['id']}")
        assert fetched.json()["team_id"] == created.json()["id"]

    async with api(support) as c:
        denied = await c.post("/teams", json={"name": "Shadow"})
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_edit_and_delete_complaint(api, complaint, client_user, support):
    async with api(client_user) as c:
        edited = await c.patch(f"/complaints/{complaint.id}", json={"priority": "HIGH"})
        assert edited.status_code == 200
        assert edited.json()["priority"] == "HIGH"

        empty = await c.patch(f"/complaints/{complaint.id}", json={})
        assert empty.status_code == 422

    async with api(support) as c:
        denied = await c.delete(f"/complaints/{complaint.id}")
        assert denied.status_code == 403

    async with api(client_user) as c:
        deleted = await c.delete(f"/complaints/{complaint.id}")
        assert deleted.status_code == 204
        missing = await c.get(f"/complaints/{complaint.id}")
        assert missing.status_code == 404


@pytest.mark.asyncio
async def test_balance_workload_endpoint(api, complaint, admin, support):
    async with api(support) as c:
        denied = await c.post("/complaints/balance-workload")
    assert denied.status_code == 403

    async with api(admin) as c:
        response = await c.post("/complaints/balance-workload")
        assert response.status_code == 200
        assert response.json() == [
            {"complaint_id": str(complaint.id), "assignee_id": str(support.id)}
        ]

        fetched = await c.get(f"/complaints/{complaint.id}")
        assert fetched.json()["status"] == ComplaintStatus.IN_PROGRESS.value
