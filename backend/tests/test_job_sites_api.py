"""Tests for job site, worker, request and hours API endpoints"""

import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.mark.asyncio
class TestJobSiteEndpoints:
    """Job site CRUD and assignment endpoints"""

    async def test_admin_creates_job_site(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/job-sites",
            json={"name": "North Tower", "address": "12 Harbor Rd"},
            headers=auth_headers(crew.admin),
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["name"] == "North Tower"
        assert data["status"] == "active"
        assert data["organization_id"] == str(crew.org.id)

    async def test_superintendent_forbidden(self, async_client: AsyncClient, crew, auth_headers):
        """The denial does not say which rule failed"""
        response = await async_client.post(
            "/api/v1/job-sites",
            json={"name": "North Tower"},
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        data = response.json()
        assert data["type"] == "https://api.crewcommand.app/errors/forbidden"
        assert data["detail"] == "You do not have permission to perform this action"
        assert data["instance"] == "/api/v1/job-sites"

    async def test_invalid_body_is_400(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/job-sites",
            json={"name": ""},
            headers=auth_headers(crew.admin),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["detail"] == "Request validation failed"
        assert data["errors"][0]["field"] == "name"

    async def test_list_is_scoped(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.get("/api/v1/job-sites", headers=auth_headers(crew.foreman))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert data["job_sites"][0]["id"] == str(crew.riverside.id)

    async def test_foreign_site_is_404(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.get(
            f"/api/v1/job-sites/{crew.rival_site.id}", headers=auth_headers(crew.admin)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Job site not found"

    async def test_unassigned_site_is_403(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.get(
            f"/api/v1/job-sites/{crew.eastgate.id}", headers=auth_headers(crew.foreman)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_assign_twice_leaves_one_active(self, async_client: AsyncClient, crew, auth_headers):
        headers = auth_headers(crew.admin)
        url = f"/api/v1/job-sites/{crew.eastgate.id}/assignments"

        for role in ("foreman", "superintendent"):
            response = await async_client.post(
                url, json={"user_id": str(crew.foreman.id), "role": role}, headers=headers
            )
            assert response.status_code == status.HTTP_201_CREATED

        response = await async_client.get(url, params={"active_only": "false"}, headers=headers)
        rows = [r for r in response.json() if r["user_id"] == str(crew.foreman.id)]

        assert len(rows) == 2
        assert [r["role"] for r in rows if r["is_active"]] == ["superintendent"]

    async def test_unknown_role_rejected(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            f"/api/v1/job-sites/{crew.eastgate.id}/assignments",
            json={"user_id": str(crew.foreman.id), "role": "owner"},
            headers=auth_headers(crew.admin),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_site_workers(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.get(
            f"/api/v1/job-sites/{crew.riverside.id}/workers", headers=auth_headers(crew.engineer)
        )

        assert response.status_code == status.HTTP_200_OK
        assert [w["name"] for w in response.json()] == ["Jose Martinez", "Jose Silva", "Panama Lopez"]


@pytest.mark.asyncio
class TestWorkerAndHoursEndpoints:
    """Worker moves, reassignment requests and hours"""

    async def test_admin_moves_worker(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            f"/api/v1/workers/{crew.mary.id}/move",
            json={"to_site_id": str(crew.riverside.id), "effective_date": "2026-02-02"},
            headers=auth_headers(crew.admin),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Moved Mary Johnson effective 2026-02-02"
        assert data["worker"]["job_site_id"] == str(crew.riverside.id)

    async def test_superintendent_cannot_move_worker(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            f"/api/v1/workers/{crew.jose_martinez.id}/move",
            json={"to_site_id": str(crew.eastgate.id)},
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_request_then_approve(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/assignment-requests",
            json={"worker_id": str(crew.jose_silva.id), "to_task_id": str(crew.concrete.id)},
            headers=auth_headers(crew.foreman),
        )
        assert response.status_code == status.HTTP_201_CREATED
        request_id = response.json()["id"]

        response = await async_client.post(
            f"/api/v1/assignment-requests/{request_id}/approve",
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "approved"

        response = await async_client.get(
            "/api/v1/assignment-requests",
            params={"job_site_id": str(crew.riverside.id), "status": "pending"},
            headers=auth_headers(crew.superintendent),
        )
        assert response.json() == []

    async def test_log_and_read_hours(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/hours",
            json={"worker_id": str(crew.panama.id), "log_date": "2026-01-14", "hours_worked": 9.5},
            headers=auth_headers(crew.foreman),
        )
        assert response.status_code == status.HTTP_200_OK

        response = await async_client.get(
            f"/api/v1/hours/workers/{crew.panama.id}", headers=auth_headers(crew.worker_user)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_hours"] == 9.5
        assert data["entries"][0]["status"] == "worked"

    async def test_hours_out_of_range(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/hours",
            json={"worker_id": str(crew.panama.id), "log_date": "2026-01-14", "hours_worked": 25},
            headers=auth_headers(crew.foreman),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_superintendent_corrects_hours(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/hours",
            json={"worker_id": str(crew.panama.id), "log_date": "2026-01-14"},
            headers=auth_headers(crew.foreman),
        )
        entry_id = response.json()["id"]

        response = await async_client.patch(
            f"/api/v1/hours/{entry_id}", json={"status": "off"}, headers=auth_headers(crew.foreman)
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await async_client.patch(
            f"/api/v1/hours/{entry_id}", json={"status": "off"}, headers=auth_headers(crew.superintendent)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "off"
        assert data["hours_worked"] == 0.0
        assert data["logged_by"] == str(crew.superintendent.id)


@pytest.mark.asyncio
class TestJobSiteEditEndpoint:
    """Editing job site details"""

    async def test_superintendent_edits_site(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/job-sites/{crew.riverside.id}",
            json={"address": "400 River Rd", "status": "on_hold"},
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["address"] == "400 River Rd"
        assert data["status"] == "on_hold"
        assert data["name"] == "Riverside Medical Center"

    async def test_foreman_forbidden(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/job-sites/{crew.riverside.id}",
            json={"name": "Riverside"},
            headers=auth_headers(crew.foreman),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_unknown_status_rejected(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/job-sites/{crew.riverside.id}",
            json={"status": "demolished"},
            headers=auth_headers(crew.admin),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "status"


@pytest.mark.asyncio
class TestTaskEndpoints:
    """Task creation, listing, editing and status changes"""

    async def test_create_then_list(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/tasks",
            json={
                "job_site_id": str(crew.riverside.id),
                "name": "Drywall",
                "start_date": "2026-01-19",
                "required_carpenters": 2,
            },
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_201_CREATED
        created = response.json()
        assert created["status"] == "planned"
        assert created["created_by"] == str(crew.superintendent.id)

        response = await async_client.get(
            "/api/v1/tasks",
            params={"job_site_id": str(crew.riverside.id), "status": "planned"},
            headers=auth_headers(crew.engineer),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 2
        assert {t["name"] for t in data["tasks"]} == {"Concrete Pour", "Drywall"}

    async def test_negative_headcount_rejected(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.post(
            "/api/v1/tasks",
            json={"job_site_id": str(crew.riverside.id), "name": "Drywall", "required_masons": -1},
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_foreman_changes_status_only(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/tasks/{crew.concrete.id}",
            json={"name": "Slab Pour"},
            headers=auth_headers(crew.foreman),
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await async_client.patch(
            f"/api/v1/tasks/{crew.concrete.id}/status",
            json={"status": "active"},
            headers=auth_headers(crew.foreman),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "active"

    async def test_superintendent_edits_task(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/tasks/{crew.concrete.id}",
            json={"required_laborers": 5},
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["required_laborers"] == 5
        assert data["name"] == "Concrete Pour"

    async def test_foreign_task_is_404(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.get(
            f"/api/v1/tasks/{crew.rival_task.id}", headers=auth_headers(crew.admin)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
class TestUserRoleEndpoint:
    """Organization-wide role changes"""

    async def test_admin_changes_role(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/users/{crew.engineer.id}/role",
            json={"base_role": "superintendent"},
            headers=auth_headers(crew.admin),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == str(crew.engineer.id)
        assert data["base_role"] == "superintendent"

    async def test_superintendent_forbidden(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/users/{crew.foreman.id}/role",
            json={"base_role": "admin"},
            headers=auth_headers(crew.superintendent),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_own_role_is_400(self, async_client: AsyncClient, crew, auth_headers):
        response = await async_client.patch(
            f"/api/v1/users/{crew.admin.id}/role",
            json={"base_role": "worker"},
            headers=auth_headers(crew.admin),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "You cannot change your own role"
