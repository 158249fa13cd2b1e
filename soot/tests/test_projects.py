import pytest
from sqlalchemy import select

from soot.common.enums import NotificationType
from soot.db.models.notification import Notification


@pytest.mark.asyncio
async def test_create_project_notifies_other_members(client, db_session, auth_headers, owner_user, member_user):
    response = await client.post(
        "/api/v1/projects",
        headers=auth_headers,
        json={"name": "Rénovation cuisine", "starts_at": "2025-04-01", "ends_at": "2025-06-30"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Rénovation cuisine"
    assert data["starts_at"] == "2025-04-01T12:00:00"
    assert data["is_image_generating"] is True

    notified = (
        await db_session.execute(
            select(Notification.user_id).where(Notification.type == NotificationType.PROJECT_CREATED.value)
        )
    ).scalars().all()
    assert notified == [member_user.id]


@pytest.mark.asyncio
async def test_project_end_before_start_is_rejected(client, auth_headers):
    response = await client.post(
        "/api/v1/projects",
        headers=auth_headers,
        json={"name": "Terrasse", "starts_at": "2025-06-01", "ends_at": "2025-05-01"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_and_update_project(client, auth_headers):
    created = (await client.post("/api/v1/projects", headers=auth_headers, json={"name": "Jardin"})).json()

    response = await client.get("/api/v1/projects", headers=auth_headers)
    assert [p["id"] for p in response.json()] == [created["id"]]

    response = await client.patch(
        f"/api/v1/projects/{created['id']}", headers=auth_headers, json={"description": "Potager et compost"}
    )
    assert response.status_code == 200
    assert response.json()["description"] == "Potager et compost"


@pytest.mark.asyncio
async def test_blank_project_name_is_rejected(client, auth_headers):
    response = await client.post("/api/v1/projects", headers=auth_headers, json={"name": "    "})
    assert response.status_code == 400

    created = (await client.post("/api/v1/projects", headers=auth_headers, json={"name": " Cave "})).json()
    assert created["name"] == "Cave"
    response = await client.patch(f"/api/v1/projects/{created['id']}", headers=auth_headers, json={"name": "   "})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_project_of_other_house(client, auth_headers, outsider_headers):
    created = (await client.post("/api/v1/projects", headers=auth_headers, json={"name": "Grenier"})).json()
    response = await client.delete(f"/api/v1/projects/{created['id']}", headers=outsider_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_equipment(client, auth_headers):
    response = await client.post(
        "/api/v1/equipment",
        headers=auth_headers,
        json={
            "name": "Chaudière",
            "location": "Cave",
            "purchased_at": "2019-11-02",
            "warranty_ends_at": "2024-11-02",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["location"] == "Cave"
    assert data["warranty_ends_at"] == "2024-11-02T12:00:00"


@pytest.mark.asyncio
async def test_equipment_crud(client, auth_headers):
    created = (await client.post("/api/v1/equipment", headers=auth_headers, json={"name": "Lave-linge"})).json()

    response = await client.patch(
        f"/api/v1/equipment/{created['id']}", headers=auth_headers, json={"category": "Électroménager"}
    )
    assert response.json()["category"] == "Électroménager"

    response = await client.get("/api/v1/equipment", headers=auth_headers)
    assert len(response.json()) == 1

    response = await client.delete(f"/api/v1/equipment/{created['id']}", headers=auth_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/v1/equipment/{created['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_blank_equipment_name_is_rejected(client, auth_headers):
    response = await client.post("/api/v1/equipment", headers=auth_headers, json={"name": "   "})
    assert response.status_code == 400

    created = (await client.post("/api/v1/equipment", headers=auth_headers, json={"name": "Four  "})).json()
    assert created["name"] == "Four"
    response = await client.patch(f"/api/v1/equipment/{created['id']}", headers=auth_headers, json={"name": " "})
    assert response.status_code == 400
