import uuid

import pytest
from sqlalchemy import select

from soot.common.enums import NotificationType
from soot.db.models.house import Zone
from soot.db.models.notification import Notification
from soot.db.models.task import Task


async def _create(client, headers, **overrides):
    payload = {"title": "Changer le filtre de la VMC", "due_date": "2030-04-12"}
    payload.update(overrides)
    return await client.post("/api/v1/tasks", headers=headers, json=payload)


@pytest.mark.asyncio
async def test_create_task(client, auth_headers, owner_user, mock_celery_tasks):
    response = await _create(client, auth_headers, description="Modèle F7")
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Changer le filtre de la VMC"
    assert data["status"] == "TODO"
    assert data["due_date"] == "2030-04-12T12:00:00"
    assert data["created_by_id"] == str(owner_user.id)
    assert data["parent_id"] is None
    assert data["is_image_generating"] is True
    mock_celery_tasks.assert_called_once()


@pytest.mark.asyncio
async def test_recurring_task_creates_template_and_instance(client, db_session, auth_headers, house):
    response = await _create(client, auth_headers, recurrence_unit="MONTHLY", recurrence_interval=3)
    assert response.status_code == 201
    data = response.json()
    assert data["parent_id"] is not None

    template = await db_session.get(Task, uuid.UUID(data["parent_id"]))
    assert template.is_template is True
    assert template.recurrence_unit == "MONTHLY"
    assert template.recurrence_interval == 3

    response = await client.get(f"/api/v1/tasks/{template.id}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Tâche introuvable"}


@pytest.mark.asyncio
async def test_interval_without_unit_is_rejected(client, auth_headers):
    response = await _create(client, auth_headers, recurrence_interval=2)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_tasks_hides_templates(client, auth_headers):
    await _create(client, auth_headers, recurrence_unit="YEARLY")
    await _create(client, auth_headers, title="Purger les radiateurs")

    response = await client.get("/api/v1/tasks", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert sorted(t["title"] for t in data["tasks"]) == ["Changer le filtre de la VMC", "Purger les radiateurs"]


@pytest.mark.asyncio
async def test_list_tasks_filters_by_status(client, auth_headers):
    created = (await _create(client, auth_headers)).json()
    await _create(client, auth_headers, title="Autre tâche")
    await client.post(f"/api/v1/tasks/{created['id']}/status", headers=auth_headers, json={"status": "DONE"})

    response = await client.get("/api/v1/tasks", headers=auth_headers, params={"status": "DONE"})
    assert [t["id"] for t in response.json()["tasks"]] == [created["id"]]


@pytest.mark.asyncio
async def test_assignment_notifies_assignee(client, db_session, auth_headers, member_user):
    response = await _create(client, auth_headers, assignee_id=str(member_user.id))
    assert response.json()["assignee_id"] == str(member_user.id)
    assert response.json()["assigned_at"] is not None

    notifications = (
        await db_session.execute(select(Notification).where(Notification.user_id == member_user.id))
    ).scalars().all()
    assert len(notifications) == 1
    assert notifications[0].type == NotificationType.TASK_ASSIGNED.value
    assert notifications[0].title == "Nouvelle tâche assignée: Changer le filtre de la VMC"


@pytest.mark.asyncio
async def test_assignee_outside_house_is_dropped(client, auth_headers, outsider_user):
    response = await _create(client, auth_headers, assignee_id=str(outsider_user.id))
    assert response.status_code == 201
    assert response.json()["assignee_id"] is None


@pytest.mark.asyncio
async def test_relation_from_other_house_is_dropped(client, db_session, auth_headers, house, outsider_user):
    foreign_zone = await db_session.scalar(select(Zone).where(Zone.house_id != house.id))
    own_zone = await db_session.scalar(select(Zone).where(Zone.house_id == house.id))

    response = await _create(client, auth_headers, zone_id=str(foreign_zone.id))
    assert response.json()["zone_id"] is None

    response = await _create(client, auth_headers, zone_id=str(own_zone.id))
    assert response.json()["zone_id"] == str(own_zone.id)


@pytest.mark.asyncio
async def test_completion_notifies_creator(client, db_session, auth_headers, member_headers, owner_user, member_user):
    created = (await _create(client, auth_headers, assignee_id=str(member_user.id))).json()

    response = await client.post(
        f"/api/v1/tasks/{created['id']}/status", headers=member_headers, json={"status": "DONE"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "DONE"

    notifications = (
        await db_session.execute(
            select(Notification).where(
                Notification.user_id == owner_user.id,
                Notification.type == NotificationType.TASK_STATUS.value,
            )
        )
    ).scalars().all()
    assert [n.title for n in notifications] == ["Tâche terminée: Changer le filtre de la VMC"]


@pytest.mark.asyncio
async def test_reassign_task(client, db_session, auth_headers, member_user):
    created = (await _create(client, auth_headers)).json()

    response = await client.post(
        f"/api/v1/tasks/{created['id']}/assignee", headers=auth_headers, json={"assignee_id": str(member_user.id)}
    )
    assert response.status_code == 200
    assert response.json()["assignee_id"] == str(member_user.id)

    count = len(
        (await db_session.execute(select(Notification).where(Notification.user_id == member_user.id))).scalars().all()
    )
    assert count == 1


@pytest.mark.asyncio
async def test_update_series_instance_updates_template(client, db_session, auth_headers):
    created = (await _create(client, auth_headers, recurrence_unit="WEEKLY")).json()

    response = await client.patch(
        f"/api/v1/tasks/{created['id']}", headers=auth_headers, json={"title": "Filtre VMC", "reminder_offset_days": 2}
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Filtre VMC"

    template = await db_session.get(Task, uuid.UUID(created["parent_id"]))
    assert template.title == "Filtre VMC"
    assert template.reminder_offset_days == 2


@pytest.mark.asyncio
async def test_update_requires_a_field(client, auth_headers):
    created = (await _create(client, auth_headers)).json()
    response = await client.patch(f"/api/v1/tasks/{created['id']}", headers=auth_headers, json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_blank_title_is_rejected(client, auth_headers):
    response = await _create(client, auth_headers, title="     ")
    assert response.status_code == 400

    created = (await _create(client, auth_headers)).json()
    response = await client.patch(f"/api/v1/tasks/{created['id']}", headers=auth_headers, json={"title": "  "})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_task_of_other_house_is_forbidden(client, auth_headers, outsider_headers):
    created = (await _create(client, auth_headers)).json()
    response = await client.get(f"/api/v1/tasks/{created['id']}", headers=outsider_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_task(client, auth_headers):
    created = (await _create(client, auth_headers)).json()
    response = await client.delete(f"/api/v1/tasks/{created['id']}", headers=auth_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/v1/tasks/{created['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_regenerate_image_reuses_pending_job(client, auth_headers, mock_celery_tasks):
    created = (await _create(client, auth_headers)).json()

    response = await client.post(f"/api/v1/tasks/{created['id']}/image", headers=auth_headers)
    assert response.status_code == 202
    assert response.json()["is_image_generating"] is True
    assert mock_celery_tasks.call_count == 1
