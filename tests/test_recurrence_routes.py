from datetime import date

from sqlmodel import Session

from taskboard.models.task import Task

from conftest import make_token

SERIES_PAYLOAD = {
    "title": "Weekly report",
    "description": "Send the weekly status report",
    "priority": 4,
    "due_date": "2025-10-15",
    "recurrence_pattern": "weekly",
    "recurrence_interval": 1,
    "recurrence_count": 3,
}


def create_series(client, headers, **overrides):
    payload = dict(SERIES_PAYLOAD, **overrides)
    response = client.post("/api/recurring-tasks", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["task"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_requires_token(client):
    response = client.get("/api/recurring-tasks")
    assert response.status_code == 401


def test_rejects_invalid_token(client):
    response = client.get("/api/recurring-tasks", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_create_recurring_task(client, auth_headers):
    response = client.post(
        "/api/recurring-tasks",
        headers=auth_headers,
        json=dict(SERIES_PAYLOAD, due_date="2025-10-14", recurrence_weekday=5),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["task"]["id"] == data["master_task"]["id"]
    assert data["task"]["owner_id"] == "EMP001"
    assert data["task"]["status"] == "ongoing"
    assert data["task"]["is_recurring"] is True
    assert data["task"]["due_date"] == "2025-10-17"


def test_create_rejects_unknown_pattern(client, auth_headers):
    response = client.post(
        "/api/recurring-tasks", headers=auth_headers, json=dict(SERIES_PAYLOAD, recurrence_pattern="hourly")
    )
    assert response.status_code == 422


def test_create_rejects_end_date_before_due_date(client, auth_headers):
    response = client.post(
        "/api/recurring-tasks", headers=auth_headers, json=dict(SERIES_PAYLOAD, recurrence_end_date="2025-10-01")
    )
    assert response.status_code == 400
    assert "end date" in response.json()["detail"]


def test_complete_master_creates_next_instance(client, auth_headers):
    master = create_series(client, auth_headers)

    response = client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers)

    assert response.status_code == 200
    next_task = response.json()["next_task"]
    assert next_task["due_date"] == "2025-10-22"
    assert next_task["parent_recurrence_id"] == master["id"]
    assert next_task["recurrence_series_id"] == master["recurrence_series_id"]


def test_complete_until_series_ends(client, auth_headers):
    master = create_series(client, auth_headers)
    first = client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers).json()["next_task"]
    second = client.patch(f"/api/tasks/{first['id']}/complete", headers=auth_headers).json()["next_task"]

    response = client.patch(f"/api/tasks/{second['id']}/complete", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Recurrence series completed", "next_task": None}

    history = client.get(f"/api/tasks/{second['id']}/recurrence-history", headers=auth_headers).json()
    assert [(h["instance_number"], h["status"]) for h in history] == [(1, "completed"), (2, "completed")]


def test_complete_is_not_repeated(client, auth_headers):
    master = create_series(client, auth_headers)
    first = client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers).json()["next_task"]
    client.patch(f"/api/tasks/{first['id']}/complete", headers=auth_headers)

    response = client.patch(f"/api/tasks/{first['id']}/complete", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Task already completed", "next_task": None}
    instances = client.get(
        f"/api/recurring-tasks/series/{master['recurrence_series_id']}/instances", headers=auth_headers
    ).json()
    assert [(t["due_date"], t["status"]) for t in instances] == [
        ("2025-10-22", "completed"),
        ("2025-10-29", "ongoing"),
    ]


def test_complete_template_is_rejected(client, auth_headers):
    master = create_series(client, auth_headers)
    client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers)

    response = client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Recurring template cannot be completed"


def test_complete_unknown_task(client, auth_headers):
    response = client.patch("/api/tasks/9999/complete", headers=auth_headers)
    assert response.status_code == 404


def test_complete_standalone_task(client, auth_headers, engine):
    with Session(engine) as db:
        task = Task(title="One-off", owner_id="EMP001", due_date=date(2025, 10, 15))
        db.add(task)
        db.commit()
        task_id = task.id

    response = client.patch(f"/api/tasks/{task_id}/complete", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Task is not recurring"
    with Session(engine) as db:
        assert db.get(Task, task_id).status == "completed"


def test_collaborator_can_complete_but_not_delete(client, auth_headers):
    master = create_series(client, auth_headers, collaborators=["EMP002"])
    collaborator = {"Authorization": f"Bearer {make_token('EMP002')}"}

    assert client.delete(f"/api/recurring-tasks/{master['id']}", headers=collaborator).status_code == 403
    assert client.patch(f"/api/tasks/{master['id']}/complete", headers=collaborator).status_code == 200


def test_stranger_cannot_complete(client, auth_headers):
    master = create_series(client, auth_headers)
    stranger = {"Authorization": f"Bearer {make_token('EMP999')}"}

    response = client.patch(f"/api/tasks/{master['id']}/complete", headers=stranger)
    assert response.status_code == 403


def test_list_active_templates_and_instances(client, auth_headers):
    master = create_series(client, auth_headers)
    assert client.get("/api/recurring-tasks", headers=auth_headers).json() == []

    first = client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers).json()["next_task"]

    templates = client.get("/api/recurring-tasks", headers=auth_headers).json()
    assert [t["id"] for t in templates] == [master["id"]]
    assert templates[0]["status"] == "recurring_template"

    other_user = {"Authorization": f"Bearer {make_token('EMP999')}"}
    assert client.get("/api/recurring-tasks", headers=other_user).json() == []

    instances = client.get(
        f"/api/recurring-tasks/series/{master['recurrence_series_id']}/instances", headers=auth_headers
    ).json()
    assert [t["id"] for t in instances] == [first["id"]]


def test_history_of_standalone_task_is_not_found(client, auth_headers, engine):
    with Session(engine) as db:
        task = Task(title="One-off", owner_id="EMP001")
        db.add(task)
        db.commit()
        task_id = task.id

    response = client.get(f"/api/tasks/{task_id}/recurrence-history", headers=auth_headers)
    assert response.status_code == 404


def test_update_recurring_task(client, auth_headers):
    master = create_series(client, auth_headers)

    response = client.put(
        f"/api/recurring-tasks/{master['id']}",
        headers=auth_headers,
        json={"recurrence_pattern": "monthly", "recurrence_interval": 2},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["recurrence_pattern"] == "monthly"
    assert data["recurrence_interval"] == 2
    assert data["title"] == "Weekly report"


def test_delete_recurring_task(client, auth_headers):
    master = create_series(client, auth_headers)
    client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers)

    response = client.delete(
        f"/api/recurring-tasks/{master['id']}", headers=auth_headers, params={"delete_all_instances": True}
    )

    assert response.status_code == 200
    assert response.json() == {"deleted_count": 2}
    assert client.get(f"/api/tasks/{master['id']}/recurrence-history", headers=auth_headers).status_code == 404


def test_metrics_count_created_instances(client, auth_headers):
    master = create_series(client, auth_headers)
    client.patch(f"/api/tasks/{master['id']}/complete", headers=auth_headers)

    counters = client.get("/api/recurrence/metrics", headers=auth_headers).json()["counters"]
    assert counters["recurrence_series_created_total"] == 1
    assert counters["recurrence_instances_created_total"] == 1
