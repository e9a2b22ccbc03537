from __future__ import annotations

import random

from fastapi.testclient import TestClient

from app import create_app


def _build_client(settings, clock, seed: int = 11) -> tuple[TestClient, object]:
    app = create_app(settings=settings, clock=clock, rng=random.Random(seed))
    app.state.repository.initialize_database()
    return TestClient(app), app.state.repository


def _department_with(repository, clock, *names: str):
    department = repository.create_department("Maintenance", "Repairs", created_at=clock.now())
    employee_ids = []
    for name in names:
        employee = repository.create_employee(name, "", created_at=clock.now())
        repository.add_employee_to_department(department.department_id, employee.employee_id)
        employee_ids.append(employee.employee_id)
    return department.department_id, employee_ids


def test_task_offer_accept_complete_flow(settings, clock):
    client, repository = _build_client(settings, clock)
    department_id, (worker,) = _department_with(repository, clock, "Levan")

    submit = client.post(
        "/tasks",
        json={
            "title": "Broken shower head",
            "room_number": "402",
            "department_id": department_id,
            "requester_id": "guest-402",
        },
    )
    assert submit.status_code == 201
    task = submit.json()
    assert task["status"] == "assigned"
    assert task["assigned_to"] is None

    offers = client.get(f"/tasks/{task['id']}/offers")
    assert offers.status_code == 200
    assert [offer["employee_id"] for offer in offers.json()] == [worker]

    clock.advance(minutes=1)
    accept = client.post(f"/tasks/{task['id']}/accept", json={"employee_id": worker})
    assert accept.status_code == 200
    assert accept.json()["status"] == "in_progress"

    clock.advance(minutes=15)
    complete = client.post(f"/tasks/{task['id']}/complete", json={"employee_id": worker})
    assert complete.status_code == 200
    assert complete.json()["status"] == "completed"

    history = client.get(f"/tasks/{task['id']}/history")
    assert [entry["status"] for entry in history.json()] == ["completed", "in_progress"]

    performance = client.get(f"/departments/{department_id}/performance")
    assert performance.status_code == 200
    body = performance.json()
    assert body[0]["tasks_completed"] == 1
    assert body[0]["total_work_time"] == 15.0

    by_assignee = client.get("/tasks", params={"assignee_id": worker})
    assert [item["id"] for item in by_assignee.json()] == [task["id"]]


def test_error_mapping(settings, clock):
    client, repository = _build_client(settings, clock)
    empty_department, _ = _department_with(repository, clock)
    department_id, (first, second) = _department_with(repository, clock, "Ana", "Dato")

    no_staff = client.post(
        "/tasks",
        json={
            "title": "Iron request",
            "room_number": "101",
            "department_id": empty_department,
            "requester_id": "guest-101",
        },
    )
    assert no_staff.status_code == 409

    missing = client.post("/tasks/unknown/accept", json={"employee_id": first})
    assert missing.status_code == 404

    task = client.post(
        "/tasks",
        json={
            "title": "Door lock jammed",
            "room_number": "220",
            "department_id": department_id,
            "requester_id": "guest-220",
        },
    ).json()
    offered_to = client.get(f"/tasks/{task['id']}/offers").json()[0]["employee_id"]

    clock.advance(minutes=6)
    expired = client.post(f"/tasks/{task['id']}/accept", json={"employee_id": offered_to})
    assert expired.status_code == 410

    reoffer = client.post(f"/tasks/{task['id']}/offer")
    assert reoffer.status_code == 201
    new_target = reoffer.json()["employee_id"]
    accepted = client.post(f"/tasks/{task['id']}/accept", json={"employee_id": new_target})
    assert accepted.status_code == 200

    outsider = second if new_target == first else first
    forbidden = client.post(f"/tasks/{task['id']}/complete", json={"employee_id": outsider})
    assert forbidden.status_code == 403
    assert client.get(f"/tasks/{task['id']}").json()["status"] == "in_progress"


def test_reject_returns_replacement_offer(settings, clock):
    client, repository = _build_client(settings, clock)
    department_id, employees = _department_with(repository, clock, "Nino", "Giorgi")

    task = client.post(
        "/tasks",
        json={
            "title": "Late checkout towels",
            "room_number": "330",
            "department_id": department_id,
            "requester_id": "guest-330",
        },
    ).json()
    offered_to = client.get(f"/tasks/{task['id']}/offers").json()[0]["employee_id"]

    reject = client.post(f"/tasks/{task['id']}/reject", json={"employee_id": offered_to})

    assert reject.status_code == 200
    replacement = reject.json()
    assert replacement["status"] == "pending"
    assert replacement["employee_id"] in employees


def test_guest_request_claim(settings, clock):
    client, repository = _build_client(settings, clock)
    department_id, (worker,) = _department_with(repository, clock, "Mariam")

    created = client.post(
        "/guest_requests",
        json={
            "title": "Room service menu",
            "room_number": "615",
            "department_id": department_id,
            "guest_name": "Eka",
        },
    )
    assert created.status_code == 201
    request_id = created.json()["id"]

    claim = client.post(f"/guest_requests/{request_id}/accept", json={"employee_id": worker})
    assert claim.status_code == 201
    task = claim.json()
    assert task["status"] == "in_progress"
    assert task["assigned_to"] == worker
    assert task["title"] == "Room service menu - Room 615, Guest: Eka"

    again = client.post(f"/guest_requests/{request_id}/accept", json={"employee_id": worker})
    assert again.status_code == 409

    accepted = client.get("/guest_requests", params={"status": "accepted"})
    assert [item["id"] for item in accepted.json()] == [request_id]


def test_validation_rejects_blank_title(settings, clock):
    client, repository = _build_client(settings, clock)
    department_id, _ = _department_with(repository, clock, "Levan")

    response = client.post(
        "/tasks",
        json={
            "title": "   ",
            "room_number": "101",
            "department_id": department_id,
            "requester_id": "guest-101",
        },
    )
    assert response.status_code == 422


def test_submit_to_unknown_department_leaves_no_task(settings, clock):
    client, repository = _build_client(settings, clock)

    response = client.post(
        "/tasks",
        json={
            "title": "Extra blanket",
            "room_number": "909",
            "department_id": "no-such-department",
            "requester_id": "guest-909",
        },
    )

    assert response.status_code == 404
    assert client.get("/tasks", params={"department_id": "no-such-department"}).json() == []
    assert repository.list_tasks() == []
