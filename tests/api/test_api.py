from __future__ import annotations

import pytest

from src.villa_staff.villa_staff.core.constants import MAX_CART_QUANTITY
from src.villa_staff.villa_staff.core.enums import Role
from src.villa_staff.villa_staff.main import create_app
from src.villa_staff.villa_staff.users.model import User


@pytest.fixture()
def app(tmp_path):
    app = create_app(
        {
            "SECRET_KEY": "test-secret",
            "STORE_BACKEND": "local",
            "LOCAL_STORE_DIR": str(tmp_path),
            "AUTO_INIT_DB": False,
            "AUTO_SEED_DB": False,
            "TESTING": True,
        }
    )
    users = app.extensions["villa_staff"].users_repo
    users.save(User(id="admin", name="Admin User", role=Role.ADMIN))
    users.save(User(id="maria", name="Maria Schmidt", role=Role.STAFF))
    users.save(User(id="john", name="John Doe", role=Role.STAFF))
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, user_id):
    resp = client.post("/login", json={"user_id": user_id})
    assert resp.status_code == 200
    return resp


def test_requires_login(client):
    resp = client.get("/tasks")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_unknown_user_cannot_log_in(client):
    resp = client.post("/login", json={"user_id": "nobody"})

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Unknown user"}


def test_me_and_users(client):
    _login(client, "maria")

    assert client.get("/me").get_json()["name"] == "Maria Schmidt"
    staff = client.get("/users?role=staff").get_json()
    assert [u["id"] for u in staff] == ["john", "maria"]
    assert client.get("/users?role=boss").status_code == 400
    assert client.post("/users", json={"name": "Eve"}).status_code == 403


def test_admin_assigns_points_and_staff_sees_totals(client):
    _login(client, "admin")
    for _ in range(3):
        resp = client.post("/points/assign", json={"user_id": "maria", "items": [{"rule_id": "late"}]})
        assert resp.status_code == 201

    assert client.post("/points/assign", json={"user_id": "maria", "items": []}).status_code == 400
    preview = client.post("/points/preview", json={"user_id": "maria", "items": [{"rule_id": "late"}]})
    assert preview.get_json() == {"total": -10}
    [counter] = client.get("/points/violations?user_id=maria").get_json()
    assert counter["count"] == 3

    client.post("/logout")
    _login(client, "maria")

    totals = client.get("/points/totals?period=this_week").get_json()
    assert totals == {"total": -20, "positive": 0, "negative": 20}
    entries = client.get("/points/entries?period=this_month").get_json()
    assert len(entries) == 3
    assert client.get("/points/violations").status_code == 403
    assert client.post("/points/custom", json={"user_id": "maria", "points": 5, "reason": "x"}).status_code == 403


def test_task_flow_over_http(client):
    _login(client, "admin")
    created = client.post(
        "/tasks",
        json={"task_type": "Room Cleaning", "room": "12", "assigned_to": "maria", "requires_completion_photo": True},
    )
    assert created.status_code == 201
    task = created.get_json()
    assert task["title"] == "Room Cleaning - 12"
    assert task["action_label"] == "Me do"

    client.post("/logout")
    _login(client, "john")
    assert client.post(f"/tasks/{task['id']}/start").status_code == 403

    client.post("/logout")
    _login(client, "maria")
    assert client.post(f"/tasks/{task['id']}/start").get_json()["status"] == "in_progress"
    assert client.post(f"/tasks/{task['id']}/complete", json={}).status_code == 403
    done = client.post(f"/tasks/{task['id']}/complete", json={"photo": "p.jpg"}).get_json()
    assert done["status"] == "completed"
    assert done["completion_count"] == 1

    client.post("/logout")
    _login(client, "admin")
    assert client.post(f"/tasks/{task['id']}/reject", json={"reason": ""}).status_code == 400
    rejected = client.post(f"/tasks/{task['id']}/reject", json={"reason": "incomplete"}).get_json()
    assert rejected["status"] == "pending"
    assert rejected["rejection_reason"] == "incomplete"


def test_templates_and_reports(client):
    _login(client, "admin")
    tpl = client.post(
        "/tasks", json={"task_type": "Reception", "title": "Frühstück", "is_template": True, "points": 20}
    ).get_json()

    assert [t["id"] for t in client.get("/tasks/templates").get_json()] == [tpl["id"]]
    assert client.get("/tasks").get_json() == []

    clone = client.post(f"/tasks/templates/{tpl['id']}/instantiate")
    assert clone.status_code == 201
    assert clone.get_json()["is_template"] is False

    team = client.get("/reports/team").get_json()
    assert team["possible_points"] == 20
    assert team["points_percent"] == 0

    csv_resp = client.get("/reports/staff.csv")
    assert csv_resp.status_code == 200
    assert csv_resp.mimetype == "text/csv"
    body = csv_resp.data.decode("utf-8-sig")
    assert body.splitlines()[0].startswith("user_id,name,points_total")
    assert len(body.splitlines()) == 3


def test_status_reports_local_mode(client):
    assert client.get("/status").get_json() == {"remote": False, "remote_configured": False}


@pytest.mark.parametrize(
    "method, path",
    [
        ("post", "/points/assign"),
        ("post", "/points/custom"),
        ("post", "/points/preview"),
        ("post", "/tasks"),
        ("post", "/tasks/t1/complete"),
        ("post", "/tasks/t1/reject"),
        ("post", "/users"),
    ],
)
@pytest.mark.parametrize("body", [["x"], "late", 7])
def test_non_object_json_body_is_a_bad_request(client, method, path, body):
    _login(client, "admin")

    resp = getattr(client, method)(path, json=body)

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Request body must be a JSON object"}


def test_login_with_non_object_body_is_a_bad_request(client):
    resp = client.post("/login", json=["admin"])

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_cart_items_that_are_not_objects_are_rejected(client):
    _login(client, "admin")

    for path in ("/points/assign", "/points/preview"):
        resp = client.post(path, json={"user_id": "maria", "items": ["late"]})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Cart items must be objects"

    client.post("/logout")
    _login(client, "maria")
    assert client.get("/points/entries?period=this_month").get_json() == []


def test_fractional_or_boolean_numbers_are_rejected(client):
    _login(client, "admin")

    custom = client.post("/points/custom", json={"user_id": "maria", "points": 2.7, "reason": "x"})
    assert custom.status_code == 400
    assert custom.get_json()["message"] == "Points must be a whole number"

    flagged = client.post("/points/custom", json={"user_id": "maria", "points": True, "reason": "x"})
    assert flagged.status_code == 400

    cart = client.post("/points/assign", json={"user_id": "maria", "items": [{"rule_id": "late", "quantity": 1.5}]})
    assert cart.status_code == 400
    assert cart.get_json()["message"] == "Quantity must be a whole number"

    task = client.post("/tasks", json={"task_type": "Reception", "title": "Frühstück", "points": 2.7})
    assert task.status_code == 400


def test_cart_quantity_above_limit_is_rejected(client):
    _login(client, "admin")

    resp = client.post(
        "/points/assign",
        json={"user_id": "maria", "items": [{"rule_id": "late", "quantity": MAX_CART_QUANTITY + 1}]},
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == f"Quantity must be at most {MAX_CART_QUANTITY}"
