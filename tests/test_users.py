from conftest import booking_payload, get_flight


def test_listing_users_needs_staff(make_user, login, customer_client, admin_client):
    assert customer_client.get("/api/users").status_code == 403
    support = login(make_user(role="support"))
    assert support.get("/api/users").status_code == 200
    assert admin_client.get("/api/users").get_json()["pagination"]["total"] == 3


def test_list_filters(make_user, admin_client):
    make_user(name="Farhana Akter", email="farhana@example.com", phone="01811111111")
    make_user(name="Tanvir", email="tanvir@example.com", status="inactive")

    found = admin_client.get("/api/users?search=FARHANA").get_json()["users"]
    assert [u["email"] for u in found] == ["farhana@example.com"]
    by_phone = admin_client.get("/api/users?search=018111").get_json()["users"]
    assert len(by_phone) == 1
    inactive = admin_client.get("/api/users?status=inactive").get_json()["users"]
    assert [u["name"] for u in inactive] == ["Tanvir"]
    admins = admin_client.get("/api/users?role=admin").get_json()["users"]
    assert len(admins) == 1


def test_admin_creates_staff(admin_client, customer_client):
    payload = {"name": "Desk", "email": "desk@example.com", "password": "desk1234", "phone": "02", "role": "support"}
    assert customer_client.post("/api/users", json=payload).status_code == 403

    resp = admin_client.post("/api/users", json=payload)
    assert resp.status_code == 201
    user = resp.get_json()["user"]
    assert user["role"] == "support"
    assert "password" not in user and "password_hash" not in user

    assert admin_client.post("/api/users", json=payload).status_code == 409
    assert admin_client.post("/api/users", json=dict(payload, email="x@example.com", role="root")).status_code == 400


def test_user_sees_only_self(make_user, customer_id, customer_client, admin_client):
    other = make_user()
    assert customer_client.get(f"/api/users/{customer_id}").status_code == 200
    assert customer_client.get(f"/api/users/{other}").status_code == 403
    assert admin_client.get(f"/api/users/{other}").status_code == 200
    assert admin_client.get("/api/users/9999").status_code == 404


def test_self_update_cannot_escalate(customer_id, customer_client):
    resp = customer_client.put(
        f"/api/users/{customer_id}",
        json={"role": "admin", "status": "inactive", "nationality": "Bangladeshi", "passport_expiry": "2030-01-01"},
    )
    user = resp.get_json()["user"]
    assert user["role"] == "user"
    assert user["status"] == "active"
    assert user["nationality"] == "Bangladeshi"
    assert user["passport_expiry"] == "2030-01-01"


def test_password_change_takes_effect(app, customer_id, customer_client):
    customer_client.put(f"/api/users/{customer_id}", json={"password": "brand-new-pw"})
    email = customer_client.get("/api/auth/me").get_json()["user"]["email"]

    fresh = app.test_client()
    assert fresh.post("/api/auth/login", json={"email": email, "password": "brand-new-pw"}).status_code == 200


def test_admin_can_change_role_and_status(make_user, admin_client, customer_client):
    other = make_user()
    resp = admin_client.put(f"/api/users/{other}", json={"role": "support", "status": "inactive"})
    user = resp.get_json()["user"]
    assert (user["role"], user["status"]) == ("support", "inactive")
    assert customer_client.put(f"/api/users/{other}", json={"name": "x"}).status_code == 403


def test_deleting_user_returns_their_seats(app, customer_id, customer_client, admin_client, flight_id):
    customer_client.post("/api/bookings", json=booking_payload(flight_id, "Business", "First"))
    assert get_flight(app, flight_id).available_business_seats == 7

    assert admin_client.delete(f"/api/users/{customer_id}").status_code == 200
    flight = get_flight(app, flight_id)
    assert flight.available_business_seats == 8
    assert flight.available_first_class_seats == 2
    assert admin_client.get("/api/bookings").get_json()["pagination"]["total"] == 0


def test_password_update_must_be_a_string(customer_id, customer_client):
    resp = customer_client.put(f"/api/users/{customer_id}", json={"password": 1234567})
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Password must be a string"
