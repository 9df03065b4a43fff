import os

import pytest

from conftest import auth_headers, make_provider, make_user
from serviceconnect.core.config import get_settings
from serviceconnect.core.errors import AuthorizationError, Conflict
from serviceconnect.models import ContactMessage, User
from serviceconnect.services import profiles


def test_customer_profile_update_keeps_unset_fields(db):
    customer = make_user(db, "cust@example.com")
    profiles.update_profile(db, customer, "cust@example.com", phone_number="98450 00000", city="Mysuru")

    profiles.update_profile(db, customer, "Cust.New@Example.com", city="Bengaluru", location_lat=12.97)

    db.expire_all()
    stored = db.get(User, customer.id)
    assert stored.email == "cust.new@example.com"
    assert stored.phone_number == "98450 00000"
    assert stored.city == "Bengaluru"
    assert stored.location_lat == 12.97


def test_provider_profile_update_ignores_customer_details(db):
    provider_user, _ = make_provider(db)
    profiles.update_profile(db, provider_user, "pro@example.com", full_name="Ravi", city="Pune")

    db.expire_all()
    stored = db.get(User, provider_user.id)
    assert stored.full_name == "Ravi"
    assert stored.city is None


def test_email_taken_by_another_account(db):
    make_user(db, "taken@example.com")
    customer = make_user(db, "cust@example.com")

    with pytest.raises(Conflict):
        profiles.update_profile(db, customer, "taken@example.com")
    db.expire_all()
    assert db.get(User, customer.id).email == "cust@example.com"


def test_admin_email_cannot_be_claimed(db):
    customer = make_user(db, "cust@example.com")
    with pytest.raises(AuthorizationError):
        profiles.update_profile(db, customer, "Root@Example.org")


def test_profile_endpoints(client, db):
    customer = make_user(db, "cust@example.com")
    headers = auth_headers(customer)

    res = client.put(
        "/api/v1/user/profile",
        headers=headers,
        json={"email": "cust@example.com", "full_name": "Meera", "address_line_1": "12 MG Road", "city": "Bengaluru"},
    )
    assert res.status_code == 200

    res = client.get("/api/v1/user/profile", headers=headers)
    body = res.json()["user_profile"]
    assert body["full_name"] == "Meera"
    assert body["role"] == "customer"
    assert body["profile"]["address_line_1"] == "12 MG Road"
    assert body["profile"]["phone_number"] is None


def test_profile_update_validation(client, db):
    headers = auth_headers(make_user(db, "cust@example.com"))

    res = client.put("/api/v1/user/profile", headers=headers, json={"full_name": "No Email"})
    assert res.status_code == 400

    res = client.put("/api/v1/user/profile", headers=headers, json={"email": "cust@example.com", "location_lat": 200})
    assert res.status_code == 400


def test_profile_photo_replaces_previous_file(client, db):
    customer = make_user(db, "cust@example.com")
    headers = auth_headers(customer)

    first = client.post(
        "/api/v1/user/profile-photo",
        headers=headers,
        files={"profile_photo": ("me.png", b"\x89PNG-1", "image/png")},
    )
    second = client.post(
        "/api/v1/user/profile-photo",
        headers=headers,
        files={"profile_photo": ("me.jpg", b"\xff\xd8-2", "image/jpeg")},
    )

    assert first.status_code == 200
    assert second.status_code == 200
    upload_dir = get_settings().upload_dir
    assert not os.path.exists(os.path.join(upload_dir, first.json()["profile_picture_url"].rsplit("/", 1)[1]))
    assert os.path.exists(os.path.join(upload_dir, second.json()["profile_picture_url"].rsplit("/", 1)[1]))
    db.expire_all()
    assert db.get(User, customer.id).profile_picture_url == second.json()["profile_picture_url"]


def test_profile_photo_requires_image(client, db):
    headers = auth_headers(make_user(db, "cust@example.com"))

    res = client.post("/api/v1/user/profile-photo", headers=headers)
    assert res.status_code == 400
    assert res.json() == {"error": "No file uploaded."}

    res = client.post(
        "/api/v1/user/profile-photo",
        headers=headers,
        files={"profile_photo": ("cv.pdf", b"%PDF", "application/pdf")},
    )
    assert res.status_code == 400


def test_contact_us(client, db):
    res = client.post(
        "/api/v1/contact-us",
        json={"name": "Asha", "email": "asha@example.com", "problem_description": "Provider never arrived."},
    )
    assert res.status_code == 201
    stored = db.query(ContactMessage).one()
    assert stored.sender_email == "asha@example.com"
    assert stored.message == "Provider never arrived."

    res = client.post("/api/v1/contact-us", json={"name": " ", "email": "asha@example.com", "problem_description": "x"})
    assert res.status_code == 400
    assert res.json() == {"error": "Name, email, and a description are required."}
