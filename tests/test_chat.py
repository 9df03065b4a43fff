import os

import pytest

from conftest import auth_headers, make_booking, make_user
from serviceconnect.core.config import get_settings
from serviceconnect.core.errors import AuthorizationError, ValidationError
from serviceconnect.models import BookingStatus, Message
from serviceconnect.services import chat


@pytest.fixture
def accepted_booking(db, marketplace):
    return make_booking(
        db,
        marketplace["customer"],
        marketplace["provider"],
        marketplace["service"],
        status=BookingStatus.ACCEPTED,
        amount=300,
    )


def test_chat_closed_until_booking_accepted(db, marketplace):
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])
    with pytest.raises(AuthorizationError):
        chat.send_message(db, booking.id, marketplace["customer"], "hello")
    assert db.query(Message).count() == 0


def test_outsider_cannot_read_thread(db, accepted_booking):
    outsider = make_user(db, "nosy@example.com")
    with pytest.raises(AuthorizationError):
        chat.list_messages(db, accepted_booking.id, outsider)


def test_empty_message_rejected(db, marketplace, accepted_booking):
    with pytest.raises(ValidationError):
        chat.send_message(db, accepted_booking.id, marketplace["customer"], "   ")


def test_send_list_unread_and_mark_read(db, marketplace, accepted_booking):
    customer = marketplace["customer"]
    provider_user = marketplace["provider_user"]

    sent = chat.send_message(db, accepted_booking.id, customer, "When will you arrive?")
    chat.send_message(db, accepted_booking.id, provider_user, "Around 10.")

    assert sent.recipient_id == provider_user.id
    assert chat.unread_count(db, provider_user) == 1
    assert chat.unread_count(db, customer) == 1

    thread = chat.list_messages(db, accepted_booking.id, provider_user)
    assert [m.content for m, _ in thread] == ["When will you arrive?", "Around 10."]
    assert thread[0][1] == customer.email

    assert chat.mark_read(db, accepted_booking.id, provider_user) == 1
    assert chat.unread_count(db, provider_user) == 0
    assert chat.unread_count(db, customer) == 1


def test_chat_endpoints(client, db, marketplace, accepted_booking):
    customer_headers = auth_headers(marketplace["customer"])
    provider_headers = auth_headers(marketplace["provider_user"])

    res = client.post(
        f"/api/v1/bookings/{accepted_booking.id}/messages",
        headers=customer_headers,
        json={"content": "Please bring a ladder."},
    )
    assert res.status_code == 201

    res = client.get("/api/v1/user/unread-messages", headers=provider_headers)
    assert res.json() == {"unread_count": 1}

    res = client.get(f"/api/v1/bookings/{accepted_booking.id}/messages", headers=provider_headers)
    assert res.status_code == 200
    assert res.json()["messages"][0]["content"] == "Please bring a ladder."

    res = client.put("/api/v1/messages/read", headers=provider_headers, json={"booking_id": accepted_booking.id})
    assert res.json()["updated"] == 1
    assert client.get("/api/v1/user/unread-messages", headers=provider_headers).json() == {"unread_count": 0}


def test_upload_pdf_attachment(client, db, marketplace, accepted_booking):
    res = client.post(
        f"/api/v1/bookings/{accepted_booking.id}/messages/upload",
        headers=auth_headers(marketplace["customer"]),
        files={"file": ("invoice.pdf", b"%PDF-1.4 test", "application/pdf")},
    )

    assert res.status_code == 201
    file_url = res.json()["file_url"]
    assert file_url.startswith("http://testserver/uploads/")
    assert file_url.endswith(".pdf")
    stored = os.path.join(get_settings().upload_dir, file_url.rsplit("/", 1)[1])
    assert os.path.exists(stored)

    message = db.query(Message).one()
    assert message.content == "File uploaded: invoice.pdf"
    assert message.file_url == file_url


def test_upload_rejects_text_files(client, db, marketplace, accepted_booking):
    res = client.post(
        f"/api/v1/bookings/{accepted_booking.id}/messages/upload",
        headers=auth_headers(marketplace["customer"]),
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert res.status_code == 400
    assert res.json() == {"error": "Only images and PDF files are allowed!"}
    assert db.query(Message).count() == 0


def test_upload_refused_before_acceptance(client, db, marketplace):
    booking = make_booking(db, marketplace["customer"], marketplace["provider"], marketplace["service"])
    res = client.post(
        f"/api/v1/bookings/{booking.id}/messages/upload",
        headers=auth_headers(marketplace["customer"]),
        files={"file": ("photo.png", b"\x89PNG", "image/png")},
    )
    assert res.status_code == 403
