"""Outbound emails for booking, review and account events.

Everything here runs after the business transaction has committed. A failed
send is logged and dropped; it never surfaces to the caller.
"""
from decimal import Decimal
from functools import wraps
from html import escape
import logging

from sqlalchemy.orm import Session

from serviceconnect.core.config import get_settings, parse_admin_emails
from serviceconnect.models import Booking, BookingStatus, ContactMessage, Provider, User
from serviceconnect.services.email import send_email

logger = logging.getLogger(__name__)


def _mask_email(value: str) -> str:
    try:
        local, domain = value.split("@", 1)
    except ValueError:
        return "***"
    if not local:
        return f"***@{domain}"
    return f"{local[:2]}***@{domain}"


def _money(value) -> str:
    return f"₹{Decimal(value or 0):.2f}"


def deliver(to_email: str | None, subject: str, body_html: str) -> bool:
    if not to_email:
        return False
    try:
        send_email(to_email, subject, body_html)
        return True
    except Exception as exc:
        logger.warning(
            "Notification email failed to=%s provider=%s subject=%r error=%s",
            _mask_email(to_email),
            get_settings().email_provider,
            subject,
            exc,
        )
        return False


def best_effort(func):
    """Log and drop any failure in a post-commit notifier, lookups included."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.warning("Notification %s failed", func.__name__, exc_info=True)
            return False

    return wrapper


def _user_email(db: Session, user_id: int) -> str | None:
    user = db.query(User).filter(User.id == user_id).first()
    return user.email if user else None


def _provider_email(db: Session, provider_id: int) -> str | None:
    provider = db.query(Provider).filter(Provider.id == provider_id).first()
    return provider.user.email if provider and provider.user else None


@best_effort
def notify_new_booking(db: Session, booking: Booking) -> bool:
    provider = db.query(Provider).filter(Provider.id == booking.provider_id).first()
    service_name = booking.service.name if booking.service else "your service"
    body = f"""
        <h2>New Booking Request - {escape(service_name)} (ID: {booking.id})</h2>
        <p>Dear {escape(provider.display_name if provider else "Provider")},</p>
        <ul>
            <li><strong>Scheduled Time:</strong> {booking.scheduled_at}</li>
            <li><strong>Location:</strong> {escape(booking.address)}</li>
        </ul>
        <p><strong>Customer's Detailed Description:</strong><br/>{escape(booking.service_description)}</p>
        <p>Please log into your Provider Dashboard to review and <strong>Set Price</strong> or <strong>Reject</strong> this request.</p>
    """
    return deliver(
        _provider_email(db, booking.provider_id),
        f"New Service Request (ID: {booking.id}) on Service Connect",
        body,
    )


@best_effort
def notify_provider_update(db: Session, booking: Booking) -> bool:
    """Tell the customer about a provider-side transition."""
    status = booking.status
    subject = f"Service Connect Booking Update: {status.value.upper()}"
    body = f"<p>Your booking (ID: {booking.id}) status has been updated to <strong>{status.value}</strong>.</p>"
    if status == BookingStatus.AWAITING_CUSTOMER_CONFIRMATION:
        subject = f"Service Connect: Price Quote Received for Booking {booking.id}"
        body = f"""
            <h2>Action Required: Price Quote Received!</h2>
            <p>Your service request (ID: {booking.id}) has been reviewed by the provider.</p>
            <p>The quoted price is <strong>{_money(booking.amount)}</strong>.</p>
            <p>Please log into your Customer Dashboard to confirm or reject this price before proceeding.</p>
        """
    elif status == BookingStatus.COMPLETED:
        subject = f"Service Connect: Action Required - Payment Due for Booking {booking.id}"
        body = f"""
            <h2>Service Completed - Payment Due</h2>
            <p>Your service for booking ID {booking.id} has been marked as <strong>Completed</strong> by the provider.</p>
            <p>Please log in to your dashboard to complete the payment.</p>
        """
    elif status == BookingStatus.REJECTED:
        body = f"""
            <h2>Service Request Rejected</h2>
            <p>We are sorry, but your service request (ID: {booking.id}) was rejected by the provider.</p>
            <p>Please search for another service provider in your area.</p>
        """
    return deliver(_user_email(db, booking.customer_id), subject, body)


@best_effort
def notify_price_decision(db: Session, booking: Booking) -> bool:
    accepted = booking.status == BookingStatus.ACCEPTED
    verdict = "ACCEPTED" if accepted else "REJECTED"
    subject = (
        f"Booking {booking.id} Price ACCEPTED!"
        if accepted
        else f"Booking {booking.id} Price REJECTED (Booking Cancelled)"
    )
    follow_up = (
        "<p>The booking is now ACCEPTED. You may start communication via chat.</p>"
        if accepted
        else "<p>The booking has been cancelled and moved to rejected status.</p>"
    )
    body = f"""
        <h2>Booking {booking.id} Update: {verdict}</h2>
        <p>The customer has {verdict} the quoted price of {_money(booking.amount)}.</p>
        {follow_up}
    """
    return deliver(_provider_email(db, booking.provider_id), subject, body)


@best_effort
def notify_payment(db: Session, booking: Booking, reference: str) -> bool:
    body = f"""
        <h2>Payment Received</h2>
        <p>The customer paid {_money(booking.amount)} for booking ID {booking.id}.</p>
        <p>The amount has been credited to your wallet. Reference: {escape(reference)}</p>
    """
    return deliver(
        _provider_email(db, booking.provider_id),
        f"Service Connect: Payment Received for Booking {booking.id}",
        body,
    )


@best_effort
def notify_review(db: Session, provider: Provider, booking_id: int, rating: int, comment: str | None) -> bool:
    rating_line = f"<p>Rating: <strong>{rating} out of 5 stars</strong></p>" if rating > 0 else ""
    comment_line = f"<p>Comment: <em>{escape(comment)}</em></p>" if comment else ""
    average = provider.average_rating if provider.review_count else "N/A"
    body = f"""
        <h2>New Review Received!</h2>
        <p>A customer left a review for booking ID {booking_id}.</p>
        {rating_line}
        {comment_line}
        <p>Your new average rating is {average}.</p>
    """
    return deliver(
        provider.user.email if provider.user else None,
        f"New Customer Review for Booking {booking_id}",
        body,
    )


@best_effort
def notify_contact(message: ContactMessage) -> int:
    """Forward a contact form submission to every ADMIN_EMAILS address. Returns the number delivered."""
    body = f"""
        <h2>New Contact Message Received</h2>
        <p>From: {escape(message.sender_name)} ({escape(message.sender_email)})</p>
        <p>Message: {escape(message.message)}</p>
    """
    subject = f"New Contact Form Submission (ID: {message.id})"
    return sum(deliver(admin, subject, body) for admin in sorted(parse_admin_emails(get_settings().admin_emails)))


def send_otp(email: str, otp: str, purpose: str) -> bool:
    minutes = get_settings().otp_expire_minutes
    if purpose == "reset":
        subject = "Service Connect: Password Reset Code"
        heading = "Service Connect Password Reset"
        intro = "You requested a password reset for your Service Connect account."
    else:
        subject = "Service Connect: Verify Your Account"
        heading = "Service Connect Email Verification"
        intro = "Thank you for registering. Please use the following code to verify your account."
    body = f"""
        <h2>{heading}</h2>
        <p>{intro}</p>
        <p>Your one-time password (OTP) is: <strong>{escape(otp)}</strong></p>
        <p>This code is valid for {minutes} minutes.</p>
    """
    return deliver(email, subject, body)
