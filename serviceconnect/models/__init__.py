from serviceconnect.models.user import User, UserRole
from serviceconnect.models.service import Service, provider_services
from serviceconnect.models.provider import Provider
from serviceconnect.models.wallet import Wallet
from serviceconnect.models.transaction import Transaction, TransactionType, CREDIT_TYPES, DEBIT_TYPES
from serviceconnect.models.wallet_request import WalletRequest, WalletRequestType, WalletRequestStatus
from serviceconnect.models.booking import Booking, BookingStatus
from serviceconnect.models.payment import Payment, PaymentStatus
from serviceconnect.models.review import Review
from serviceconnect.models.message import Message
from serviceconnect.models.contact_message import ContactMessage

__all__ = [
    "User",
    "UserRole",
    "Service",
    "provider_services",
    "Provider",
    "Wallet",
    "Transaction",
    "TransactionType",
    "CREDIT_TYPES",
    "DEBIT_TYPES",
    "WalletRequest",
    "WalletRequestType",
    "WalletRequestStatus",
    "Booking",
    "BookingStatus",
    "Payment",
    "PaymentStatus",
    "Review",
    "Message",
    "ContactMessage",
]
