from .check_in import CheckIn
from .enums import CheckInMode
from .event import Event
from .partner import ExternalPartner
from .registration import Registration
from .ticket import PaymentVerification, Ticket

__all__ = [
    "CheckIn",
    "CheckInMode",
    "Event",
    "ExternalPartner",
    "PaymentVerification",
    "Registration",
    "Ticket",
]
