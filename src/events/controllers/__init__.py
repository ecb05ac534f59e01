from .check_in import CheckInController
from .events import EventController
from .partners import PartnerController
from .payment_verifications import PaymentVerificationController
from .registrations import RegistrationController
from .tickets import TicketController

EVENT_CONTROLLERS = [
    EventController,
    RegistrationController,
    TicketController,
    PaymentVerificationController,
    CheckInController,
    PartnerController,
]

__all__ = ["EVENT_CONTROLLERS"]
