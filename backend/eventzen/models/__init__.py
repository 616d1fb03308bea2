from eventzen.models.user import User
from eventzen.models.venue import Venue
from eventzen.models.event import Event
from eventzen.models.booking import Booking
from eventzen.models.payment import Payment
from eventzen.models.notification import Notification

__all__ = ["User", "Venue", "Event", "Booking", "Payment", "Notification"]
