from .analytics import Analytics
from .audit import AuditLogStore
from .bookings import BookingLifecycle
from .rooms import RoomStore
from .settings import SettingsStore
from .store import HotelStore
from .transfer import DataTransfer
from .users import UserStore


class HotelServices:
    """Every domain service wired to one store; hung on `app.state.hotel`."""

    def __init__(self, store: HotelStore):
        self.store = store
        self.rooms = RoomStore(store)
        self.bookings = BookingLifecycle(store)
        self.analytics = Analytics(store)
        self.users = UserStore(store)
        self.audit = AuditLogStore(store)
        self.settings = SettingsStore(store)
        self.transfer = DataTransfer(store)
