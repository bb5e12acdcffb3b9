from datetime import datetime, timedelta
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from starlette.concurrency import run_in_threadpool

from .dates import to_utc_naive, utcnow
from .schemas import (
    AuditLogOut,
    BookingCreate,
    BookingOut,
    BookingStatus,
    BookingUpdate,
    DashboardOut,
    ImportOut,
    OccupancyOut,
    PruneOut,
    PruneReq,
    RevenueOut,
    RoomCreate,
    RoomOut,
    RoomStatus,
    RoomType,
    RoomUpdate,
    SettingsOut,
    SettingsUpdate,
    TodayOut,
    UserCreate,
    UserOut,
    UserUpdate,
)
from .services import HotelServices

router = APIRouter()


def get_services(request: Request) -> HotelServices:
    return request.app.state.hotel


def get_actor(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> Optional[str]:
    return (x_user_id or "").strip() or None


# --- rooms ---
@router.get("/rooms", response_model=List[RoomOut])
def list_rooms(
    status: Optional[RoomStatus] = None,
    type: Optional[RoomType] = None,
    min_capacity: Optional[int] = Query(default=None, ge=1),
    max_price_cents: Optional[int] = Query(default=None, ge=0),
    q: str = "",
    svc: HotelServices = Depends(get_services),
):
    if status or type or min_capacity is not None or max_price_cents is not None or q:
        return svc.rooms.filter(status, type, min_capacity, max_price_cents, q)
    return svc.rooms.list_all()


@router.get("/rooms/available", response_model=List[RoomOut])
def available_rooms(check_in: datetime, check_out: datetime, svc: HotelServices = Depends(get_services)):
    return svc.rooms.available(check_in, check_out)


@router.post("/rooms", response_model=RoomOut, status_code=201)
def create_room(req: RoomCreate, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    return svc.rooms.create(req, actor)


@router.get("/rooms/{room_id}", response_model=RoomOut)
def get_room(room_id: str, svc: HotelServices = Depends(get_services)):
    return svc.rooms.get(room_id)


@router.patch("/rooms/{room_id}", response_model=RoomOut)
def update_room(
    room_id: str,
    req: RoomUpdate,
    actor: Optional[str] = Depends(get_actor),
    svc: HotelServices = Depends(get_services),
):
    return svc.rooms.update(room_id, req, actor)


@router.delete("/rooms/{room_id}", status_code=204)
def delete_room(room_id: str, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    svc.rooms.delete(room_id, actor)
    return Response(status_code=204)


# --- bookings ---
@router.get("/bookings", response_model=List[BookingOut])
def list_bookings(
    status: Optional[BookingStatus] = None,
    room_id: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    q: str = "",
    svc: HotelServices = Depends(get_services),
):
    if status or room_id or start or end or q:
        return svc.bookings.filter(status, room_id, start, end, q)
    return svc.bookings.list_all()


@router.get("/bookings/upcoming", response_model=List[BookingOut])
def upcoming_bookings(days: int = Query(default=7, ge=1, le=365), svc: HotelServices = Depends(get_services)):
    return svc.bookings.upcoming(days)


@router.get("/bookings/today", response_model=TodayOut)
def todays_bookings(svc: HotelServices = Depends(get_services)):
    now = utcnow()
    return {
        "check_ins": svc.bookings.todays_check_ins(now),
        "check_outs": svc.bookings.todays_check_outs(now),
    }


@router.post("/bookings", response_model=BookingOut, status_code=201)
def create_booking(
    req: BookingCreate,
    actor: Optional[str] = Depends(get_actor),
    svc: HotelServices = Depends(get_services),
):
    return svc.bookings.create(req, actor)


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: str, svc: HotelServices = Depends(get_services)):
    return svc.bookings.get(booking_id)


@router.patch("/bookings/{booking_id}", response_model=BookingOut)
def update_booking(
    booking_id: str,
    req: BookingUpdate,
    actor: Optional[str] = Depends(get_actor),
    svc: HotelServices = Depends(get_services),
):
    return svc.bookings.update(booking_id, req, actor)


@router.delete("/bookings/{booking_id}", status_code=204)
def delete_booking(booking_id: str, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    svc.bookings.delete(booking_id, actor)
    return Response(status_code=204)


@router.post("/bookings/{booking_id}/check_in", response_model=BookingOut)
def check_in_booking(booking_id: str, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    return svc.bookings.check_in(booking_id, actor)


@router.post("/bookings/{booking_id}/check_out", response_model=BookingOut)
def check_out_booking(booking_id: str, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    return svc.bookings.check_out(booking_id, actor)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
def cancel_booking(booking_id: str, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    return svc.bookings.cancel(booking_id, actor)


# --- users ---
@router.get("/users", response_model=List[UserOut])
def list_users(q: str = "", svc: HotelServices = Depends(get_services)):
    if q:
        return svc.users.search(q)
    return svc.users.list_all()


@router.post("/users", response_model=UserOut, status_code=201)
def create_user(req: UserCreate, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    return svc.users.create(req, actor)


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: str, svc: HotelServices = Depends(get_services)):
    return svc.users.get(user_id)


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    req: UserUpdate,
    actor: Optional[str] = Depends(get_actor),
    svc: HotelServices = Depends(get_services),
):
    return svc.users.update(user_id, req, actor)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(user_id: str, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    svc.users.delete(user_id, actor)
    return Response(status_code=204)


# --- audit log ---
@router.get("/audit_logs", response_model=List[AuditLogOut])
def list_audit_logs(
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=1000),
    svc: HotelServices = Depends(get_services),
):
    return svc.audit.search(user_id=user_id, action=action, limit=limit)


@router.post("/audit_logs/prune", response_model=PruneOut)
def prune_audit_logs(req: Optional[PruneReq] = None, svc: HotelServices = Depends(get_services)):
    return PruneOut(removed=svc.audit.prune(req.days_to_keep if req else None))


# --- settings / data ---
@router.get("/settings", response_model=SettingsOut)
def get_settings(svc: HotelServices = Depends(get_services)):
    return svc.settings.get()


@router.patch("/settings", response_model=SettingsOut)
def update_settings(req: SettingsUpdate, svc: HotelServices = Depends(get_services)):
    return svc.settings.update(req.theme)


@router.post("/settings/reset", status_code=204)
def reset_all_data(actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    svc.settings.reset_all_data(actor)
    return Response(status_code=204)


@router.get("/data/export")
def export_data(actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)) -> dict[str, Any]:
    return svc.transfer.export_data(actor)


@router.post("/data/import", response_model=ImportOut)
async def import_data(request: Request, actor: Optional[str] = Depends(get_actor), svc: HotelServices = Depends(get_services)):
    # raw body so malformed JSON reaches the importer instead of FastAPI's 422
    raw = await request.body()
    return await run_in_threadpool(svc.transfer.import_data, raw, actor)


# --- stats ---
@router.get("/stats/occupancy", response_model=OccupancyOut)
def stats_occupancy(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    svc: HotelServices = Depends(get_services),
):
    start = to_utc_naive(start) if start else utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    end = end or start + timedelta(days=30)
    return svc.analytics.occupancy(start, end)


@router.get("/stats/revenue", response_model=RevenueOut)
def stats_revenue(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    svc: HotelServices = Depends(get_services),
):
    return svc.analytics.revenue(start, end)


@router.get("/stats/dashboard", response_model=DashboardOut)
def stats_dashboard(svc: HotelServices = Depends(get_services)):
    return svc.analytics.dashboard()
