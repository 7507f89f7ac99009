import base64
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from config import Config, load_config
from database import FriendRepository, build_repository, database_status
from dates import short_relative_description
from errors import AppError, app_error_handler
from logs import configure_logging
from reminders import CalendarCollaborator, LocalCalendar
from schemas import (
    ContactLog,
    ContactLogIn,
    ContactLogOut,
    ContactStatus,
    Friend,
    FriendDetailOut,
    FriendIn,
    FriendOut,
    FriendUpdate,
    LogContactOut,
    ReminderOut,
    Settings,
    SettingsIn,
    StatusCountsOut,
    StatusFilter,
    interval_label,
)
from service import Clock, FriendService
from status import days_since_last_contact, days_until_due, initials, next_contact_date, status
from streaks import is_streak_active


def create_app(
    config: Optional[Config] = None,
    repository: Optional[FriendRepository] = None,
    calendar: Optional[CalendarCollaborator] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    config = config or load_config()
    configure_logging(config.env, config.log_level)

    service_kwargs = {"clock": clock} if clock else {}
    service = FriendService(
        repository or build_repository(config),
        calendar or LocalCalendar(),
        config,
        **service_kwargs,
    )

    app = FastAPI(title="Reconnect API")
    app.state.service = service
    app.add_exception_handler(AppError, app_error_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


def get_service(request: Request) -> FriendService:
    return request.app.state.service


# ------------------------- Presentation -------------------------

def friend_out(friend: Friend, service: FriendService) -> FriendOut:
    now, tz = service.now(), service.tz
    friend_status = status(friend, now, tz)
    return FriendOut(
        id=friend.id,
        name=friend.name,
        initials=initials(friend.name),
        phoneNumber=friend.phoneNumber,
        email=friend.email,
        notes=friend.notes,
        photoData=base64.b64encode(friend.photoData).decode("ascii") if friend.photoData else None,
        reminderIntervalDays=friend.reminderIntervalDays,
        reminderIntervalLabel=interval_label(friend.reminderIntervalDays),
        lastContactedAt=friend.lastContactedAt,
        lastContactedLabel=(
            short_relative_description(friend.lastContactedAt, now, tz) if friend.lastContactedAt else None
        ),
        createdAt=friend.createdAt,
        calendarEventIdentifier=friend.calendarEventIdentifier,
        status=friend_status,
        statusLabel=friend_status.label,
        nextContactDate=next_contact_date(friend, tz) or now,
        daysUntilDue=days_until_due(friend, now, tz),
        daysSinceLastContact=days_since_last_contact(friend, now, tz),
        currentStreak=friend.currentStreak,
        longestStreak=friend.longestStreak,
        lastStreakDate=friend.lastStreakDate,
        isStreakActive=is_streak_active(friend, now, tz),
        pendingDeletion=service.pending_deletion(friend.id) is not None,
        undoUntil=service.pending_deletion(friend.id),
    )


def log_out(log: ContactLog) -> ContactLogOut:
    return ContactLogOut(**log.model_dump())


def friend_detail_out(friend: Friend, service: FriendService) -> FriendDetailOut:
    logs = sorted(friend.contactLogs, key=lambda log: log.contactedAt, reverse=True)
    return FriendDetailOut(
        **friend_out(friend, service).model_dump(),
        contactLogs=[log_out(log) for log in logs],
    )


# ------------------------- Routes -------------------------

router = APIRouter()


@router.get("/")
def read_root():
    return {"message": "Reconnect API running"}


@router.get("/test")
def test_database(service: FriendService = Depends(get_service)):
    return database_status(service.repository)


# ------------------------- Friends -------------------------

@router.get("/api/friends", response_model=List[FriendOut])
def list_friends(
    search: Optional[str] = None,
    status_filter: StatusFilter = Query(StatusFilter.all, alias="status"),
    service: FriendService = Depends(get_service),
):
    return [friend_out(f, service) for f in service.list_friends(search, status_filter)]


@router.get("/api/friends/summary", response_model=StatusCountsOut)
def friends_summary(service: FriendService = Depends(get_service)):
    counts = service.summary()
    return StatusCountsOut(
        total=sum(counts.values()),
        overdue=counts[ContactStatus.overdue],
        dueSoon=counts[ContactStatus.dueSoon],
        onTrack=counts[ContactStatus.onTrack],
    )


@router.post("/api/friends", response_model=FriendOut, status_code=201)
def create_friend(data: FriendIn, service: FriendService = Depends(get_service)):
    # model_dump would re-encode the Base64Bytes photo, so pass the decoded bytes directly
    friend = service.add_friend(**data.model_dump(exclude={"photoData"}), photoData=data.photoData)
    return friend_out(friend, service)


@router.get("/api/friends/{friend_id}", response_model=FriendDetailOut)
def get_friend(friend_id: str, service: FriendService = Depends(get_service)):
    return friend_detail_out(service.get_friend(friend_id), service)


@router.put("/api/friends/{friend_id}", response_model=FriendOut)
def update_friend(friend_id: str, data: FriendUpdate, service: FriendService = Depends(get_service)):
    changes = data.model_dump(exclude={"photoData"})
    # An omitted photo keeps the stored one; an explicit null removes it
    if "photoData" in data.model_fields_set:
        changes["photoData"] = data.photoData
    friend = service.edit_friend(friend_id, **changes)
    return friend_out(friend, service)


@router.delete("/api/friends/{friend_id}")
def delete_friend(friend_id: str, immediate: bool = False, service: FriendService = Depends(get_service)):
    undo_until = service.request_deletion(friend_id, immediate=immediate)
    if undo_until is None:
        return {"deleted": True, "pendingDeletion": False, "undoUntil": None}
    return {"deleted": False, "pendingDeletion": True, "undoUntil": undo_until}


@router.post("/api/friends/{friend_id}/restore", response_model=FriendOut)
def restore_friend(friend_id: str, service: FriendService = Depends(get_service)):
    return friend_out(service.cancel_deletion(friend_id), service)


# ------------------------- Contact logs -------------------------

@router.post("/api/friends/{friend_id}/contacts", response_model=LogContactOut, status_code=201)
def log_contact(friend_id: str, data: ContactLogIn, service: FriendService = Depends(get_service)):
    logged = service.log_contact(friend_id, data.contactedAt, data.method, data.notes)
    return LogContactOut(
        friend=friend_out(logged.friend, service),
        contactLog=log_out(logged.log),
        milestone=logged.milestone,
        milestoneMessage=logged.milestone.message if logged.milestone else None,
    )


@router.post("/api/friends/{friend_id}/contacts/quick", response_model=LogContactOut, status_code=201)
def quick_log_contact(friend_id: str, service: FriendService = Depends(get_service)):
    logged = service.quick_log(friend_id)
    return LogContactOut(
        friend=friend_out(logged.friend, service),
        contactLog=log_out(logged.log),
        milestone=logged.milestone,
        milestoneMessage=logged.milestone.message if logged.milestone else None,
    )


@router.get("/api/friends/{friend_id}/contacts", response_model=List[ContactLogOut])
def list_contacts_for_friend(friend_id: str, service: FriendService = Depends(get_service)):
    return [log_out(log) for log in service.contact_history(friend_id)]


@router.get("/api/contacts", response_model=List[ContactLogOut])
def list_contacts(limit: int = 100, service: FriendService = Depends(get_service)):
    return [log_out(log) for log in service.recent_contacts(limit)]


# ------------------------- Calendar -------------------------

@router.post("/api/friends/{friend_id}/reminder", response_model=ReminderOut)
def create_reminder(friend_id: str, service: FriendService = Depends(get_service)):
    result = service.create_reminder(friend_id)
    return ReminderOut(
        friend=friend_out(result.friend, service),
        calendarEventIdentifier=result.identifier,
        reminderError=result.error,
    )


# ------------------------- Settings -------------------------

@router.get("/api/settings", response_model=Settings)
def get_settings(service: FriendService = Depends(get_service)):
    return service.get_settings()


@router.put("/api/settings", response_model=Settings)
def update_settings(data: SettingsIn, service: FriendService = Depends(get_service)):
    return service.update_settings(data.defaultReminderIntervalDays)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
