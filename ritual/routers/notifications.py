from fastapi import APIRouter, Depends, Response, status

from ritual.container import Services, get_services
from ritual.schemas.notifications import (
    EngagementHistory,
    FeedbackPromptIn,
    NotificationOut,
    NotificationsOut,
    NotificationStatusOut,
    OptimalTimeOut,
    PreferencesIn,
    PushTokenIn,
    ReEngagementIn,
    ScheduledNotification,
    TimezoneChangeIn,
)

router = APIRouter(tags=["notifications"])


def _out(record: ScheduledNotification) -> NotificationOut:
    return NotificationOut(
        id=record.id,
        kind=record.kind,
        scheduled_time=record.scheduled_time,
        timezone=record.timezone,
        title=record.payload.get("title"),
        body=record.payload.get("body"),
    )


@router.get("/notifications/status", response_model=NotificationStatusOut)
async def notifications_status(services: Services = Depends(get_services)):
    return NotificationStatusOut(enabled=await services.scheduler.are_notifications_enabled())


@router.get("/users/{user_id}/notifications", response_model=NotificationsOut)
async def list_notifications(user_id: str, services: Services = Depends(get_services)):
    records = await services.scheduler.list_scheduled(user_id)
    return NotificationsOut(items=[_out(r) for r in sorted(records, key=lambda r: r.scheduled_time)])


@router.put("/users/{user_id}/notifications/daily-mirror", response_model=NotificationOut)
async def schedule_daily_mirror(user_id: str, body: PreferencesIn, services: Services = Depends(get_services)):
    record = await services.scheduler.schedule_daily_mirror(user_id, body.for_user(user_id))
    return _out(record)


@router.post("/users/{user_id}/notifications/feedback-prompt", response_model=NotificationOut, status_code=201)
async def schedule_feedback_prompt(user_id: str, body: FeedbackPromptIn, services: Services = Depends(get_services)):
    record = await services.scheduler.schedule_feedback_prompt(user_id, body.outfit_id, body.delay_hours)
    return _out(record)


@router.post("/users/{user_id}/notifications/re-engagement")
async def send_re_engagement(user_id: str, body: ReEngagementIn, services: Services = Depends(get_services)):
    payload = await services.scheduler.send_re_engagement_message(user_id, body.days_since_last_use)
    return {"title": payload.title, "body": payload.body, "tier": payload.data.get("tier")}


@router.post("/users/{user_id}/notifications/timezone", response_model=NotificationOut)
async def change_timezone(user_id: str, body: TimezoneChangeIn, services: Services = Depends(get_services)):
    record = await services.scheduler.handle_timezone_change(user_id, body.timezone)
    return _out(record)


@router.delete("/users/{user_id}/notifications")
async def cancel_notifications(user_id: str, services: Services = Depends(get_services)):
    cancelled = await services.scheduler.cancel_scheduled_notifications(user_id)
    return {"cancelled": cancelled}


@router.post("/users/{user_id}/notifications/optimal-time", response_model=OptimalTimeOut)
async def optimal_time(user_id: str, body: EngagementHistory, services: Services = Depends(get_services)):
    return OptimalTimeOut(time=await services.scheduler.optimize_notification_timing(user_id, body))


@router.put("/users/{user_id}/push-token", status_code=status.HTTP_204_NO_CONTENT)
async def register_push_token(user_id: str, body: PushTokenIn, services: Services = Depends(get_services)):
    await services.push_tokens.register(user_id, body.token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
