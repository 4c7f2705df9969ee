from typing import List, Optional

from fastapi import APIRouter, Query, Request

from ..deps import ManageNotificationsDep, SessionScopeDep
from ..schemas.reception import NotificationStatusBody
from ..utils.responses import ok

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", summary="List notifications, newest first")
async def list_notifications(
    request: Request,
    use_case: ManageNotificationsDep,
    scope: SessionScopeDep,
    doctor_id: Optional[List[str]] = Query(None, alias="doctorId"),
    status: Optional[str] = Query(None, description="read, unread or all"),
    limit: Optional[int] = Query(None),
):
    notifications = await use_case.list(doctor_id or [], status, limit, scope)
    return ok(
        request,
        message=f"Found {len(notifications)} notifications",
        notifications=[notification.to_payload() for notification in notifications],
    )


@router.put("", summary="Mark a notification read or unread")
async def set_notification_status(
    request: Request, body: NotificationStatusBody, use_case: ManageNotificationsDep, scope: SessionScopeDep
):
    notification = await use_case.set_status(body.notification_id, body.status, scope)
    return ok(request, message="Notification updated", notification=notification.to_payload())


@router.delete("", summary="Delete a notification")
async def delete_notification(
    request: Request,
    use_case: ManageNotificationsDep,
    scope: SessionScopeDep,
    notification_id: Optional[str] = Query(None, alias="notificationId"),
):
    await use_case.delete(notification_id, scope)
    return ok(request, message="Notification deleted")
