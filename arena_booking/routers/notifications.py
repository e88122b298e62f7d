"""
In-app notification endpoints (authenticated).
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from arena_booking import db
from arena_booking.dependencies import CurrentUser, PaginationParams, paginate
from arena_booking.models import MessageResponse, NotificationListResponse

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    operation_id="listNotifications",
    summary="List the authenticated user's notifications",
)
async def list_notifications(
    current_user: CurrentUser,
    pagination: PaginationParams = Depends(PaginationParams),
    unread_only: bool = Query(False, description="Only unread notifications"),
) -> NotificationListResponse:
    notifications = await db.list_notifications(current_user.id, unread_only=unread_only)
    unread = await db.count_unread_notifications(current_user.id)
    return paginate(notifications, pagination, NotificationListResponse, unread_count=unread)


@router.patch(
    "/read-all",
    response_model=MessageResponse,
    operation_id="markAllNotificationsRead",
    summary="Mark every notification as read",
)
async def mark_all_read(current_user: CurrentUser) -> MessageResponse:
    count = await db.mark_all_notifications_read(current_user.id)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.patch(
    "/{notification_id}/read",
    response_model=MessageResponse,
    operation_id="markNotificationRead",
    summary="Mark one notification as read",
)
async def mark_read(notification_id: int, current_user: CurrentUser) -> MessageResponse:
    if not await db.mark_notification_read(notification_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification {notification_id} not found",
        )
    return MessageResponse(message="Notification marked as read")
