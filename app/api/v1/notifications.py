"""
站内通知 API 路由
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.identity import Actor, get_current_actor
from app.core.response import paged_response, DictResponse
from app.crud import notification_crud
from app.models.notification import NotificationResponse

router = APIRouter()


@router.get("", summary="获取我的通知", response_model=DictResponse)
async def get_my_notifications(
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    获取当前用户的通知（按时间倒序）
    """
    skip = (page - 1) * page_size
    items = await notification_crud.get_by_user(db, actor.actor_id, skip=skip, limit=page_size)
    total = await notification_crud.count_by_user(db, actor.actor_id)
    return paged_response(
        [NotificationResponse.model_validate(n).model_dump() for n in items],
        total,
        page,
        page_size,
    )
