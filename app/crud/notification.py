"""
通知 CRUD 操作
"""
from typing import List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from .base import CRUDBase


class CRUDNotification(CRUDBase[Notification]):
    """通知 CRUD 操作类"""

    async def get_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        *,
        skip: int = 0,
        limit: int = 100
    ) -> List[Notification]:
        """获取用户的通知列表"""
        result = await db.execute(
            self._active(select(self.model).where(self.model.user_id == user_id))
            .order_by(self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_user(self, db: AsyncSession, user_id: str) -> int:
        """统计用户的通知数量"""
        result = await db.execute(
            self._active(
                select(func.count()).select_from(self.model).where(self.model.user_id == user_id)
            )
        )
        return result.scalar() or 0


notification_crud = CRUDNotification(Notification)
