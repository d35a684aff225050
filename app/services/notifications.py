"""
通知投递模块

NotificationSink 是单向的事件消费者：emit() 只在业务事务上登记一次写入，
事务提交后才真正投递，回滚时一并丢弃。
写入失败只记录日志，不影响发起通知的业务操作。
"""
from functools import partial
from typing import Any, Callable, Dict, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import after_commit
from app.models.notification import Notification


class NotificationSink:
    """
    站内通知投递器

    每条通知在独立的数据库会话中写入，与业务请求的事务互不影响。
    """

    def __init__(self, session_factory: Optional[Callable] = None, enabled: bool = True):
        self._session_factory = session_factory
        self._enabled = enabled

    def _factory(self) -> Callable:
        if self._session_factory is None:
            from app.core.database import AsyncSessionLocal
            self._session_factory = AsyncSessionLocal
        return self._session_factory

    def emit(
        self,
        db: AsyncSession,
        target_user_id: str,
        title: str,
        message: str,
        event_type: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        """登记一条通知，db 所在事务提交后投递"""
        if not self._enabled:
            return
        after_commit(db, partial(self.deliver, target_user_id, title, message, event_type, meta))

    async def deliver(
        self,
        target_user_id: str,
        title: str,
        message: str,
        event_type: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        """写入一条通知"""
        try:
            async with self._factory()() as session:
                session.add(Notification(
                    user_id=target_user_id,
                    title=title,
                    message=message,
                    event_type=event_type,
                    meta=meta or {},
                ))
                await session.commit()
        except Exception:
            logger.exception(f"通知写入失败: user={target_user_id}, type={event_type}")


def safe_emit(
    sink: NotificationSink,
    db: AsyncSession,
    target_user_id: str,
    title: str,
    message: str,
    event_type: str,
    meta: Optional[Dict[str, Any]] = None,
) -> None:
    """发送通知，任何异常都只记录日志"""
    try:
        sink.emit(db, target_user_id, title, message, event_type, meta)
    except Exception:
        logger.exception(f"通知投递失败: user={target_user_id}, type={event_type}")


# 全局通知投递器
notification_sink = NotificationSink(enabled=settings.notifications_enabled)


def get_notifier() -> NotificationSink:
    """通知投递器依赖注入"""
    return notification_sink
