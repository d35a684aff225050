"""
站内通知模型模块 - SQLModel 版本
"""
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, JSON

from .base import TimestampMixin, IDMixin, SoftDeleteMixin, TimestampResponse, SQLModelBase


class NotificationType(str, Enum):
    """通知事件类型"""
    APPLICATION_DECIDED = "application_decided"
    TASK_DECIDED = "task_decided"
    PAYMENT_SETTLED = "payment_settled"


class Notification(TimestampMixin, SoftDeleteMixin, IDMixin, SQLModelBase, table=True):
    """通知表模型"""
    __tablename__ = "notifications"

    user_id: str = Field(..., index=True, description="接收人ID")
    event_type: str = Field(..., description="事件类型")
    title: str = Field(..., max_length=200, description="标题")
    message: str = Field(..., description="内容")
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON), description="附加信息")
    is_read: bool = Field(False, description="是否已读")


class NotificationResponse(TimestampResponse):
    """通知响应"""
    user_id: str
    event_type: str
    title: str
    message: str
    meta: Optional[dict] = None
    is_read: bool
