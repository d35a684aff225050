"""
工作任务模型模块 - SQLModel 版本

候选人针对已审批申请提交的工时记录。
reported_hours 是唯一的工时来源，track_status 由 progress_percent 推导。
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Union
from sqlalchemy import Text
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, SoftDeleteMixin, TimestampResponse, utcnow
from .application import ApprovalStatus


class TrackStatus(str, Enum):
    """进度状态枚举"""
    ON_TRACK = "on_track"
    OFF_TRACK = "off_track"
    AT_RISK = "at_risk"


# ==================== 表模型 ====================

class Task(TimestampMixin, SoftDeleteMixin, IDMixin, SQLModelBase, table=True):
    """工作任务表模型"""
    __tablename__ = "tasks"

    application_id: str = Field(..., foreign_key="applications.id", index=True, description="应聘申请ID")

    # 内容
    title: str = Field(..., max_length=200, description="任务标题")
    description: str = Field(..., sa_type=Text, description="任务描述")
    attachment_ref: Optional[str] = Field(None, max_length=500, description="附件引用")

    # 工时
    start_time: Optional[datetime] = Field(None, description="开始时间")
    end_time: Optional[datetime] = Field(None, description="结束时间")
    reported_hours: float = Field(..., ge=0, le=24, description="工时（小时）")

    # 进度
    progress_percent: float = Field(0, ge=0, le=100, description="完成百分比")
    track_status: str = Field(TrackStatus.AT_RISK.value, description="进度状态")

    # 审批
    approval_status: str = Field(ApprovalStatus.PENDING.value, index=True, description="雇主审批状态")
    remarks: Optional[str] = Field(None, max_length=2000, sa_type=Text, description="审批备注")
    remarks_added_at: Optional[datetime] = Field(None, description="备注时间")
    remarks_added_by: Optional[str] = Field(None, description="备注人ID")

    # 结算
    is_paid: bool = Field(False, index=True, description="是否已结算")

    submitted_at: datetime = Field(default_factory=utcnow, nullable=False, description="提交时间")

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, approval={self.approval_status}, paid={self.is_paid})>"


# ==================== 请求 Schema ====================

class TaskSubmit(SQLModelBase):
    """
    提交任务请求

    start_time / end_time 可以是 ISO-8601 时间，也可以是当天的时刻
    （"14:00"、"2:30 PM"）；两者都缺省时必须提供 hours_worked。
    """
    application_id: str = Field(..., min_length=1, description="应聘申请ID")
    title: str = Field(..., min_length=1, max_length=200, description="任务标题")
    description: str = Field(..., min_length=1, description="任务描述")
    attachment_ref: Optional[str] = Field(None, max_length=500, description="附件引用")
    start_time: Optional[Union[datetime, str]] = Field(None, description="开始时间")
    end_time: Optional[Union[datetime, str]] = Field(None, description="结束时间")
    hours_worked: Optional[float] = Field(None, description="工时（无起止时间时必填）")
    progress_percent: Optional[float] = Field(None, ge=0, le=100, description="完成百分比")


class TaskProgressUpdate(SQLModelBase):
    """更新任务进度请求"""
    progress_percent: float = Field(..., ge=0, le=100, description="完成百分比")


class TaskDecision(SQLModelBase):
    """雇主审批任务请求"""
    approval_status: Optional[ApprovalStatus] = Field(None, description="审批结果")
    remarks: Optional[str] = Field(None, description="审批备注（仅 approved 时可填）")


# ==================== 响应 Schema ====================

class TaskResponse(TimestampResponse):
    """任务响应"""
    application_id: str
    title: str
    description: str
    attachment_ref: Optional[str]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    reported_hours: float
    progress_percent: float
    track_status: str
    approval_status: str
    remarks: Optional[str]
    remarks_added_at: Optional[datetime] = None
    is_paid: bool
    submitted_at: datetime
