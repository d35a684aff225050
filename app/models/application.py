"""
应聘申请模型模块 - SQLModel 版本

Application 是生命周期引擎的核心表：候选人对岗位的一次申请。
任务提交和结算都以 approval_status = approved 为前提。
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import Index, text
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, SoftDeleteMixin, TimestampResponse, utcnow


class ApplicationStatus(str, Enum):
    """申请状态枚举：只允许 applied -> withdrawn"""
    APPLIED = "applied"
    WITHDRAWN = "withdrawn"


class ApprovalStatus(str, Enum):
    """审批状态枚举：只允许 pending -> approved / rejected"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ==================== 表模型 ====================

class Application(TimestampMixin, SoftDeleteMixin, IDMixin, SQLModelBase, table=True):
    """
    应聘申请表模型

    同一 (candidate_id, posting_id) 最多只有一条 applied 记录，
    由部分唯一索引在存储层保证；撤回后再次申请会插入新记录。
    """
    __tablename__ = "applications"
    __table_args__ = (
        Index(
            "uq_applications_active_pair",
            "candidate_id",
            "posting_id",
            unique=True,
            sqlite_where=text("application_status = 'applied'"),
            postgresql_where=text("application_status = 'applied'"),
        ),
    )

    candidate_id: str = Field(..., index=True, description="候选人ID")
    posting_id: str = Field(..., foreign_key="job_posts.id", index=True, description="岗位ID")

    # 状态管理
    application_status: str = Field(ApplicationStatus.APPLIED.value, index=True, description="申请状态")
    approval_status: str = Field(ApprovalStatus.PENDING.value, index=True, description="雇主审批状态")

    # 审批通过时约定的时薪，结算时使用
    hourly_rate: Optional[float] = Field(None, description="约定时薪")
    decided_at: Optional[datetime] = Field(None, description="审批时间")
    decided_by: Optional[str] = Field(None, description="审批人ID")

    applied_at: datetime = Field(default_factory=utcnow, nullable=False, description="申请时间")

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id}, status={self.application_status}, "
            f"approval={self.approval_status})>"
        )


# ==================== 请求 Schema ====================

class ApplicationCreate(SQLModelBase):
    """投递申请请求"""
    posting_id: str = Field(..., min_length=1, description="岗位ID")


class ApprovalDecision(SQLModelBase):
    """雇主审批请求"""
    decision: ApprovalStatus = Field(..., description="审批结果 approved / rejected")
    hourly_rate: Optional[float] = Field(None, gt=0, description="约定时薪（仅 approved 时可传）")


# ==================== 响应 Schema ====================

class ApplicationResponse(TimestampResponse):
    """应聘申请响应"""
    candidate_id: str
    posting_id: str
    application_status: str
    approval_status: str
    hourly_rate: Optional[float]
    applied_at: datetime
    decided_at: Optional[datetime] = None
    decided_by: Optional[str] = None

    # 关联信息（简化）
    posting_title: Optional[str] = None
