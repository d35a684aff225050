"""
结算批次模型模块 - SQLModel 版本

PaymentBatch 是只追加的内部账本记录，不代表真实资金划转。
创建后不再更新；标记任务为未结算不会修改或删除已有批次。
"""
from typing import Optional
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, SoftDeleteMixin, TimestampResponse


class PaymentBatch(TimestampMixin, SoftDeleteMixin, IDMixin, SQLModelBase, table=True):
    """结算批次表模型"""
    __tablename__ = "payment_batches"

    application_id: str = Field(..., foreign_key="applications.id", index=True, description="应聘申请ID")
    employer_id: str = Field(..., index=True, description="雇主ID")
    candidate_id: str = Field(..., index=True, description="候选人ID")

    total_hours: float = Field(..., ge=0, description="结算工时")
    hourly_rate: float = Field(..., ge=0, description="结算时薪")
    total_amount: float = Field(..., ge=0, description="结算金额")
    task_count: int = Field(..., ge=1, description="本批次任务数")

    def __repr__(self) -> str:
        return f"<PaymentBatch(id={self.id}, hours={self.total_hours}, amount={self.total_amount})>"


# ==================== 请求 Schema ====================

class PaidFlagUpdate(SQLModelBase):
    """设置任务结算标记请求"""
    is_paid: bool = Field(..., description="目标结算状态")


# ==================== 响应 Schema ====================

class PaymentBatchResponse(TimestampResponse):
    """结算批次响应"""
    application_id: str
    employer_id: str
    candidate_id: str
    total_hours: float
    hourly_rate: float
    total_amount: float
    task_count: int


class SettlementResult(SQLModelBase):
    """结算操作结果"""
    changed: bool
    application_id: str
    is_paid: bool
    affected_tasks: int = 0
    total_hours: float = 0
    total_amount: float = 0
    batch: Optional[PaymentBatchResponse] = None


class PaymentSummary(SQLModelBase):
    """单个申请的结算概览"""
    application_id: str
    hourly_rate: Optional[float]
    approved_tasks: int
    approved_hours: float
    paid_hours: float
    unpaid_hours: float
    paid_amount: float
    unpaid_amount: float
    batch_count: int
