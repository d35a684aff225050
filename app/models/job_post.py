"""
招聘岗位模型模块 - SQLModel 版本

岗位的完整管理（分类、搜索、过期清理）由外部服务负责，
这里只保留生命周期引擎需要的字段：开放状态、时薪、归属雇主和申请计数。
"""
from enum import Enum
from typing import Optional
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, SoftDeleteMixin, TimestampResponse


class JobPostStatus(str, Enum):
    """岗位状态枚举"""
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"


class AdminApproval(str, Enum):
    """平台审核状态枚举"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ==================== 基础字段定义 ====================

class JobPostBase(SQLModelBase):
    """岗位基础字段"""
    title: str = Field(..., min_length=1, max_length=200, description="岗位名称")
    hourly_rate: Optional[float] = Field(None, gt=0, description="参考时薪")


# ==================== 表模型 ====================

class JobPost(JobPostBase, TimestampMixin, SoftDeleteMixin, IDMixin, table=True):
    """岗位表模型"""
    __tablename__ = "job_posts"

    owner_id: str = Field(..., index=True, description="发布雇主ID")
    status: str = Field(JobPostStatus.ACTIVE.value, index=True, description="岗位状态")
    admin_approval: str = Field(AdminApproval.PENDING.value, description="平台审核状态")
    applicant_count: int = Field(0, ge=0, description="当前有效申请人数")

    def __repr__(self) -> str:
        return f"<JobPost(id={self.id}, status={self.status}, applicants={self.applicant_count})>"


# ==================== 请求 Schema ====================

class JobPostCreate(JobPostBase):
    """创建岗位请求"""
    pass


class JobPostStatusUpdate(SQLModelBase):
    """更新岗位状态请求"""
    status: Optional[JobPostStatus] = Field(None, description="岗位状态")
    admin_approval: Optional[AdminApproval] = Field(None, description="平台审核状态（仅管理员）")
    hourly_rate: Optional[float] = Field(None, gt=0, description="参考时薪")


# ==================== 响应 Schema ====================

class JobPostResponse(TimestampResponse):
    """岗位详情响应"""
    title: str
    owner_id: str
    status: str
    admin_approval: str
    hourly_rate: Optional[float]
    applicant_count: int
