"""
候选人档案完整度模型

教育、工作经历、技能、简历等档案数据由外部档案服务维护，
这里只记录申请前置条件是否满足。
"""
from typing import Optional
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, SoftDeleteMixin, TimestampResponse


class CandidateProfile(TimestampMixin, SoftDeleteMixin, IDMixin, table=True):
    """候选人档案完整度表"""
    __tablename__ = "candidate_profiles"

    candidate_id: str = Field(..., unique=True, index=True, description="候选人ID")
    has_education: bool = Field(False, description="是否已填写教育经历")
    has_experience: bool = Field(False, description="是否已填写工作经历")
    has_skills: bool = Field(False, description="是否已填写技能")
    has_resume: bool = Field(False, description="是否已上传简历")


class CandidateProfileUpdate(SQLModelBase):
    """更新档案完整度请求"""
    has_education: Optional[bool] = None
    has_experience: Optional[bool] = None
    has_skills: Optional[bool] = None
    has_resume: Optional[bool] = None


class CandidateProfileResponse(TimestampResponse):
    """档案完整度响应"""
    candidate_id: str
    has_education: bool
    has_experience: bool
    has_skills: bool
    has_resume: bool
