"""
外部协作方网关

岗位服务和候选人档案服务的接口边界。当前实现直接读写本地的
job_posts / candidate_profiles 表，替换为远程服务时只需实现同样的方法。
"""
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import job_post_crud, profile_crud
from app.models.job_post import JobPost


class JobPostGateway:
    """岗位协作方"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, posting_id: str) -> Optional[JobPost]:
        """获取岗位（包含已下架记录）"""
        return await job_post_crud.get_including_removed(self.db, posting_id)

    async def is_open_for_applications(self, posting_id: str) -> bool:
        return await job_post_crud.is_open(self.db, posting_id)

    async def increment_applicant_count(self, posting_id: str) -> bool:
        """返回 False 表示岗位在校验之后已不再开放"""
        return await job_post_crud.increment_applicants(self.db, posting_id)

    async def decrement_applicant_count(self, posting_id: str) -> bool:
        """计数为 0 时是空操作，返回 False"""
        return await job_post_crud.decrement_applicants(self.db, posting_id)

    async def get_hourly_rate(self, posting_id: str) -> Optional[float]:
        post = await self.get(posting_id)
        return post.hourly_rate if post else None

    async def get_owner(self, posting_id: str) -> Optional[str]:
        post = await self.get(posting_id)
        return post.owner_id if post else None


# 档案前置条件：字段名 -> 展示名称
PREREQUISITES = (
    ("has_education", "Education"),
    ("has_experience", "Experience"),
    ("has_skills", "Skills"),
    ("has_resume", "Resume"),
)


class ProfileGateway:
    """候选人档案协作方"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def missing_prerequisites(self, candidate_id: str) -> List[str]:
        """返回尚未完成的档案部分，没有档案时全部视为缺失"""
        profile = await profile_crud.get_by_candidate(self.db, candidate_id)
        if profile is None:
            return [label for _, label in PREREQUISITES]
        return [label for field, label in PREREQUISITES if not getattr(profile, field)]

    async def has_completed_prerequisites(self, candidate_id: str) -> bool:
        return not await self.missing_prerequisites(candidate_id)
