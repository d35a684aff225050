"""
岗位 CRUD 操作

申请计数只通过单条条件更新修改，不做读后写。
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job_post import JobPost, JobPostStatus, AdminApproval
from .base import CRUDBase


class CRUDJobPost(CRUDBase[JobPost]):
    """岗位 CRUD 操作类"""

    def open_predicate(self):
        """“开放申请”谓词，校验和计数更新共用同一条件"""
        return (
            self.model.status == JobPostStatus.ACTIVE.value,
            self.model.admin_approval == AdminApproval.APPROVED.value,
        )

    async def get_including_removed(self, db: AsyncSession, id: str) -> Optional[JobPost]:
        """获取岗位（包含已下架记录），用于区分“不存在”和“已下架”"""
        result = await db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def is_open(self, db: AsyncSession, id: str) -> bool:
        """岗位当前是否开放申请"""
        result = await db.execute(
            self._active(
                select(self.model.id).where(self.model.id == id, *self.open_predicate())
            )
        )
        return result.scalar_one_or_none() is not None

    async def increment_applicants(self, db: AsyncSession, id: str) -> bool:
        """申请人数 +1，仅在岗位仍开放时生效"""
        affected = await self.conditional_update(
            db,
            self.model.id == id,
            *self.open_predicate(),
            values={"applicant_count": self.model.applicant_count + 1},
        )
        return affected == 1

    async def decrement_applicants(self, db: AsyncSession, id: str) -> bool:
        """申请人数 -1，计数为 0 时不做任何修改"""
        affected = await self.conditional_update(
            db,
            self.model.id == id,
            self.model.applicant_count > 0,
            values={"applicant_count": self.model.applicant_count - 1},
        )
        return affected == 1


job_post_crud = CRUDJobPost(JobPost)
