"""
候选人档案完整度 CRUD 操作
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import CandidateProfile
from .base import CRUDBase


class CRUDCandidateProfile(CRUDBase[CandidateProfile]):
    """档案完整度 CRUD 操作类"""

    async def get_by_candidate(
        self,
        db: AsyncSession,
        candidate_id: str
    ) -> Optional[CandidateProfile]:
        """根据候选人ID获取档案"""
        result = await db.execute(
            self._active(select(self.model).where(self.model.candidate_id == candidate_id))
        )
        return result.scalar_one_or_none()


profile_crud = CRUDCandidateProfile(CandidateProfile)
