"""
应聘申请 CRUD 操作
"""
from typing import Optional, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.application import Application, ApplicationStatus, ApprovalStatus
from app.models.base import utcnow
from .base import CRUDBase


class CRUDApplication(CRUDBase[Application]):
    """应聘申请 CRUD 操作类"""

    async def get_applied(
        self,
        db: AsyncSession,
        candidate_id: str,
        posting_id: str
    ) -> Optional[Application]:
        """获取候选人对岗位的有效（applied）申请"""
        result = await db.execute(
            self._active(
                select(self.model).where(
                    self.model.candidate_id == candidate_id,
                    self.model.posting_id == posting_id,
                    self.model.application_status == ApplicationStatus.APPLIED.value,
                )
            )
        )
        return result.scalar_one_or_none()

    async def create_application(
        self,
        db: AsyncSession,
        *,
        candidate_id: str,
        posting_id: str
    ) -> Application:
        """创建申请，部分唯一索引冲突时抛出 IntegrityError"""
        return await self.create(db, obj_in={
            "candidate_id": candidate_id,
            "posting_id": posting_id,
            "application_status": ApplicationStatus.APPLIED.value,
            "approval_status": ApprovalStatus.PENDING.value,
        })

    async def mark_withdrawn(
        self,
        db: AsyncSession,
        *,
        id: str,
        candidate_id: str
    ) -> bool:
        """applied -> withdrawn，仅当申请属于该候选人且仍为 applied"""
        affected = await self.conditional_update(
            db,
            self.model.id == id,
            self.model.candidate_id == candidate_id,
            self.model.application_status == ApplicationStatus.APPLIED.value,
            values={"application_status": ApplicationStatus.WITHDRAWN.value},
        )
        return affected == 1

    async def record_decision(
        self,
        db: AsyncSession,
        *,
        id: str,
        decision: ApprovalStatus,
        decided_by: str,
        hourly_rate: Optional[float] = None
    ) -> bool:
        """pending -> approved/rejected，仅对仍为 applied 的申请生效"""
        affected = await self.conditional_update(
            db,
            self.model.id == id,
            self.model.approval_status == ApprovalStatus.PENDING.value,
            self.model.application_status == ApplicationStatus.APPLIED.value,
            values={
                "approval_status": decision.value,
                "hourly_rate": hourly_rate,
                "decided_at": utcnow(),
                "decided_by": decided_by,
            },
        )
        return affected == 1

    def _filtered(
        self,
        query,
        application_status: Optional[str] = None,
        approval_status: Optional[str] = None
    ):
        query = self._active(query)
        if application_status:
            query = query.where(self.model.application_status == application_status)
        if approval_status:
            query = query.where(self.model.approval_status == approval_status)
        return query

    async def get_by_candidate(
        self,
        db: AsyncSession,
        candidate_id: str,
        *,
        application_status: Optional[str] = None,
        approval_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Application]:
        """获取候选人的申请列表"""
        query = self._filtered(
            select(self.model).where(self.model.candidate_id == candidate_id),
            application_status,
            approval_status,
        )
        result = await db.execute(
            query.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_candidate(
        self,
        db: AsyncSession,
        candidate_id: str,
        *,
        application_status: Optional[str] = None,
        approval_status: Optional[str] = None
    ) -> int:
        """统计候选人的申请数量"""
        result = await db.execute(
            self._filtered(
                select(func.count()).select_from(self.model).where(self.model.candidate_id == candidate_id),
                application_status,
                approval_status,
            )
        )
        return result.scalar() or 0

    async def get_by_posting(
        self,
        db: AsyncSession,
        posting_id: str,
        *,
        application_status: Optional[str] = None,
        approval_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Application]:
        """获取某岗位的申请列表"""
        query = self._filtered(
            select(self.model).where(self.model.posting_id == posting_id),
            application_status,
            approval_status,
        )
        result = await db.execute(
            query.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_posting(
        self,
        db: AsyncSession,
        posting_id: str,
        *,
        application_status: Optional[str] = None,
        approval_status: Optional[str] = None
    ) -> int:
        """统计某岗位的申请数量"""
        result = await db.execute(
            self._filtered(
                select(func.count()).select_from(self.model).where(self.model.posting_id == posting_id),
                application_status,
                approval_status,
            )
        )
        return result.scalar() or 0


application_crud = CRUDApplication(Application)
