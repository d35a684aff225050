"""
结算批次 CRUD 操作

账本只追加：这里只提供创建和查询，不提供更新或删除。
"""
from typing import Optional, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import PaymentBatch
from .base import CRUDBase


class CRUDPaymentBatch(CRUDBase[PaymentBatch]):
    """结算批次 CRUD 操作类"""

    async def append(
        self,
        db: AsyncSession,
        *,
        application_id: str,
        employer_id: str,
        candidate_id: str,
        total_hours: float,
        hourly_rate: float,
        total_amount: float,
        task_count: int
    ) -> PaymentBatch:
        """追加一条结算批次"""
        return await self.create(db, obj_in={
            "application_id": application_id,
            "employer_id": employer_id,
            "candidate_id": candidate_id,
            "total_hours": total_hours,
            "hourly_rate": hourly_rate,
            "total_amount": total_amount,
            "task_count": task_count,
        })

    def _scoped(
        self,
        query,
        application_id: Optional[str] = None,
        employer_id: Optional[str] = None,
        candidate_id: Optional[str] = None
    ):
        query = self._active(query)
        if application_id:
            query = query.where(self.model.application_id == application_id)
        if employer_id:
            query = query.where(self.model.employer_id == employer_id)
        if candidate_id:
            query = query.where(self.model.candidate_id == candidate_id)
        return query

    async def list_batches(
        self,
        db: AsyncSession,
        *,
        application_id: Optional[str] = None,
        employer_id: Optional[str] = None,
        candidate_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[PaymentBatch]:
        """按申请 / 雇主 / 候选人查询结算批次"""
        query = self._scoped(select(self.model), application_id, employer_id, candidate_id)
        result = await db.execute(
            query.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count_batches(
        self,
        db: AsyncSession,
        *,
        application_id: Optional[str] = None,
        employer_id: Optional[str] = None,
        candidate_id: Optional[str] = None
    ) -> int:
        """统计结算批次数量"""
        result = await db.execute(
            self._scoped(
                select(func.count()).select_from(self.model),
                application_id,
                employer_id,
                candidate_id,
            )
        )
        return result.scalar() or 0


payment_crud = CRUDPaymentBatch(PaymentBatch)
