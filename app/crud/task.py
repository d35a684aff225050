"""
工作任务 CRUD 操作

写路径在落库前重新计算 track_status；
审批和结算标记只通过条件更新修改。
"""
from typing import Optional, List, Dict, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.application import Application, ApprovalStatus
from app.models.base import utcnow
from app.models.task import Task
from app.services.metrics import track_status_for
from .base import CRUDBase


class CRUDTask(CRUDBase[Task]):
    """工作任务 CRUD 操作类"""

    def _approved_applications(self):
        """父申请仍为 approved 的子查询，审批时与任务更新放在同一条语句里"""
        return select(Application.id).where(
            Application.approval_status == ApprovalStatus.APPROVED.value,
            Application.removed_at.is_(None),
        )

    async def create_task(self, db: AsyncSession, *, obj_in: Dict[str, Any]) -> Task:
        """创建任务，同时计算进度状态"""
        data = dict(obj_in)
        data.setdefault("progress_percent", 0)
        data["track_status"] = track_status_for(data["progress_percent"]).value
        return await self.create(db, obj_in=data)

    async def update_progress(
        self,
        db: AsyncSession,
        *,
        id: str,
        progress_percent: float
    ) -> bool:
        """更新进度并重算进度状态，仅限待审批任务"""
        affected = await self.conditional_update(
            db,
            self.model.id == id,
            self.model.approval_status == ApprovalStatus.PENDING.value,
            values={
                "progress_percent": progress_percent,
                "track_status": track_status_for(progress_percent).value,
            },
        )
        return affected == 1

    async def apply_decision(
        self,
        db: AsyncSession,
        *,
        id: str,
        expected_status: str,
        new_status: str,
        remarks: Optional[str] = None,
        decided_by: Optional[str] = None
    ) -> bool:
        """
        审批任务 / 添加备注

        仅当任务仍为 expected_status 且父申请仍为 approved 时生效。
        """
        values: Dict[str, Any] = {"approval_status": new_status}
        if remarks is not None:
            values.update(
                remarks=remarks,
                remarks_added_at=utcnow(),
                remarks_added_by=decided_by,
            )
        affected = await self.conditional_update(
            db,
            self.model.id == id,
            self.model.approval_status == expected_status,
            self.model.application_id.in_(self._approved_applications()),
            values=values,
        )
        return affected == 1

    async def get_by_application(
        self,
        db: AsyncSession,
        application_id: str,
        *,
        approval_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Task]:
        """获取某申请下的任务列表"""
        query = self._active(select(self.model).where(self.model.application_id == application_id))
        if approval_status:
            query = query.where(self.model.approval_status == approval_status)
        result = await db.execute(
            query.order_by(self.model.submitted_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_application(
        self,
        db: AsyncSession,
        application_id: str,
        *,
        approval_status: Optional[str] = None
    ) -> int:
        """统计某申请下的任务数量"""
        query = self._active(
            select(func.count()).select_from(self.model).where(self.model.application_id == application_id)
        )
        if approval_status:
            query = query.where(self.model.approval_status == approval_status)
        result = await db.execute(query)
        return result.scalar() or 0

    async def get_settlement_candidates(
        self,
        db: AsyncSession,
        application_id: str,
        *,
        current_is_paid: bool
    ) -> List[Task]:
        """已审批且结算标记为 current_is_paid 的任务，即本次会改变状态的任务集合"""
        result = await db.execute(
            self._active(
                select(self.model).where(
                    self.model.application_id == application_id,
                    self.model.approval_status == ApprovalStatus.APPROVED.value,
                    self.model.is_paid == current_is_paid,
                )
            )
            .order_by(self.model.submitted_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def flip_paid(
        self,
        db: AsyncSession,
        *,
        application_id: str,
        task_ids: List[str],
        is_paid: bool
    ) -> int:
        """批量切换结算标记，返回实际切换的任务数"""
        if not task_ids:
            return 0
        return await self.conditional_update(
            db,
            self.model.id.in_(task_ids),
            self.model.application_id == application_id,
            self.model.approval_status == ApprovalStatus.APPROVED.value,
            self.model.is_paid == (not is_paid),
            values={"is_paid": is_paid},
        )

    async def approved_hours_by_paid(
        self,
        db: AsyncSession,
        application_id: str
    ) -> Dict[bool, Dict[str, float]]:
        """按结算标记汇总已审批任务的数量和工时"""
        result = await db.execute(
            self._active(
                select(
                    self.model.is_paid,
                    func.count(),
                    func.coalesce(func.sum(self.model.reported_hours), 0),
                )
                .where(
                    self.model.application_id == application_id,
                    self.model.approval_status == ApprovalStatus.APPROVED.value,
                )
                .group_by(self.model.is_paid)
            )
        )
        summary = {
            True: {"count": 0, "hours": 0.0},
            False: {"count": 0, "hours": 0.0},
        }
        for is_paid, count, hours in result.all():
            summary[bool(is_paid)] = {"count": int(count), "hours": float(hours)}
        return summary


task_crud = CRUDTask(Task)
