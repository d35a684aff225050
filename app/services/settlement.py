"""
结算服务

把某申请下已审批、尚未结算的任务汇总为一条结算批次。
本模块是 payment_batches 的唯一写入方。

标记为已结算：批量切换任务 is_paid，并追加一条批次记录。
标记为未结算：只切换任务 is_paid，不修改也不删除任何已有批次。
"""
from typing import List, Optional, Tuple

from fastapi import Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFoundException, StateConflictException
from app.core.identity import Actor, Role
from app.crud import application_crud, payment_crud, task_crud
from app.models.application import Application
from app.models.job_post import JobPost
from app.models.notification import NotificationType
from app.models.payment import PaymentBatch, PaymentBatchResponse, PaymentSummary, SettlementResult
from .application_lifecycle import check_view_access
from .collaborators import JobPostGateway
from .metrics import settlement_totals
from .notifications import NotificationSink, get_notifier, safe_emit


class SettlementEngine:
    """结算引擎"""

    def __init__(self, db: AsyncSession, notifier: NotificationSink):
        self.db = db
        self.notifier = notifier
        self.posts = JobPostGateway(db)

    async def _load(self, application_id: str) -> Tuple[Application, JobPost]:
        application = await application_crud.get(self.db, application_id, fresh=True)
        if not application:
            raise NotFoundException(f"应聘申请不存在: {application_id}")
        post = await self.posts.get(application.posting_id)
        if not post:
            raise NotFoundException(f"岗位不存在: {application.posting_id}")
        return application, post

    async def _rate_for(self, application: Application) -> Optional[float]:
        """审批时约定的时薪优先，旧数据回退到岗位时薪"""
        if application.hourly_rate is not None:
            return application.hourly_rate
        return await self.posts.get_hourly_rate(application.posting_id)

    async def set_paid_flag(
        self,
        actor: Actor,
        application_id: str,
        is_paid: bool,
    ) -> Tuple[SettlementResult, str]:
        """
        设置任务结算标记

        只处理本次会改变状态的任务（已审批且 is_paid == not is_paid）。
        集合为空时返回 changed=False，不创建批次。
        切换行数与集合大小不一致说明有并发结算，抛出异常回滚整个事务。
        """
        actor.require_role(Role.EMPLOYER, Role.ADMIN, message="仅雇主或管理员可以结算任务")
        application, post = await self._load(application_id)
        actor.require_owner_or_admin(post.owner_id, message="仅岗位所属雇主或管理员可以结算该申请")

        tasks = await task_crud.get_settlement_candidates(
            self.db, application_id, current_is_paid=not is_paid
        )
        flag = str(is_paid).lower()
        if not tasks:
            result = SettlementResult(changed=False, application_id=application_id, is_paid=is_paid)
            return result, f"无变化：所有符合条件的任务 isPaid 已为 {flag}"

        rate = await self._rate_for(application)
        if is_paid and rate is None:
            raise StateConflictException("该申请未约定时薪，无法结算")

        total_hours, total_amount = settlement_totals(
            [t.reported_hours for t in tasks], rate or 0
        )

        task_ids = [t.id for t in tasks]
        flipped = await task_crud.flip_paid(
            self.db, application_id=application_id, task_ids=task_ids, is_paid=is_paid
        )
        if flipped != len(task_ids):
            raise StateConflictException("待结算任务已被并发修改，请刷新后重试")

        batch = None
        if is_paid:
            batch = await payment_crud.append(
                self.db,
                application_id=application_id,
                employer_id=post.owner_id,
                candidate_id=application.candidate_id,
                total_hours=total_hours,
                hourly_rate=rate,
                total_amount=total_amount,
                task_count=len(task_ids),
            )
            safe_emit(
                self.notifier,
                self.db,
                application.candidate_id,
                "结算通知",
                f"岗位「{post.title}」已结算 {total_hours} 小时，金额 {total_amount:.2f}",
                NotificationType.PAYMENT_SETTLED.value,
                {
                    "application_id": application_id,
                    "payment_batch_id": batch.id,
                    "total_hours": total_hours,
                    "total_amount": total_amount,
                },
            )

        logger.info(
            f"申请 {application_id} 结算标记 -> {flag}：{len(task_ids)} 个任务，"
            f"{total_hours} 小时，金额 {total_amount}，操作人 {actor.actor_id}"
        )
        result = SettlementResult(
            changed=True,
            application_id=application_id,
            is_paid=is_paid,
            affected_tasks=len(task_ids),
            total_hours=total_hours,
            total_amount=total_amount,
            batch=PaymentBatchResponse.model_validate(batch) if batch else None,
        )
        message = "结算成功" if is_paid else "已将任务标记为未结算"
        return result, message

    async def list_batches(
        self,
        actor: Actor,
        *,
        application_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[PaymentBatch], int]:
        """
        查询结算批次

        管理员可查看全部，雇主只能查看自己岗位的批次，候选人只能查看自己的批次。
        """
        scope = {"application_id": application_id}
        if actor.role == Role.EMPLOYER:
            scope["employer_id"] = actor.actor_id
        elif actor.role == Role.CANDIDATE:
            scope["candidate_id"] = actor.actor_id

        items = await payment_crud.list_batches(self.db, skip=skip, limit=limit, **scope)
        total = await payment_crud.count_batches(self.db, **scope)
        return items, total

    async def payment_summary(self, actor: Actor, application_id: str) -> PaymentSummary:
        """单个申请的已审批 / 已结算 / 未结算工时与金额"""
        application, post = await self._load(application_id)
        check_view_access(actor, application, post.owner_id)

        rate = await self._rate_for(application)
        by_paid = await task_crud.approved_hours_by_paid(self.db, application_id)
        paid_hours, paid_amount = settlement_totals([by_paid[True]["hours"]], rate or 0)
        unpaid_hours, unpaid_amount = settlement_totals([by_paid[False]["hours"]], rate or 0)
        approved_hours, _ = settlement_totals([paid_hours, unpaid_hours], 0)

        return PaymentSummary(
            application_id=application_id,
            hourly_rate=rate,
            approved_tasks=by_paid[True]["count"] + by_paid[False]["count"],
            approved_hours=approved_hours,
            paid_hours=paid_hours,
            unpaid_hours=unpaid_hours,
            paid_amount=paid_amount,
            unpaid_amount=unpaid_amount,
            batch_count=await payment_crud.count_batches(self.db, application_id=application_id),
        )


def get_settlement_engine(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
) -> SettlementEngine:
    """结算服务依赖注入"""
    return SettlementEngine(db, notifier)
