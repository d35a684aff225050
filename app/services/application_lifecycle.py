"""
申请生命周期服务

负责投递、撤回和雇主审批三个状态迁移，以及岗位申请人数的维护。
审批通过是解锁任务提交的唯一入口。
"""
from typing import List, Optional, Tuple

from fastapi import Depends
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import (
    AuthorizationException,
    NotFoundException,
    StateConflictException,
    ValidationException,
)
from app.core.identity import Actor, Role
from app.crud import application_crud
from app.models.application import Application, ApplicationStatus, ApprovalStatus
from app.models.job_post import JobPost
from app.models.notification import NotificationType
from .collaborators import JobPostGateway, ProfileGateway
from .notifications import NotificationSink, get_notifier, safe_emit


def check_view_access(actor: Actor, application: Application, owner_id: Optional[str]) -> None:
    """申请及其任务、结算数据只对候选人本人、岗位雇主和管理员可见"""
    if actor.is_admin:
        return
    if actor.role == Role.CANDIDATE and application.candidate_id == actor.actor_id:
        return
    if actor.role == Role.EMPLOYER and owner_id == actor.actor_id:
        return
    raise AuthorizationException("无权查看该申请")


class ApplicationLifecycle:
    """申请生命周期"""

    def __init__(self, db: AsyncSession, notifier: NotificationSink):
        self.db = db
        self.notifier = notifier
        self.posts = JobPostGateway(db)
        self.profiles = ProfileGateway(db)

    async def get_or_404(self, application_id: str, *, fresh: bool = False) -> Application:
        application = await application_crud.get(self.db, application_id, fresh=fresh)
        if not application:
            raise NotFoundException(f"应聘申请不存在: {application_id}")
        return application

    async def get_posting(self, application: Application) -> JobPost:
        post = await self.posts.get(application.posting_id)
        if not post:
            raise NotFoundException(f"岗位不存在: {application.posting_id}")
        return post

    async def apply(self, actor: Actor, posting_id: str) -> Application:
        """
        投递申请

        校验岗位开放、档案完整、无重复申请后插入记录，
        再用与校验相同的开放谓词做条件计数 +1；计数失败说明岗位
        在校验之后已关闭，抛出异常使整个事务（包括插入）回滚。
        """
        actor.require_role(Role.CANDIDATE, message="仅候选人可以投递申请")

        post = await self.posts.get(posting_id)
        if not post:
            raise NotFoundException(f"岗位不存在: {posting_id}")
        if post.removed_at is not None:
            raise StateConflictException("该岗位已下架，无法申请")
        if not await self.posts.is_open_for_applications(posting_id):
            raise StateConflictException(
                f"岗位当前不接受申请（状态: {post.status}，审核: {post.admin_approval}）"
            )

        if not await self.profiles.has_completed_prerequisites(actor.actor_id):
            missing = await self.profiles.missing_prerequisites(actor.actor_id)
            raise ValidationException(
                f"请先完善档案后再申请，缺少: {', '.join(missing)}",
                data={"missing": missing},
            )

        if await application_crud.get_applied(self.db, actor.actor_id, posting_id):
            raise StateConflictException("已申请该岗位，请勿重复申请")

        try:
            application = await application_crud.create_application(
                self.db, candidate_id=actor.actor_id, posting_id=posting_id
            )
        except IntegrityError:
            # 并发投递被部分唯一索引拦截
            raise StateConflictException("已申请该岗位，请勿重复申请")

        if not await self.posts.increment_applicant_count(posting_id):
            raise StateConflictException("岗位已关闭申请")

        logger.info(f"候选人 {actor.actor_id} 投递岗位 {posting_id}，申请 {application.id}")
        return application

    async def withdraw(self, actor: Actor, application_id: str) -> Application:
        """撤回申请：applied -> withdrawn，岗位申请人数 -1（不低于 0）"""
        actor.require_role(Role.CANDIDATE, message="仅候选人可以撤回申请")

        application = await self.get_or_404(application_id)
        if application.candidate_id != actor.actor_id:
            raise AuthorizationException("不能撤回他人的申请")

        if not await application_crud.mark_withdrawn(
            self.db, id=application_id, candidate_id=actor.actor_id
        ):
            raise StateConflictException("只能撤回进行中的申请")

        if not await self.posts.decrement_applicant_count(application.posting_id):
            logger.warning(f"岗位 {application.posting_id} 申请人数已为 0，跳过扣减")

        logger.info(f"候选人 {actor.actor_id} 撤回申请 {application_id}")
        return await self.get_or_404(application_id, fresh=True)

    async def decide_approval(
        self,
        actor: Actor,
        application_id: str,
        decision: ApprovalStatus,
        hourly_rate: Optional[float] = None,
    ) -> Tuple[Application, bool]:
        """
        雇主审批申请

        返回 (申请, 是否发生写入)。重复提交相同结果是幂等空操作。
        通过时确定约定时薪：优先使用请求中的时薪，否则使用岗位时薪。
        """
        if decision not in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED):
            raise ValidationException("审批结果只能是 approved 或 rejected")

        application = await self.get_or_404(application_id, fresh=True)
        post = await self.get_posting(application)
        actor.require_owner_or_admin(post.owner_id, message="仅岗位所属雇主或管理员可以审批申请")

        if application.approval_status == decision.value:
            return application, False

        if application.application_status != ApplicationStatus.APPLIED.value:
            raise StateConflictException("申请已撤回，不能审批")
        if application.approval_status != ApprovalStatus.PENDING.value:
            raise StateConflictException(
                f"申请审批结果已确定为 {application.approval_status}，不能改为 {decision.value}"
            )

        rate = None
        if decision == ApprovalStatus.APPROVED:
            rate = hourly_rate if hourly_rate is not None else post.hourly_rate
            if rate is None:
                raise ValidationException("审批通过时必须提供约定时薪（岗位未设置参考时薪）")
        elif hourly_rate is not None:
            raise ValidationException("只有审批通过时才能设置时薪")

        if not await application_crud.record_decision(
            self.db,
            id=application_id,
            decision=decision,
            decided_by=actor.actor_id,
            hourly_rate=rate,
        ):
            current = await self.get_or_404(application_id, fresh=True)
            if current.approval_status == decision.value:
                return current, False
            raise StateConflictException("申请状态已变化，请刷新后重试")

        application = await self.get_or_404(application_id, fresh=True)
        logger.info(
            f"申请 {application_id} 审批为 {decision.value}，操作人 {actor.actor_id}，时薪 {rate}"
        )
        verdict = "已通过" if decision == ApprovalStatus.APPROVED else "未通过"
        safe_emit(
            self.notifier,
            self.db,
            application.candidate_id,
            "申请审批结果",
            f"您对岗位「{post.title}」的申请{verdict}雇主审批",
            NotificationType.APPLICATION_DECIDED.value,
            {"application_id": application_id, "approval_status": decision.value},
        )
        return application, True

    async def get_application(self, actor: Actor, application_id: str) -> Tuple[Application, JobPost]:
        """获取申请详情"""
        application = await self.get_or_404(application_id)
        post = await self.get_posting(application)
        check_view_access(actor, application, post.owner_id)
        return application, post

    async def list_my_applications(
        self,
        actor: Actor,
        *,
        application_status: Optional[str] = None,
        approval_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Application], int]:
        """候选人查看自己的申请"""
        actor.require_role(Role.CANDIDATE, message="仅候选人可以查看自己的申请")
        filters = {"application_status": application_status, "approval_status": approval_status}
        items = await application_crud.get_by_candidate(
            self.db, actor.actor_id, skip=skip, limit=limit, **filters
        )
        total = await application_crud.count_by_candidate(self.db, actor.actor_id, **filters)
        return items, total

    async def list_applicants(
        self,
        actor: Actor,
        posting_id: str,
        *,
        application_status: Optional[str] = ApplicationStatus.APPLIED.value,
        approval_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Application], int]:
        """岗位雇主或管理员查看某岗位的申请人"""
        post = await self.posts.get(posting_id)
        if not post:
            raise NotFoundException(f"岗位不存在: {posting_id}")
        actor.require_owner_or_admin(post.owner_id, message="无权查看该岗位的申请人")
        filters = {"application_status": application_status, "approval_status": approval_status}
        items = await application_crud.get_by_posting(
            self.db, posting_id, skip=skip, limit=limit, **filters
        )
        total = await application_crud.count_by_posting(self.db, posting_id, **filters)
        return items, total


def get_application_lifecycle(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
) -> ApplicationLifecycle:
    """申请生命周期服务依赖注入"""
    return ApplicationLifecycle(db, notifier)
