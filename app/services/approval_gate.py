"""
任务审批服务

雇主或管理员对任务做出审批、添加备注。
父申请的审批状态在更新语句中一并校验。
"""
from typing import Optional, Tuple

from fastapi import Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import NotFoundException, StateConflictException, ValidationException
from app.core.identity import Actor, Role
from app.crud import application_crud, task_crud
from app.models.application import ApprovalStatus
from app.models.notification import NotificationType
from app.models.task import Task
from .collaborators import JobPostGateway
from .notifications import NotificationSink, get_notifier, safe_emit


class ApprovalGate:
    """任务审批"""

    def __init__(self, db: AsyncSession, notifier: NotificationSink):
        self.db = db
        self.notifier = notifier
        self.posts = JobPostGateway(db)

    async def decide(
        self,
        actor: Actor,
        task_id: str,
        approval_status: Optional[ApprovalStatus] = None,
        remarks: Optional[str] = None,
    ) -> Tuple[Task, bool]:
        """
        审批任务

        - 只允许 pending -> approved / rejected，重复相同结果不改变状态
        - 备注只能在任务（本次更新后）为 approved 时添加
        - 既不改变状态也没有备注的请求视为无效请求
        返回 (任务, 审批状态是否发生变化)。
        """
        actor.require_role(Role.EMPLOYER, Role.ADMIN, message="仅雇主或管理员可以审批任务")

        task = await task_crud.get(self.db, task_id, fresh=True)
        if not task:
            raise NotFoundException(f"任务不存在: {task_id}")
        application = await application_crud.get(self.db, task.application_id, fresh=True)
        if not application:
            raise NotFoundException(f"应聘申请不存在: {task.application_id}")
        post = await self.posts.get(application.posting_id)
        actor.require_owner_or_admin(
            post.owner_id if post else None,
            message="仅岗位所属雇主或管理员可以审批该任务",
        )

        if application.approval_status != ApprovalStatus.APPROVED.value:
            raise StateConflictException("候选人的申请未通过雇主审批，不能审批任务")

        if remarks is not None:
            remarks = remarks.strip() or None
        if remarks is not None and len(remarks) > settings.remarks_max_length:
            raise ValidationException(f"备注不能超过 {settings.remarks_max_length} 个字符")

        current = task.approval_status
        target = approval_status.value if approval_status is not None else current
        status_changed = target != current

        if not status_changed and remarks is None:
            raise ValidationException("没有需要更新的内容")
        if status_changed and current != ApprovalStatus.PENDING.value:
            raise StateConflictException(f"任务审批结果已确定为 {current}，不能改为 {target}")
        if remarks is not None and target != ApprovalStatus.APPROVED.value:
            raise StateConflictException("只有已通过审批的任务可以添加备注")

        if not await task_crud.apply_decision(
            self.db,
            id=task_id,
            expected_status=current,
            new_status=target,
            remarks=remarks,
            decided_by=actor.actor_id,
        ):
            raise StateConflictException("任务或申请状态已变化，请刷新后重试")

        task = await task_crud.get(self.db, task_id, fresh=True)
        if status_changed:
            logger.info(f"任务 {task_id} 审批 {current} -> {target}，操作人 {actor.actor_id}")
            verdict = "已通过" if target == ApprovalStatus.APPROVED.value else "未通过"
            safe_emit(
                self.notifier,
                self.db,
                application.candidate_id,
                "任务审批结果",
                f"您提交的任务「{task.title}」{verdict}雇主审批",
                NotificationType.TASK_DECIDED.value,
                {"task_id": task_id, "application_id": application.id, "approval_status": target},
            )
        else:
            logger.info(f"任务 {task_id} 添加备注，操作人 {actor.actor_id}")
        return task, status_changed


def get_approval_gate(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
) -> ApprovalGate:
    """任务审批服务依赖注入"""
    return ApprovalGate(db, notifier)
