"""
工作任务 API 路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.core.identity import Actor, get_current_actor
from app.core.response import success_response, paged_response, DictResponse
from app.models.task import TaskSubmit, TaskProgressUpdate, TaskDecision, TaskResponse
from app.services.approval_gate import ApprovalGate, get_approval_gate
from app.services.task_tracker import TaskTracker, get_task_tracker

router = APIRouter()


@router.post("", summary="提交任务", response_model=DictResponse)
async def submit_task(
    data: TaskSubmit,
    actor: Actor = Depends(get_current_actor),
    tracker: TaskTracker = Depends(get_task_tracker),
):
    """
    候选人为已通过审批的申请提交任务

    提供 start_time / end_time 时按时间差计算工时，否则使用 hours_worked
    """
    task = await tracker.submit(actor, data)
    return success_response(
        data=TaskResponse.model_validate(task).model_dump(),
        message="任务提交成功"
    )


@router.get("", summary="获取任务列表", response_model=DictResponse)
async def get_tasks(
    application_id: str = Query(..., description="应聘申请ID"),
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    approval_status: Optional[str] = Query(None, description="审批状态筛选"),
    actor: Actor = Depends(get_current_actor),
    tracker: TaskTracker = Depends(get_task_tracker),
):
    """
    获取某申请下的任务列表（按提交时间倒序）
    """
    skip = (page - 1) * page_size
    items, total = await tracker.list_tasks(
        actor, application_id, approval_status=approval_status, skip=skip, limit=page_size
    )
    return paged_response(
        [TaskResponse.model_validate(t).model_dump() for t in items],
        total,
        page,
        page_size,
    )


@router.get("/{task_id}", summary="获取任务详情", response_model=DictResponse)
async def get_task(
    task_id: str,
    actor: Actor = Depends(get_current_actor),
    tracker: TaskTracker = Depends(get_task_tracker),
):
    """
    获取任务详情
    """
    task = await tracker.get_task(actor, task_id)
    return success_response(data=TaskResponse.model_validate(task).model_dump())


@router.patch("/{task_id}/progress", summary="更新任务进度", response_model=DictResponse)
async def update_task_progress(
    task_id: str,
    data: TaskProgressUpdate,
    actor: Actor = Depends(get_current_actor),
    tracker: TaskTracker = Depends(get_task_tracker),
):
    """
    候选人更新待审批任务的完成百分比，进度状态随之重新计算
    """
    task = await tracker.update_progress(actor, task_id, data.progress_percent)
    return success_response(
        data=TaskResponse.model_validate(task).model_dump(),
        message="任务进度更新成功"
    )


@router.post("/{task_id}/decision", summary="审批任务", response_model=DictResponse)
async def decide_task(
    task_id: str,
    data: TaskDecision,
    actor: Actor = Depends(get_current_actor),
    gate: ApprovalGate = Depends(get_approval_gate),
):
    """
    雇主审批任务或为已通过的任务添加备注
    """
    task, changed = await gate.decide(actor, task_id, data.approval_status, data.remarks)
    payload = TaskResponse.model_validate(task).model_dump()
    payload["changed"] = changed
    message = "任务审批成功" if changed else "备注添加成功"
    return success_response(data=payload, message=message)
