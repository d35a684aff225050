"""
应聘申请 API 路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.core.identity import Actor, get_current_actor
from app.core.response import success_response, paged_response, DictResponse
from app.models.application import ApplicationCreate, ApplicationResponse, ApprovalDecision
from app.services.application_lifecycle import ApplicationLifecycle, get_application_lifecycle

router = APIRouter()


def _payload(application, changed: Optional[bool] = None, posting_title: Optional[str] = None) -> dict:
    response = ApplicationResponse.model_validate(application)
    response.posting_title = posting_title
    data = response.model_dump()
    if changed is not None:
        data["changed"] = changed
    return data


@router.post("", summary="投递申请", response_model=DictResponse)
async def apply_for_job(
    data: ApplicationCreate,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
):
    """
    候选人投递岗位
    """
    application = await lifecycle.apply(actor, data.posting_id)
    return success_response(data=_payload(application, changed=True), message="申请投递成功")


@router.get("/mine", summary="获取我的申请", response_model=DictResponse)
async def get_my_applications(
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    application_status: Optional[str] = Query(None, description="申请状态筛选"),
    approval_status: Optional[str] = Query(None, description="审批状态筛选"),
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
):
    """
    候选人查看自己的申请列表
    """
    skip = (page - 1) * page_size
    items, total = await lifecycle.list_my_applications(
        actor,
        application_status=application_status,
        approval_status=approval_status,
        skip=skip,
        limit=page_size,
    )
    return paged_response([_payload(a) for a in items], total, page, page_size)


@router.get("/{application_id}", summary="获取申请详情", response_model=DictResponse)
async def get_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
):
    """
    获取申请详情（候选人本人、岗位雇主、管理员）
    """
    application, post = await lifecycle.get_application(actor, application_id)
    return success_response(data=_payload(application, posting_title=post.title))


@router.post("/{application_id}/withdraw", summary="撤回申请", response_model=DictResponse)
async def withdraw_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
):
    """
    候选人撤回进行中的申请
    """
    application = await lifecycle.withdraw(actor, application_id)
    return success_response(data=_payload(application, changed=True), message="申请已撤回")


@router.post("/{application_id}/decision", summary="审批申请", response_model=DictResponse)
async def decide_application(
    application_id: str,
    data: ApprovalDecision,
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
):
    """
    岗位雇主或管理员审批申请；重复提交相同结果返回 changed=false
    """
    application, changed = await lifecycle.decide_approval(
        actor, application_id, data.decision, data.hourly_rate
    )
    message = "审批结果已更新" if changed else "审批结果未变化"
    return success_response(data=_payload(application, changed=changed), message=message)
