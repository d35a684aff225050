"""
岗位 API 路由

岗位的完整管理属于外部岗位服务，这里只提供生命周期引擎依赖的最小操作。
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AuthorizationException, NotFoundException
from app.core.identity import Actor, Role, get_current_actor
from app.core.response import success_response, paged_response, DictResponse
from app.crud import job_post_crud
from app.models.job_post import JobPostCreate, JobPostStatusUpdate, JobPostResponse
from app.models.application import ApplicationResponse
from app.services.application_lifecycle import ApplicationLifecycle, get_application_lifecycle

router = APIRouter()


async def _get_post_or_404(db: AsyncSession, posting_id: str):
    post = await job_post_crud.get(db, posting_id)
    if not post:
        raise NotFoundException(f"岗位不存在: {posting_id}")
    return post


@router.post("", summary="发布岗位", response_model=DictResponse)
async def create_job_post(
    data: JobPostCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    雇主发布岗位（默认待平台审核）
    """
    actor.require_role(Role.EMPLOYER, Role.ADMIN, message="仅雇主或管理员可以发布岗位")
    post = await job_post_crud.create(db, obj_in={**data.model_dump(), "owner_id": actor.actor_id})
    return success_response(
        data=JobPostResponse.model_validate(post).model_dump(),
        message="岗位创建成功"
    )


@router.get("/{posting_id}", summary="获取岗位详情", response_model=DictResponse)
async def get_job_post(
    posting_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    获取岗位详情（含当前申请人数）
    """
    post = await _get_post_or_404(db, posting_id)
    return success_response(data=JobPostResponse.model_validate(post).model_dump())


@router.patch("/{posting_id}/status", summary="更新岗位状态", response_model=DictResponse)
async def update_job_post_status(
    posting_id: str,
    data: JobPostStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    更新岗位状态、时薪；平台审核状态只能由管理员修改
    """
    post = await _get_post_or_404(db, posting_id)
    actor.require_owner_or_admin(post.owner_id)
    if data.admin_approval is not None and not actor.is_admin:
        raise AuthorizationException("仅管理员可以审核岗位")

    update_data = data.model_dump(exclude_unset=True, mode="json")
    post = await job_post_crud.update(db, db_obj=post, obj_in=update_data)
    return success_response(
        data=JobPostResponse.model_validate(post).model_dump(),
        message="岗位状态更新成功"
    )


@router.delete("/{posting_id}", summary="下架岗位", response_model=DictResponse)
async def remove_job_post(
    posting_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    下架岗位（软删除，设置 removed_at）
    """
    post = await _get_post_or_404(db, posting_id)
    actor.require_owner_or_admin(post.owner_id)
    await job_post_crud.soft_delete(db, id=posting_id)
    return success_response(message="岗位已下架")


@router.get("/{posting_id}/applications", summary="获取岗位申请人列表", response_model=DictResponse)
async def get_job_post_applicants(
    posting_id: str,
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    application_status: Optional[str] = Query("applied", description="申请状态筛选，all 表示全部"),
    approval_status: Optional[str] = Query(None, description="审批状态筛选"),
    actor: Actor = Depends(get_current_actor),
    lifecycle: ApplicationLifecycle = Depends(get_application_lifecycle),
):
    """
    岗位雇主或管理员查看申请人
    """
    skip = (page - 1) * page_size
    items, total = await lifecycle.list_applicants(
        actor,
        posting_id,
        application_status=None if application_status == "all" else application_status,
        approval_status=approval_status,
        skip=skip,
        limit=page_size,
    )
    return paged_response(
        [ApplicationResponse.model_validate(a).model_dump() for a in items],
        total,
        page,
        page_size,
    )
