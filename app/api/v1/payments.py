"""
结算 API 路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.core.identity import Actor, get_current_actor
from app.core.response import success_response, paged_response, DictResponse
from app.models.payment import PaidFlagUpdate, PaymentBatchResponse
from app.services.settlement import SettlementEngine, get_settlement_engine

router = APIRouter()


@router.put("/applications/{application_id}/paid-flag", summary="设置结算标记", response_model=DictResponse)
async def set_paid_flag(
    application_id: str,
    data: PaidFlagUpdate,
    actor: Actor = Depends(get_current_actor),
    engine: SettlementEngine = Depends(get_settlement_engine),
):
    """
    将申请下所有已审批任务标记为已结算 / 未结算

    标记为已结算时生成一条结算批次；没有需要改变的任务时返回 changed=false
    """
    result, message = await engine.set_paid_flag(actor, application_id, data.is_paid)
    return success_response(data=result.model_dump(), message=message)


@router.get("", summary="获取结算记录", response_model=DictResponse)
async def get_payment_batches(
    application_id: Optional[str] = Query(None, description="应聘申请ID"),
    page: int = Query(1, ge=1, description="页码"),
    page_size: int = Query(20, ge=1, le=100, description="每页数量"),
    actor: Actor = Depends(get_current_actor),
    engine: SettlementEngine = Depends(get_settlement_engine),
):
    """
    获取结算批次（按角色限定范围，按时间倒序）
    """
    skip = (page - 1) * page_size
    items, total = await engine.list_batches(
        actor, application_id=application_id, skip=skip, limit=page_size
    )
    return paged_response(
        [PaymentBatchResponse.model_validate(b).model_dump() for b in items],
        total,
        page,
        page_size,
    )


@router.get("/applications/{application_id}/summary", summary="获取结算概览", response_model=DictResponse)
async def get_payment_summary(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: SettlementEngine = Depends(get_settlement_engine),
):
    """
    获取单个申请的工时与结算金额汇总
    """
    summary = await engine.payment_summary(actor, application_id)
    return success_response(data=summary.model_dump())
