"""
候选人档案完整度 API 路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.identity import Actor, Role, get_current_actor
from app.core.response import success_response, DictResponse
from app.crud import profile_crud
from app.models.profile import CandidateProfileUpdate, CandidateProfileResponse
from app.services.collaborators import ProfileGateway

router = APIRouter()


async def _profile_payload(db: AsyncSession, profile) -> dict:
    data = CandidateProfileResponse.model_validate(profile).model_dump()
    data["missing"] = await ProfileGateway(db).missing_prerequisites(profile.candidate_id)
    return data


@router.put("/me", summary="更新档案完整度", response_model=DictResponse)
async def upsert_my_profile(
    data: CandidateProfileUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    候选人同步档案各部分的完成情况
    """
    actor.require_role(Role.CANDIDATE, message="仅候选人可以维护档案")
    profile = await profile_crud.get_by_candidate(db, actor.actor_id)
    if profile is None:
        profile = await profile_crud.create(db, obj_in={
            "candidate_id": actor.actor_id,
            **data.model_dump(exclude_none=True),
        })
    else:
        profile = await profile_crud.update(db, db_obj=profile, obj_in=data)
    return success_response(data=await _profile_payload(db, profile), message="档案更新成功")


@router.get("/me", summary="获取档案完整度", response_model=DictResponse)
async def get_my_profile(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    获取档案完整度及缺失部分
    """
    actor.require_role(Role.CANDIDATE, message="仅候选人可以查看档案")
    profile = await profile_crud.get_by_candidate(db, actor.actor_id)
    if profile is None:
        missing = await ProfileGateway(db).missing_prerequisites(actor.actor_id)
        return success_response(data={"candidate_id": actor.actor_id, "missing": missing})
    return success_response(data=await _profile_payload(db, profile))
