"""
应聘申请 API 测试

覆盖投递、撤回、雇主审批三个状态迁移以及岗位申请人数
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_apply_to_open_posting(client: AsyncClient, factory):
    """投递开放岗位：创建 applied/pending 申请，岗位申请人数 +1"""
    post = await factory.create_post()
    await factory.complete_profile()

    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": post["id"]},
        headers=factory.candidate(),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    application = data["data"]
    assert application["application_status"] == "applied"
    assert application["approval_status"] == "pending"
    assert application["candidate_id"] == "candidate-1"
    assert application["changed"] is True

    post = await factory.get_post(post["id"])
    assert post["applicant_count"] == 1


@pytest.mark.asyncio
async def test_apply_twice_is_rejected(client: AsyncClient, factory):
    """同一岗位不能重复投递，申请人数不变"""
    application = await factory.create_application()
    posting_id = application["posting_id"]

    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": posting_id},
        headers=factory.candidate(),
    )
    assert response.status_code == 409
    assert response.json()["data"]["kind"] == "state_conflict"

    post = await factory.get_post(posting_id)
    assert post["applicant_count"] == 1


@pytest.mark.asyncio
async def test_withdraw_and_reapply(client: AsyncClient, factory):
    """撤回后计数 -1 且不为负，重复撤回报冲突，之后可以重新投递"""
    application = await factory.create_application()
    posting_id = application["posting_id"]

    response = await client.post(
        f"/api/v1/applications/{application['id']}/withdraw",
        headers=factory.candidate(),
    )
    assert response.status_code == 200
    assert response.json()["data"]["application_status"] == "withdrawn"
    assert (await factory.get_post(posting_id))["applicant_count"] == 0

    response = await client.post(
        f"/api/v1/applications/{application['id']}/withdraw",
        headers=factory.candidate(),
    )
    assert response.status_code == 409
    assert (await factory.get_post(posting_id))["applicant_count"] == 0

    again = await factory.apply(posting_id)
    assert again["id"] != application["id"]
    assert again["application_status"] == "applied"
    assert (await factory.get_post(posting_id))["applicant_count"] == 1


@pytest.mark.asyncio
async def test_withdraw_other_candidates_application(client: AsyncClient, factory):
    """不能撤回他人的申请"""
    application = await factory.create_application()

    response = await client.post(
        f"/api/v1/applications/{application['id']}/withdraw",
        headers=factory.candidate("candidate-2"),
    )
    assert response.status_code == 403
    assert response.json()["data"]["kind"] == "authorization"


@pytest.mark.asyncio
async def test_apply_to_unavailable_postings(client: AsyncClient, factory):
    """未审核、已关闭、已下架的岗位拒绝申请，不存在的岗位返回 404"""
    await factory.complete_profile()

    pending_post = await factory.create_post(approve=False)
    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": pending_post["id"]},
        headers=factory.candidate(),
    )
    assert response.status_code == 409

    closed_post = await factory.create_post()
    response = await client.patch(
        f"/api/v1/job-posts/{closed_post['id']}/status",
        json={"status": "inactive"},
        headers=factory.employer(),
    )
    assert response.status_code == 200
    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": closed_post["id"]},
        headers=factory.candidate(),
    )
    assert response.status_code == 409

    removed_post = await factory.create_post()
    response = await client.delete(
        f"/api/v1/job-posts/{removed_post['id']}",
        headers=factory.employer(),
    )
    assert response.status_code == 200
    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": removed_post["id"]},
        headers=factory.candidate(),
    )
    assert response.status_code == 409
    assert response.json()["data"]["kind"] == "state_conflict"

    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": "non-existent-id"},
        headers=factory.candidate(),
    )
    assert response.status_code == 404
    assert response.json()["data"]["kind"] == "not_found"


@pytest.mark.asyncio
async def test_apply_with_incomplete_profile(client: AsyncClient, factory):
    """档案不完整时拒绝申请，并列出缺失部分"""
    post = await factory.create_post()

    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": post["id"]},
        headers=factory.candidate(),
    )
    assert response.status_code == 400
    data = response.json()["data"]
    assert data["kind"] == "validation"
    assert data["missing"] == ["Education", "Experience", "Skills", "Resume"]

    await factory.complete_profile(has_resume=False)
    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": post["id"]},
        headers=factory.candidate(),
    )
    assert response.status_code == 400
    assert response.json()["data"]["missing"] == ["Resume"]
    assert (await factory.get_post(post["id"]))["applicant_count"] == 0


@pytest.mark.asyncio
async def test_identity_is_required(client: AsyncClient, factory):
    """缺少或无法识别身份时返回 401，角色不符时返回 403"""
    post = await factory.create_post()

    response = await client.post("/api/v1/applications", json={"posting_id": post["id"]})
    assert response.status_code == 401
    assert response.json()["data"]["kind"] == "unauthenticated"

    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": post["id"]},
        headers=factory.headers("someone", "guest"),
    )
    assert response.status_code == 401

    response = await client.post(
        "/api/v1/applications",
        json={"posting_id": post["id"]},
        headers=factory.employer(),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_approval_decision_is_idempotent(client: AsyncClient, factory, notifier):
    """重复相同审批结果为空操作；已确定的结果不能改变"""
    application = await factory.create_application()

    decided = await factory.decide(application["id"], "approved")
    assert decided["approval_status"] == "approved"
    assert decided["hourly_rate"] == 20.0
    assert decided["changed"] is True

    again = await factory.decide(application["id"], "approved")
    assert again["changed"] is False
    assert again["approval_status"] == "approved"

    response = await client.post(
        f"/api/v1/applications/{application['id']}/decision",
        json={"decision": "rejected"},
        headers=factory.employer(),
    )
    assert response.status_code == 409

    events = notifier.of_type("application_decided")
    assert len(events) == 1
    assert events[0]["user_id"] == "candidate-1"
    assert events[0]["meta"]["approval_status"] == "approved"


@pytest.mark.asyncio
async def test_approval_hourly_rate_rules(client: AsyncClient, factory):
    """通过时可以约定时薪；岗位无时薪时必须提供；拒绝时不能设置时薪"""
    application = await factory.create_application()
    decided = await factory.decide(application["id"], "approved", hourly_rate=35.5)
    assert decided["hourly_rate"] == 35.5

    post = await factory.create_post(hourly_rate=None)
    other = await factory.create_application(candidate_id="candidate-2", posting_id=post["id"])
    response = await client.post(
        f"/api/v1/applications/{other['id']}/decision",
        json={"decision": "approved"},
        headers=factory.employer(),
    )
    assert response.status_code == 400

    response = await client.post(
        f"/api/v1/applications/{other['id']}/decision",
        json={"decision": "rejected", "hourly_rate": 10},
        headers=factory.employer(),
    )
    assert response.status_code == 400

    response = await client.post(
        f"/api/v1/applications/{other['id']}/decision",
        json={"decision": "pending"},
        headers=factory.employer(),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_approval_requires_posting_owner(client: AsyncClient, factory):
    """只有岗位所属雇主或管理员可以审批"""
    application = await factory.create_application()

    response = await client.post(
        f"/api/v1/applications/{application['id']}/decision",
        json={"decision": "approved"},
        headers=factory.employer("employer-2"),
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/applications/{application['id']}/decision",
        json={"decision": "approved"},
        headers=factory.candidate(),
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/applications/{application['id']}/decision",
        json={"decision": "approved"},
        headers=factory.admin(),
    )
    assert response.status_code == 200
    assert response.json()["data"]["decided_by"] == "admin-1"


@pytest.mark.asyncio
async def test_withdrawn_application_cannot_be_decided(client: AsyncClient, factory):
    """已撤回的申请不能审批"""
    application = await factory.create_application()
    await client.post(
        f"/api/v1/applications/{application['id']}/withdraw",
        headers=factory.candidate(),
    )

    response = await client.post(
        f"/api/v1/applications/{application['id']}/decision",
        json={"decision": "approved"},
        headers=factory.employer(),
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_rejected_application_blocks_tasks(client: AsyncClient, factory):
    """申请被拒绝后不能提交任务"""
    application = await factory.create_application(decision="rejected")
    assert application["approval_status"] == "rejected"
    assert application["hourly_rate"] is None

    response = await client.post(
        "/api/v1/tasks",
        json={
            "application_id": application["id"],
            "title": "任务",
            "description": "描述",
            "hours_worked": 2,
        },
        headers=factory.candidate(),
    )
    assert response.status_code == 409
    assert response.json()["data"]["kind"] == "state_conflict"


@pytest.mark.asyncio
async def test_application_queries(client: AsyncClient, factory):
    """候选人查看自己的申请；雇主查看岗位申请人；无关用户不可见"""
    application = await factory.create_application()
    posting_id = application["posting_id"]
    await factory.create_application(candidate_id="candidate-2", posting_id=posting_id)

    response = await client.get("/api/v1/applications/mine", headers=factory.candidate())
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 1
    assert data["items"][0]["id"] == application["id"]

    response = await client.get(
        f"/api/v1/job-posts/{posting_id}/applications",
        headers=factory.employer(),
    )
    assert response.status_code == 200
    assert response.json()["data"]["total"] == 2

    response = await client.get(
        f"/api/v1/job-posts/{posting_id}/applications",
        headers=factory.employer("employer-2"),
    )
    assert response.status_code == 403

    response = await client.get(
        f"/api/v1/applications/{application['id']}",
        headers=factory.employer(),
    )
    assert response.status_code == 200
    assert response.json()["data"]["posting_title"].startswith("测试岗位")

    response = await client.get(
        f"/api/v1/applications/{application['id']}",
        headers=factory.candidate("candidate-2"),
    )
    assert response.status_code == 403

    response = await client.get(
        "/api/v1/applications/non-existent-id",
        headers=factory.admin(),
    )
    assert response.status_code == 404
