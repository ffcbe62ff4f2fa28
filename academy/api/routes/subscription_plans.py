from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_subscription_service
from academy.api.envelope import not_found, ok, raise_for_errors
from academy.api.schemas import PlanCreateRequest, PlanUpdateRequest, set_fields
from academy.components.subscriptions import PlanInput, SubscriptionService, plan_price
from academy.domain.entities import SubscriptionPlan, User

router = APIRouter()


def plan_out(plan: SubscriptionPlan) -> dict:
    data = plan.model_dump(mode="json")
    data["effective_price"] = plan_price(plan)
    return data


@router.get("")
def list_plans(service: SubscriptionService = Depends(get_subscription_service)) -> JSONResponse:
    """Active plans, cheapest first."""
    return ok([plan_out(p) for p in service.list_plans()])


# --- Admin ---


@router.get("/admin/all")
def admin_list_plans(
    _admin: User = Depends(get_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    return ok([plan_out(p) for p in service.list_plans(active_only=False)])


@router.get("/{plan_id}")
def get_plan(
    plan_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    plan = service.get_plan(plan_id)
    if not plan or not plan.is_active:
        raise not_found("Plan not found")
    return ok(plan_out(plan))


@router.post("")
def create_plan(
    req: PlanCreateRequest,
    _admin: User = Depends(get_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    plan, errors = service.create_plan(PlanInput(**req.model_dump()))
    raise_for_errors(errors)
    assert plan is not None
    return ok(plan_out(plan), "Plan created", status.HTTP_201_CREATED)


@router.put("/{plan_id}")
def update_plan(
    plan_id: UUID,
    req: PlanUpdateRequest,
    _admin: User = Depends(get_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    plan, errors = service.update_plan(plan_id, set_fields(req))
    raise_for_errors(errors)
    assert plan is not None
    return ok(plan_out(plan), "Plan updated")


@router.delete("/{plan_id}")
def delete_plan(
    plan_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    raise_for_errors(service.delete_plan(plan_id))
    return ok(None, "Plan deleted")
