"""
Settings API
Key/value settings stored as JSON rows
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement_api.api.deps import get_actor, require_admin
from placement_api.core.security import ActorContext
from placement_api.db.session import get_db
from placement_api.models.setting import Setting
from placement_api.schemas.settings import BranchThresholds, BranchThresholdsUpdate
from placement_api.utils.constants import BRANCH_THRESHOLDS_KEY

router = APIRouter()


@router.get("/branch-thresholds", response_model=BranchThresholds)
async def get_branch_thresholds(
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    Minimum CGPA per branch

    **RBAC**: Any authenticated user
    """
    result = await db.execute(select(Setting).where(Setting.key == BRANCH_THRESHOLDS_KEY))
    setting = result.scalar_one_or_none()
    thresholds = (setting.value or {}).get("thresholds", {}) if setting else {}
    return BranchThresholds(thresholds=thresholds)


@router.put("/branch-thresholds", response_model=BranchThresholds)
async def put_branch_thresholds(
    payload: BranchThresholdsUpdate,
    actor: ActorContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace the per-branch CGPA thresholds

    **RBAC**: Branch admin, Main admin
    """
    result = await db.execute(select(Setting).where(Setting.key == BRANCH_THRESHOLDS_KEY))
    setting = result.scalar_one_or_none()
    value = {"thresholds": payload.thresholds}
    if setting is None:
        db.add(Setting(key=BRANCH_THRESHOLDS_KEY, value=value))
    else:
        setting.value = value
    await db.flush()
    return BranchThresholds(thresholds=payload.thresholds)
