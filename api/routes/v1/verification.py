"""
Verification and profile endpoints.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db
from api.schemas.verification import (
    ActorRead,
    EligibilityRead,
    ProfileUpdate,
    VerificationRead,
    VerificationResolve,
)
from api.services import verification as verification_service
from core.identity import ActorContext

router = APIRouter(prefix="/actors", tags=["verification"])


@router.get(
    "/{owner_id}/verification",
    response_model=VerificationRead,
    summary="Get Verification",
)
async def get_verification(
    owner_id: str = Path(..., description="Actor ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await verification_service.get_verification(db, owner_id)


@router.get(
    "/{owner_id}/eligibility",
    response_model=EligibilityRead,
    summary="Verification Eligibility",
    description="Whether the actor can be verified and how many documents block it.",
)
async def get_eligibility(
    owner_id: str = Path(..., description="Actor ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await verification_service.compute_eligibility(db, owner_id)


@router.post(
    "/{owner_id}/verification/submit",
    response_model=VerificationRead,
    summary="Submit For Verification",
    description="Ask staff to review the profile. Owner only.",
)
async def submit_for_verification(
    owner_id: str = Path(..., description="Actor ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await verification_service.submit_for_verification(db, actor, owner_id)


@router.post(
    "/{owner_id}/verification/resolve",
    response_model=VerificationRead,
    summary="Resolve Verification",
    description="Verify or reject an actor. Staff and admins only.",
)
async def resolve_verification(
    request: VerificationResolve,
    owner_id: str = Path(..., description="Actor ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await verification_service.resolve_verification(
        db,
        actor,
        owner_id,
        request.decision,
        reason=request.reason,
        cost_hint=request.cost_hint,
    )


@router.post(
    "/{owner_id}/verification/revoke",
    response_model=VerificationRead,
    summary="Withdraw Verification Request",
    description="Move a pending verification back to unverified. Owner only.",
)
async def revoke_verification(
    owner_id: str = Path(..., description="Actor ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await verification_service.revoke_verification(db, actor, owner_id)


@router.post(
    "/{owner_id}/verification/admin-revoke",
    response_model=VerificationRead,
    summary="Revoke Verification",
    description="Take back a granted verification. Staff and admins only.",
)
async def admin_revoke_verification(
    owner_id: str = Path(..., description="Actor ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await verification_service.admin_revoke_verification(db, actor, owner_id)


@router.patch(
    "/{owner_id}/profile",
    response_model=ActorRead,
    summary="Update Profile",
    description="Edit profile fields. Locked while verification is pending.",
)
async def update_profile(
    request: ProfileUpdate,
    owner_id: str = Path(..., description="Actor ID"),
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await verification_service.update_profile(
        db, actor, owner_id, request.model_dump(exclude_unset=True)
    )
