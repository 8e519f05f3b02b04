"""
HTTP routes for the nearby chat API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from nearby.auth import IdentityProvider
from nearby.dependencies import (
    get_current_user_id,
    get_identity_provider,
    get_records,
)
from nearby.errors import ValidationError
from nearby.records import SocialRecords
from nearby.schemas import (
    ErrorResponse,
    HealthResponse,
    MessagesResponse,
    NearbyUser,
    NearbyUsersResponse,
    SendMessageRequest,
    SendMessageResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    SuccessResponse,
    UpdateLocationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@router.post("/signup", response_model=SignupResponse)
def signup(
    payload: SignupRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
    records: SocialRecords = Depends(get_records),
):
    """
    Create the account with the identity provider, then store a profile with
    no location yet.
    """
    try:
        user = identity.create_user(
            payload.email,
            payload.password,
            {"name": payload.name, "avatar": payload.avatar},
        )
    except ValidationError as exc:
        logger.warning("Sign up error: %s", exc.message)
        raise

    records.create_profile(
        user["id"],
        email=user.get("email", payload.email),
        name=payload.name,
        avatar=payload.avatar,
    )
    return SignupResponse(success=True, user=user)


@router.post("/signin", response_model=SigninResponse)
def signin(
    payload: SigninRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    try:
        session = identity.sign_in(payload.email, payload.password)
    except ValidationError as exc:
        logger.info("Sign in error: %s", exc.message)
        raise
    return SigninResponse(accessToken=session["access_token"], user=session["user"])


@router.post("/update-location", response_model=SuccessResponse)
def update_location(
    payload: UpdateLocationRequest,
    user_id: str = Depends(get_current_user_id),
    records: SocialRecords = Depends(get_records),
):
    updated = records.update_location(user_id, payload.latitude, payload.longitude)
    if updated is None:
        # Profiles only come from signup; accounts without one are not backfilled.
        logger.warning("Dropped location update for %s: no profile", user_id)
    return SuccessResponse(success=True)


@router.get("/nearby-users", response_model=NearbyUsersResponse)
def nearby_users(
    user_id: str = Depends(get_current_user_id),
    records: SocialRecords = Depends(get_records),
):
    """Every located user except the caller. There is no distance filter."""
    users = [
        NearbyUser(
            id=profile.id,
            name=profile.name,
            avatar=profile.avatar,
            latitude=profile.latitude,
            longitude=profile.longitude,
            lastSeen=profile.lastSeen,
        )
        for profile in records.located_users(exclude_id=user_id)
    ]
    return NearbyUsersResponse(users=users)


@router.post("/send-message", response_model=SendMessageResponse)
def send_message(
    payload: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    records: SocialRecords = Depends(get_records),
):
    record = records.save_message(user_id, payload.recipientId, payload.message)
    return SendMessageResponse(success=True, message=record.as_dict())


@router.get("/get-messages/{recipient_id}", response_model=MessagesResponse)
def get_messages(
    recipient_id: str,
    user_id: str = Depends(get_current_user_id),
    records: SocialRecords = Depends(get_records),
):
    messages = [record.as_dict() for record in records.conversation(user_id, recipient_id)]
    return MessagesResponse(messages=messages)
