from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationError, DuplicateEntryError, ValidationError
from app.core.logging_config import logger, set_user_id
from app.core.rate_limiter import limiter
from app.core.security import create_user_token, get_password_hash, verify_password
from app.core.types import utcnow
from app.domain.roles import assign_role
from app.models.user import User, default_preferences
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import ChangePasswordRequest, ProfileUpdate, UserLogin, UserRegister
from app.schemas.common import address_to_json, success_response
from app.services.community_service import community_service
from app.services.statistics import refresh_community_statistics
from app.services.user_service import serialize_user, user_service

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new account; users join (or create) their community by name"""
    client_ip = _client_ip(request)

    if await user_service.get_by_email(db, user_data.email):
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason="Email already registered",
            client_ip=client_ip
        )
        raise DuplicateEntryError("User already exists with this email", field="email")

    role = assign_role(user_data.email, settings.ADMIN_EMAIL_DOMAIN)
    address = user_data.address_json()

    community = None
    if user_data.community_name:
        community = await community_service.find_or_create(db, user_data.community_name, address)

    user = User(
        name=user_data.name,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        role=role,
        phone=user_data.phone,
        address=address,
        community_id=community.id if community else None,
        preferences=default_preferences(),
    )
    db.add(user)
    if community:
        await refresh_community_statistics(db, community.id)
    await db.commit()
    await db.refresh(user)

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=role.value
    )

    return success_response(
        {"user": await serialize_user(db, user), "token": create_user_token(user)},
        "User registered successfully",
    )


@router.post("/login")
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email and password for a bearer token"""
    client_ip = _client_ip(request)
    user = await user_service.get_by_email(db, credentials.email)

    if not user:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Unknown email",
            client_ip=client_ip
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise AuthenticationError("Account is deactivated. Please contact support.")

    if not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid password",
            client_ip=client_ip
        )
        raise AuthenticationError("Invalid credentials")

    user.last_login = utcnow()
    await db.commit()
    await db.refresh(user)

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    return success_response(
        {"user": await serialize_user(db, user), "token": create_user_token(user)},
        "Login successful",
    )


@router.get("/me")
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user info"""
    return success_response({"user": await serialize_user(db, current_user)})


@router.put("/profile")
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name, phone, address and preferences of the current user"""
    updates = profile_data.model_dump(exclude_unset=True)

    if updates.get("name"):
        current_user.name = profile_data.name
    if "phone" in updates:
        current_user.phone = profile_data.phone
    if profile_data.address is not None:
        current_user.address = address_to_json(profile_data.address)
    if profile_data.preferences is not None:
        current_user.preferences = {
            **(current_user.preferences or default_preferences()),
            **profile_data.preferences.model_dump(by_alias=True, exclude_none=True),
        }

    await db.commit()
    await db.refresh(current_user)
    return success_response(
        {"user": await serialize_user(db, current_user)},
        "Profile updated successfully",
    )


@router.put("/change-password")
async def change_password(
    request: Request,
    password_data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not verify_password(password_data.current_password, current_user.hashed_password):
        logger.log_auth_event(
            event="change_password",
            success=False,
            user_email=current_user.email,
            reason="Wrong current password",
            client_ip=_client_ip(request)
        )
        raise ValidationError("Current password is incorrect", field="currentPassword")

    current_user.hashed_password = get_password_hash(password_data.new_password)
    await db.commit()

    logger.log_auth_event(event="change_password", success=True, user_email=current_user.email)
    return success_response(message="Password changed successfully")


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user)
):
    """
    Logout current user.

    Tokens are stateless; the client discards its copy.
    """
    logger.log_auth_event(event="logout", success=True, user_email=current_user.email)
    return success_response(message="Logged out successfully")
