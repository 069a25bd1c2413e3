"""
User registration and profile endpoints.
"""
from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import secrets
import string
import time
from farm_market.api.deps import get_db, get_current_user
from farm_market.errors import ConflictError, InternalError
from farm_market.models.db import User
from farm_market.models.schemas.users import UserCreate, UserRead, UserCreated
from farm_market.utils import get_logger, log_business_event, log_performance
from farm_market.utils.observability import request_id_of

router = APIRouter()
logger = get_logger(__name__)

def generate_api_key() -> str:
    """Generate a random 32-character API key."""
    alphabet = string.ascii_letters + string.digits
    return "fm_" + "".join(secrets.choice(alphabet) for _ in range(32))

@router.post(
    "/",
    response_model=UserCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
    description="Create a user and return its API key (shown only once)"
)
async def create_user(
    user_data: UserCreate,
    request: Request,
    db: Session = Depends(get_db)
) -> UserCreated:
    start_time = time.time()
    request_id = request_id_of(request)

    logger.info(
        "User creation started",
        user_email=user_data.email,
        user_role=user_data.role.value,
        request_id=request_id
    )

    existing = db.query(User).filter(User.email == user_data.email).first()
    if existing:
        logger.warning(
            "User creation failed: duplicate email",
            existing_user_id=existing.id,
            request_id=request_id
        )
        raise ConflictError(f"User with email '{user_data.email}' already exists")

    new_user = User(
        name=user_data.name,
        email=user_data.email,
        api_key=generate_api_key(),
        role=user_data.role,
    )
    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except IntegrityError as e:
        db.rollback()
        logger.error("User creation failed: integrity error", error=str(e), request_id=request_id)
        raise ConflictError("User violates a uniqueness constraint")
    except Exception as e:
        db.rollback()
        logger.error("User creation failed", error=str(e), request_id=request_id, exc_info=True)
        raise InternalError("Internal server error while creating user")

    log_business_event(
        event_type="user_created",
        details={"user_role": new_user.role.value},
        user_id=new_user.id,
        request_id=request_id
    )
    log_performance(
        operation="create_user",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"user_id": new_user.id}
    )
    return UserCreated.model_validate(new_user)

@router.get(
    "/me",
    response_model=UserRead,
    summary="Current user profile"
)
async def read_me(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)
