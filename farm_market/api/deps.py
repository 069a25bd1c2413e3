"""
Dependencies for authentication, database sessions and report services.
"""
from typing import Generator
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from farm_market.database import SessionLocal
from farm_market.models.db import User
from farm_market.models.db.enums import UserRole
from farm_market.services.report_coordinator import ReportCoordinator
from farm_market.utils import get_logger

logger = get_logger(__name__)
security = HTTPBearer()

def _key_prefix(api_key: str) -> str:
    return api_key[:6] + "..." if len(api_key) > 6 else api_key

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Rolls back on error and always closes the session.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the caller from a Bearer API key.

    Raises:
        HTTPException: 401 if the key is unknown or the user is inactive
    """
    api_key = credentials.credentials

    user = db.query(User).filter(
        User.api_key == api_key,
        User.is_active == True  # noqa: E712
    ).first()

    if not user:
        logger.warning(
            "Authentication failed: invalid or inactive API key",
            api_key_prefix=_key_prefix(api_key)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug("User authenticated", user_id=user.id, user_role=user.role.value)
    return user

def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Dependency that requires ADMIN role.

    Raises:
        HTTPException: 403 if user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        logger.warning(
            "Access denied: admin required",
            user_id=current_user.id,
            user_role=current_user.role.value
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user

def get_report_coordinator(request: Request) -> ReportCoordinator:
    """Coordinator over the store/dispatcher created in the app lifespan."""
    store = getattr(request.app.state, "report_store", None)
    dispatcher = getattr(request.app.state, "report_dispatcher", None)
    if store is None or dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Report service not available"
        )
    return ReportCoordinator(store, dispatcher)
