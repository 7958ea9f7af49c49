import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import StaffUser
from .security_utils import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> StaffUser:
    """Resolve the signed-in admin from the bearer token"""

    if not credentials:
        logger.warning("⚠️ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        staff_id = int(claims["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired token") from None

    staff = db.query(StaffUser).filter(StaffUser.id == staff_id).first()
    if not staff or not staff.is_active:
        logger.warning(f"⚠️ Token for unknown or disabled staff account {staff_id}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if staff.role != "admin":
        logger.warning(f"⚠️ Staff {staff.email} attempted admin access with role '{staff.role}'")
        raise HTTPException(status_code=403, detail="Admin access required")

    return staff
