import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_staff
from ..config import ACCESS_TOKEN_EXPIRE_MINUTES, PASSWORD_RESET_CODE_MINUTES
from ..database import get_db
from ..models import PasswordResetCode, StaffUser
from ..security_utils import create_access_token, hash_password, verify_password
from ..shared.validators import validate_email
from ..worker import enqueue_job

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

PASSWORD_RESET_TASK_NAME = "send_password_reset_email_task"
MIN_PASSWORD_LENGTH = 6

# Same answer whether or not the account exists
RESET_REQUESTED_MESSAGE = "If the email exists, a verification code will be sent"


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_login_email(cls, v):
        return validate_email(v)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class StaffResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_reset_email(cls, v):
        return validate_email(v)


class PasswordResetConfirm(BaseModel):
    email: str
    code: str
    new_password: str

    @field_validator("email")
    @classmethod
    def validate_reset_email(cls, v):
        return validate_email(v)

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Verification code is required")
        return v

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return v


class MessageResponse(BaseModel):
    message: str


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Exchange staff email and password for a bearer token"""
    staff = db.query(StaffUser).filter(StaffUser.email == data.email).first()

    if not staff or not verify_password(data.password, staff.password_hash):
        logger.warning(f"⚠️ Failed login attempt for {data.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not staff.is_active or staff.role != "admin":
        logger.warning(f"⚠️ Login refused for non-admin or disabled account {data.email}")
        raise HTTPException(status_code=403, detail="Admin access required")

    staff.last_login_at = datetime.utcnow()
    db.commit()

    token = create_access_token({"sub": str(staff.id), "role": staff.role})
    logger.info(f"✅ Staff login: {staff.email}")
    return TokenResponse(access_token=token, expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60)


@router.get("/me", response_model=StaffResponse)
async def get_me(current_staff: StaffUser = Depends(get_current_staff)):
    return current_staff


# ============================================================================
# PASSWORD RESET
# ============================================================================


async def queue_password_reset_email(email: str, code: str) -> None:
    """Hand the reset code email to the worker; runs after the response is sent"""
    try:
        job = await enqueue_job(PASSWORD_RESET_TASK_NAME, email, code)
        logger.info(f"📧 Queued password reset email for {email} (job {job.job_id if job else 'duplicate'})")
    except Exception as e:
        logger.warning(f"⚠️ Failed to queue password reset email for {email}: {type(e).__name__} {e}")


@router.post("/password-reset/request", response_model=MessageResponse)
async def request_password_reset(
    data: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Email a six-digit verification code to an active staff account"""
    staff = db.query(StaffUser).filter(StaffUser.email == data.email).first()

    if staff and staff.is_active:
        code = str(100000 + secrets.randbelow(900000))
        db.add(
            PasswordResetCode(
                email=staff.email,
                code=code,
                expires_at=datetime.utcnow() + timedelta(minutes=PASSWORD_RESET_CODE_MINUTES),
            )
        )
        db.commit()
        background_tasks.add_task(queue_password_reset_email, staff.email, code)
        logger.info(f"🔑 Password reset code issued for {staff.email}")
    else:
        logger.info(f"Password reset requested for unknown or disabled account {data.email}")

    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(data: PasswordResetConfirm, db: Session = Depends(get_db)):
    """Set a new password after checking the latest unused, unexpired code"""
    reset = (
        db.query(PasswordResetCode)
        .filter(
            PasswordResetCode.email == data.email,
            PasswordResetCode.code == data.code,
            PasswordResetCode.used.is_(False),
            PasswordResetCode.expires_at > datetime.utcnow(),
        )
        .order_by(PasswordResetCode.created_at.desc(), PasswordResetCode.id.desc())
        .first()
    )
    if not reset:
        logger.warning(f"⚠️ Invalid or expired reset code for {data.email}")
        raise HTTPException(status_code=400, detail="Invalid or expired verification code")

    staff = db.query(StaffUser).filter(StaffUser.email == data.email).first()
    if not staff:
        raise HTTPException(status_code=404, detail="User not found")

    # Any other outstanding codes for this account stop working too
    db.query(PasswordResetCode).filter(
        PasswordResetCode.email == data.email, PasswordResetCode.used.is_(False)
    ).update({PasswordResetCode.used: True}, synchronize_session=False)
    staff.password_hash = hash_password(data.new_password)
    db.commit()

    logger.info(f"✅ Password updated for {staff.email}")
    return MessageResponse(message="Password updated successfully")
