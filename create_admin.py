"""
Create or reset a staff admin account
Usage: python create_admin.py <email> [full name]
"""
import getpass
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from autoshop.database import Base, SessionLocal, engine
from autoshop.models import StaffUser
from autoshop.security_utils import hash_password
from autoshop.shared.validators import validate_email

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


def create_admin(email: str, password: str, full_name: str = None):
    """Insert the admin, or reset the password and re-enable it if the email exists"""
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        staff = db.query(StaffUser).filter(StaffUser.email == email).first()
        if staff:
            staff.password_hash = hash_password(password)
            staff.role = "admin"
            staff.is_active = True
            if full_name:
                staff.full_name = full_name
            logger.info(f"Updating existing staff account: {email}")
        else:
            staff = StaffUser(
                email=email,
                full_name=full_name,
                password_hash=hash_password(password),
                role="admin",
            )
            db.add(staff)
            logger.info(f"Creating staff account: {email}")
        db.commit()
    finally:
        db.close()

    logger.info("✅ Admin account ready")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        logger.error("Usage: python create_admin.py <email> [full name]")
        sys.exit(1)

    try:
        admin_email = validate_email(sys.argv[1])
        admin_password = getpass.getpass("Password: ")
        if len(admin_password) < 8:
            logger.error("Password must be at least 8 characters")
            sys.exit(1)
        create_admin(admin_email, admin_password, " ".join(sys.argv[2:]) or None)
    except Exception as e:
        logger.error(f"❌ Failed to create admin: {e}")
        sys.exit(1)
