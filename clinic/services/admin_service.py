import logging

from sqlalchemy.orm import Session

from ..models import Admin
from ..core.security import Role, AuthenticationError, get_password_hash, verify_password
from .token_service import TokenService

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: Session, tokens: TokenService = None):
        self.db = db
        self.tokens = tokens

    def login(self, username: str, password: str) -> str:
        """Check admin credentials and return a token."""
        admin = self.db.query(Admin).filter(Admin.username == username).first()
        if not admin or not verify_password(password, admin.password_hash):
            logger.warning(f"Failed admin login for '{username}'")
            raise AuthenticationError("Invalid admin credentials")
        return self.tokens.issue(admin.username, Role.ADMIN)

    def seed_admin(self, username: str, password: str) -> bool:
        """Create the admin account if it does not exist yet."""
        if self.db.query(Admin).filter(Admin.username == username).first():
            return False

        self.db.add(Admin(username=username, password_hash=get_password_hash(password)))
        self.db.commit()
        logger.info(f"Seeded admin account '{username}'")
        return True
