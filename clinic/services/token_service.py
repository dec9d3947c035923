from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..core.security import (
    Role, TokenConfig, TokenPayload, AuthorizationError,
    encode_token, decode_token
)
from ..models import Admin, Doctor, Patient

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and validates the stateless tokens carried in request paths.

    A token asserts ``(identifier, role)``: admins are identified by username,
    doctors and patients by email. Validation checks signature and expiry and
    then confirms the subject still exists in the store for its role, so a
    deleted account's tokens stop working immediately.
    """

    def __init__(self, db: Session, config: TokenConfig):
        self.db = db
        self.config = config

    def issue(self, identifier: str, role: Role, now: Optional[datetime] = None) -> str:
        """Create a token for ``identifier`` with ``role``."""
        return encode_token(identifier, role, self.config, now=now)

    def validate(self, token: str, expected_role: str) -> bool:
        """True when the token is authentic, unexpired, of ``expected_role``
        and its subject still exists."""
        payload = decode_token(token, self.config)
        if payload is None or not payload.sub:
            return False

        expected = Role.parse(expected_role)
        claimed = Role.parse(payload.role)
        if expected is None or claimed is None or expected != claimed:
            return False

        return self._lookup(claimed, payload.sub) is not None

    def require(self, token: str, expected_role: str) -> TokenPayload:
        """Validate or raise ``AuthorizationError``; returns the decoded claims."""
        if not self.validate(token, expected_role):
            logger.info(f"Rejected token for role {expected_role}")
            raise AuthorizationError("Invalid or expired token")
        return decode_token(token, self.config)

    def identifier_of(self, token: str) -> Optional[str]:
        payload = decode_token(token, self.config)
        return payload.sub if payload else None

    def account_id_of(self, token: str) -> Optional[int]:
        """Resolve the token's subject to a numeric account id.

        The role claim names the account kind, so only that kind's table is
        consulted; an email shared by a doctor and a patient cannot resolve
        to the wrong account.
        """
        payload = decode_token(token, self.config)
        if payload is None or not payload.sub:
            return None

        role = Role.parse(payload.role)
        if role is None:
            return None

        account = self._lookup(role, payload.sub)
        return account.id if account else None

    def _lookup(self, role: Role, identifier: str):
        if role == Role.ADMIN:
            return self.db.query(Admin).filter(Admin.username == identifier).first()
        if role == Role.DOCTOR:
            return self.db.query(Doctor).filter(Doctor.email == identifier).first()
        if role == Role.PATIENT:
            return self.db.query(Patient).filter(Patient.email == identifier).first()
        return None
