import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

import config
import database
from errors import ValidationError

logger = logging.getLogger(__name__)

ADMIN = "admin"
TEACHER = "teacher"
ROLES = (ADMIN, TEACHER)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
security = HTTPBearer(auto_error=False)

if config.JWT_SECRET == config.DEFAULT_JWT_SECRET:
    logger.warning("JWT_SECRET is not set, using the development default")


@dataclass(frozen=True)
class Principal:
    id: int
    role: str
    name: str = ""
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


def get_password_hash(password: str) -> str:
    password = (password or "").strip()
    if len(password) < config.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {config.PASSWORD_MIN_LENGTH} characters"
        )
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    plain_password = (plain_password or "").strip()
    if not plain_password or not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(principal: Principal, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.JWT_EXPIRE_MINUTES)
    )
    payload = {
        "sub": str(principal.id),
        "role": principal.role,
        "name": principal.name,
        "email": principal.email,
        "exp": expire,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    role = str(payload.get("role") or "")
    if role not in ROLES:
        raise jwt.InvalidTokenError("Unknown role")
    return Principal(
        id=int(payload.get("sub")),
        role=role,
        name=str(payload.get("name") or ""),
        email=str(payload.get("email") or ""),
    )


def authenticate(db: Session, email: str, password: str) -> Optional[Principal]:
    """Admins are checked before teachers, as both log in with an email."""
    email = (email or "").strip().lower()
    admin = db.query(database.Admin).filter(database.Admin.email == email).first()
    if admin and verify_password(password, admin.hashed_password):
        return Principal(admin.id, ADMIN, admin.name, admin.email)

    teacher = db.query(database.Teacher).filter(database.Teacher.email == email).first()
    if teacher and verify_password(password, teacher.hashed_password):
        return Principal(teacher.id, TEACHER, teacher.name, teacher.email)
    return None


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except (jwt.PyJWTError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_roles(*roles: str):
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return principal

    return dependency


require_admin = require_roles(ADMIN)
require_staff = require_roles(ADMIN, TEACHER)
