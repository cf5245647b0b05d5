"""
JWT Authentication System

Provides:
- User registration (username + password + role)
- Login (returns JWT access token)
- Current-user lookup
- ``require_researcher`` dependency gating catalog writes
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from exoatlas.core.config import settings
from exoatlas.db.session import get_db
from exoatlas.models.user import User, UserRole
from datetime import datetime, timedelta
from pydantic import BaseModel, Field
import hashlib
import hmac
import json
import base64
import secrets
import logging

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

JWT_ALGORITHM = "HS256"


# ── Pydantic Models ──

class RegisterRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    # Checked in the endpoint so an unknown role is a 400, not a 422
    role: str

class LoginRequest(BaseModel):
    username: str
    password: str

class UserOut(BaseModel):
    user_id: int
    username: str
    role: UserRole

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: int
    role: UserRole


# ── Password Hashing ──

def hash_password(password: str) -> str:
    """PBKDF2-SHA256 password hashing with salt."""
    salt = secrets.token_hex(16)
    key = hashlib.pbkdf2_hmac('sha256', password.encode(), salt.encode(), 100000)
    return f"{salt}:{key.hex()}"

def verify_password(stored: str, provided: str) -> bool:
    """Verify a password against its hash."""
    try:
        salt, key_hex = stored.split(":")
    except ValueError:
        return False
    key = hashlib.pbkdf2_hmac('sha256', provided.encode(), salt.encode(), 100000)
    return hmac.compare_digest(key.hex(), key_hex)


# ── JWT Token ──

def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()

def create_jwt(payload: dict) -> str:
    """Create an HS256-signed JWT."""
    header = _b64(json.dumps({"alg": JWT_ALGORITHM, "typ": "JWT"}).encode())
    payload_b64 = _b64(json.dumps(payload, default=str).encode())
    signature = hmac.new(settings.JWT_SECRET.encode(), f"{header}.{payload_b64}".encode(), hashlib.sha256).digest()
    return f"{header}.{payload_b64}.{_b64(signature)}"

def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT token."""
    try:
        parts = token.split(".")
        if len(parts) != 3:
            raise ValueError("Invalid token format")

        header, payload_b64, signature = parts

        expected_sig = hmac.new(settings.JWT_SECRET.encode(), f"{header}.{payload_b64}".encode(), hashlib.sha256).digest()
        # Bytes comparison: header values may carry non-ASCII characters
        if not hmac.compare_digest(signature.encode(), _b64(expected_sig).encode()):
            raise ValueError("Invalid signature")

        padding = -len(payload_b64) % 4
        payload = json.loads(base64.urlsafe_b64decode(payload_b64 + "=" * padding))

        if "exp" in payload:
            exp = datetime.fromisoformat(payload["exp"])
            if datetime.utcnow() > exp:
                raise ValueError("Token expired")

        return payload
    except (ValueError, TypeError) as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")

def issue_token(user: User) -> TokenResponse:
    expires = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_jwt({
        "user_id": user.user_id,
        "role": user.role,
        "exp": expires.isoformat(),
    })
    return TokenResponse(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user_id=user.user_id,
        role=user.role,
    )


# ── Dependencies ──

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Extract and verify current user from a bearer JWT."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")

    payload = decode_jwt(credentials.credentials)
    user = db.query(User).filter(User.user_id == payload.get("user_id")).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user

def require_researcher(user: User = Depends(get_current_user)) -> User:
    """Allow only researchers through to catalog writes."""
    if user.role != UserRole.RESEARCHER.value:
        raise HTTPException(status_code=403, detail="Access forbidden. Researcher access required.")
    return user


# ── Endpoints ──

@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new researcher or viewer account."""
    try:
        role = UserRole(req.role)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid role specified. Must be 'researcher' or 'viewer'.")

    existing = db.query(User).filter(User.username == req.username).first()
    if existing:
        raise HTTPException(status_code=409, detail="Username is already taken.")

    user = User(
        username=req.username,
        password_hash=hash_password(req.password),
        role=role.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Username is already taken.")
    db.refresh(user)
    logger.info(f"Registered {user.role} '{user.username}'")
    return user


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    """Login with username and password."""
    user = db.query(User).filter(User.username == req.username).first()
    if not user or not verify_password(user.password_hash, req.password):
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    user.last_login = datetime.utcnow()
    db.commit()
    return issue_token(user)


@router.get("/me")
def get_profile(user: User = Depends(get_current_user)):
    """Get current user profile."""
    return {
        "user_id": user.user_id,
        "username": user.username,
        "role": user.role,
        "created_at": str(user.created_at),
    }
