import os
import datetime
import logging
from typing import Optional, Tuple

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.api.errors import (
    AuthRequired, DuplicateEmail, Internal, InvalidCredentials, InvalidToken, TokenExpired, UserNotFound,
)
from src.api.schemas import SignupRequest
from src.db.db import get_db
from src.db.models import Profile, User, UserSettings

logger = logging.getLogger(__name__)

# === Security config from env ===
SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "notsosecret")
ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))
PASSWORD_HASH_ROUNDS = int(os.environ.get("PASSWORD_HASH_ROUNDS", 12))

# Password hashing setup
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=PASSWORD_HASH_ROUNDS)
bearer_scheme = HTTPBearer(auto_error=False)


# ==== Password and token utilities ====

# PUBLIC_INTERFACE
def get_password_hash(password: str) -> str:
    """Hash the plain password."""
    return pwd_context.hash(password)

# PUBLIC_INTERFACE
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against stored hash."""
    return pwd_context.verify(plain_password, hashed_password)

# PUBLIC_INTERFACE
def create_access_token(user_id: str, expires_delta: Optional[datetime.timedelta] = None,
                        now: Optional[datetime.datetime] = None) -> str:
    """Mint a signed bearer token for ``user_id``."""
    issued_at = now or datetime.datetime.now(datetime.timezone.utc)
    expire = issued_at + (expires_delta or datetime.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "sub": str(user_id),
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)

# PUBLIC_INTERFACE
def decode_access_token(token: str, now: Optional[datetime.datetime] = None) -> dict:
    """
    Check signature and expiry and return the claims.

    Expiry is enforced here rather than by jose so that a token is already
    rejected at its exact expiry instant.
    """
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_exp": False})
    except JWTError:
        raise InvalidToken()

    expires = claims.get("exp")
    if not claims.get("sub") or not isinstance(expires, (int, float)):
        raise InvalidToken()

    current = now or datetime.datetime.now(datetime.timezone.utc)
    if current.timestamp() >= expires:
        raise TokenExpired()
    return claims

# PUBLIC_INTERFACE
def verify(db: Session, token: str, now: Optional[datetime.datetime] = None) -> User:
    """Resolve a bearer token to its user. A token whose user is gone fails with UserNotFound."""
    claims = decode_access_token(token, now=now)
    user = db.get(User, claims["sub"])
    if user is None:
        raise UserNotFound()
    return user

# PUBLIC_INTERFACE
def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> User:
    """Authentication gate: every protected route depends on this before touching user data."""
    if credentials is None:
        raise AuthRequired()
    try:
        user = verify(db, credentials.credentials)
    except (InvalidToken, TokenExpired, UserNotFound) as exc:
        logger.info("Rejected bearer token on %s: %s", request.url.path, exc.code)
        raise
    request.state.user = user
    return user


# ==== Credentials ====

# PUBLIC_INTERFACE
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Exact, case-sensitive lookup on the stored address."""
    return db.query(User).filter(User.email == email).first()

# PUBLIC_INTERFACE
def create_user(db: Session, data: SignupRequest) -> User:
    """
    Store a credential together with its profile and default settings.

    The three rows share one transaction: if any insert fails nothing is kept.
    """
    if get_user_by_email(db, data.email):
        raise DuplicateEmail()

    user = User(
        email=data.email,
        password_hash=get_password_hash(data.password),
        display_name=data.display_name,
    )
    try:
        db.add(user)
        db.flush()
        db.add(Profile(user_id=user.id, full_name=data.display_name))
        db.add(UserSettings(user_id=user.id))
        db.commit()
    except IntegrityError:
        db.rollback()
        # lost a race with a concurrent signup for the same address
        if get_user_by_email(db, data.email):
            raise DuplicateEmail()
        logger.exception("Signup failed for a new account")
        raise Internal("Failed to create user")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Signup failed for a new account")
        raise Internal("Failed to create user")
    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user

# PUBLIC_INTERFACE
def authenticate_user(db: Session, email: str, password: str) -> User:
    """Authenticate user by email and password. Unknown address and wrong password look the same."""
    user = get_user_by_email(db, email)
    if user is None:
        pwd_context.dummy_verify()
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user

# PUBLIC_INTERFACE
def signup(db: Session, data: SignupRequest) -> Tuple[User, str]:
    user = create_user(db, data)
    return user, create_access_token(user.id)

# PUBLIC_INTERFACE
def signin(db: Session, email: str, password: str) -> Tuple[User, str]:
    user = authenticate_user(db, email, password)
    return user, create_access_token(user.id)
