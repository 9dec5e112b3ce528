from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from src.api import core
from src.api.core import get_current_user
from src.api.schemas import AuthResponse, SigninRequest, SignupRequest, UserEnvelope, UserRead
from src.db.db import get_db
from src.db.models import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


# PUBLIC_INTERFACE
@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED,
             summary="Register a new user")
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    """Register a new user. Email must be unique. Profile and settings are created with it."""
    user, token = core.signup(db, payload)
    return AuthResponse(user=UserRead.model_validate(user), token=token)


# PUBLIC_INTERFACE
@router.post("/signin", response_model=AuthResponse, summary="Obtain a bearer token")
def signin(payload: SigninRequest, db: Session = Depends(get_db)):
    user, token = core.signin(db, payload.email, payload.password)
    return AuthResponse(user=UserRead.model_validate(user), token=token)


# PUBLIC_INTERFACE
@router.get("/me", response_model=UserEnvelope, summary="Get current user info")
def read_current_user(current_user: User = Depends(get_current_user)):
    """Get info on current authenticated user."""
    return UserEnvelope(user=UserRead.model_validate(current_user))
