"""
Authentication API routes
Register and log in; both return a bearer access token
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from learnplatform.core.database import get_db
from learnplatform.core.errors import MESSAGES, to_http_exception
from learnplatform.core.security import create_access_token
from learnplatform.services.user_service import UserService


router = APIRouter(prefix="/auth", tags=["auth"])


# Schemas
class RegisterRequest(BaseModel):
    """Registration request"""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    email: str = Field(..., min_length=3, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    """Login request"""
    username: str
    password: str


class UserResponse(BaseModel):
    """Public user fields"""
    id: str
    username: str
    email: str
    name: str
    avatar: Optional[str]
    role: str
    title: Optional[str]
    bio: Optional[str]
    level: int
    xp: int
    points: int
    streak: int
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Access token response"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# Endpoints
@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: Session = Depends(get_db)
):
    """Create a student account"""
    try:
        user = UserService.register_user(
            db,
            username=request.username,
            password=request.password,
            email=request.email,
            name=request.name
        )
    except ValueError as e:
        raise to_http_exception(e)

    return TokenResponse(
        access_token=create_access_token(user.id, user.role),
        user=UserResponse.model_validate(user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db)
):
    """Exchange username and password for an access token"""
    user = UserService.authenticate(db, request.username, request.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=MESSAGES["invalid_credentials"])

    return TokenResponse(
        access_token=create_access_token(user.id, user.role),
        user=UserResponse.model_validate(user)
    )
