"""
auth.py

Lightweight account registration and lookup by email. There are no
passwords or sessions; callers pass the returned user id around.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging
import secrets

from ..core.database import get_db
from ..models import User
from ..schemas import LoginRequest, RegisterRequest, UserSchema

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", status_code=201)
async def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User.id).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="User already exists")
    try:
        data = payload.model_dump()
        data["role"] = payload.role.value
        data["website"] = str(payload.website) if payload.website else None
        user = User(verification_token=secrets.token_hex(32), **data)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Registered {user.role.lower()} {user.id}")
        return {
            "user": UserSchema.model_validate(user).model_dump(mode="json"),
            "message": "Registration successful. Please check your email for verification.",
        }
    except Exception as e:
        db.rollback()
        logger.error(f"Registration failed: {e}")
        raise HTTPException(status_code=500, detail="Authentication failed")


@router.post("/login")
async def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {
        "user": UserSchema.model_validate(user).model_dump(mode="json"),
        "message": "Login successful",
    }
