from fastapi import APIRouter, Depends, HTTPException, Request
import os
from sqlalchemy.orm import Session
from ..database import get_db
from .. import models, schemas, audit
from ..auth import get_password_hash, verify_password, create_access_token
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
testing = os.getenv("TESTING") == "1"


def rate_limit(limit: str):
    if testing:
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=schemas.Token)
@rate_limit("5/minute")
async def register(request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)):
    existing = db.query(models.User).filter(models.User.email == user.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    db_user = models.User(
        email=user.email,
        hashed_password=get_password_hash(user.password),
        full_name=user.full_name,
        orcid_id=user.orcid_id,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    audit.log_action(db, str(db_user.id), "register", "user", str(db_user.id))
    token = create_access_token({"sub": db_user.email})
    return schemas.Token(access_token=token)


@router.post("/login", response_model=schemas.Token)
@rate_limit("10/minute")
async def login(request: Request, user: schemas.LoginRequest, db: Session = Depends(get_db)):
    db_user = db.query(models.User).filter(models.User.email == user.email).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_access_token({"sub": db_user.email})
    audit.log_action(db, str(db_user.id), "login", "user", str(db_user.id))
    return schemas.Token(access_token=token)
