"""Credential store and session issuer."""
import logging
from typing import Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import schemas
from errors import ConflictError, ExternalLoginRequiredError, InvalidCredentialsError, NotFoundError
from models import User
from security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def to_public(user: User) -> schemas.UserPublic:
    return schemas.UserPublic(
        id=user.id,
        email=user.email,
        username=user.username,
        full_name=user.full_name,
    )


def register(db: Session, payload: schemas.SignupIn) -> Tuple[str, schemas.UserPublic]:
    existing = (
        db.query(User)
        .filter(or_(User.email == payload.email, User.username == payload.username))
        .first()
    )
    if existing:
        raise ConflictError()

    user = User(
        full_name=payload.full_name,
        username=payload.username,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        branch=payload.branch,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent signup for the same email/username
        db.rollback()
        raise ConflictError() from exc
    db.refresh(user)

    logger.info("Registered user %s (%s)", user.id, user.username)
    return create_access_token(user.id), to_public(user)


def authenticate(db: Session, payload: schemas.LoginIn) -> Tuple[str, schemas.UserPublic]:
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        logger.info("Login failed: unknown email")
        raise InvalidCredentialsError()

    if not user.hashed_password:
        raise ExternalLoginRequiredError()

    if not verify_password(payload.password, user.hashed_password):
        logger.info("Login failed for user %s: wrong password", user.id)
        raise InvalidCredentialsError()

    logger.info("User %s logged in", user.id)
    return create_access_token(user.id), to_public(user)


def get_profile(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
