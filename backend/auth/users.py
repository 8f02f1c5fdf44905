"""
Account operations over the ``users`` collection.

Passwords are bcrypt-hashed. One-time codes and reset tokens are stored as
sha256 digests and expire after an hour.
"""
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta

import bcrypt

from ..errors import AccountLockedError, AuthenticationError, NotFoundError, ValidationError
from ..storage.document_store import DocumentStore, utcnow
from .models import RegisterRequest, Role, User

logger = logging.getLogger(__name__)

MAX_FAILED_LOGINS = 5
LOCK_DURATION = timedelta(minutes=15)
TOKEN_TTL = timedelta(hours=1)


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def _find_by_email(store: DocumentStore, email: str) -> User | None:
    email = email.strip().lower()
    return store.users.find_one(lambda u: u.email == email)


def create_user(
    store: DocumentStore,
    name: str,
    email: str,
    number: str,
    password: str,
    role: Role = Role.customer,
    is_verified: bool = False,
) -> User:
    email = email.strip().lower()
    if _find_by_email(store, email):
        raise ValidationError("An account with this email already exists")
    if store.users.find_one(lambda u: u.number == number):
        raise ValidationError("An account with this phone number already exists")
    user = User(
        name=name.strip(),
        email=email,
        number=number,
        password_hash=hash_password(password),
        role=role,
        is_verified=is_verified,
    )
    return store.users.insert(user)


def register(store: DocumentStore, body: RegisterRequest) -> User:
    user = create_user(store, body.name, body.email, body.number, body.password)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(store: DocumentStore, email: str, password: str) -> User:
    """Verify credentials, locking the account after repeated failures."""
    user = _find_by_email(store, email)
    if user is None:
        raise AuthenticationError("Invalid email or password")

    now = utcnow()
    if user.lock_until and user.lock_until > now:
        minutes = int((user.lock_until - now).total_seconds() // 60) + 1
        raise AccountLockedError(f"Account locked. Try again in {minutes} minutes")

    if not verify_password(password, user.password_hash):
        user.failed_login_attempts += 1
        if user.failed_login_attempts >= MAX_FAILED_LOGINS:
            user.lock_until = now + LOCK_DURATION
            user.failed_login_attempts = 0
            store.users.save(user)
            logger.warning("Locked user %s after %d failed logins", user.id, MAX_FAILED_LOGINS)
            raise AccountLockedError("Too many failed attempts. Account locked for 15 minutes")
        store.users.save(user)
        raise AuthenticationError("Invalid email or password")

    user.failed_login_attempts = 0
    user.lock_until = None
    store.users.save(user)
    return user


def get_user(store: DocumentStore, user_id: str) -> User:
    user = store.users.get(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def issue_verification_otp(store: DocumentStore, user: User) -> str:
    """Generate a 6-digit code; only its digest is kept."""
    if user.is_verified:
        raise ValidationError("Email is already verified")
    otp = f"{secrets.randbelow(1_000_000):06d}"
    user.otp_hash = _digest(otp)
    user.otp_expires = utcnow() + TOKEN_TTL
    store.users.save(user)
    return otp


def verify_email(store: DocumentStore, user: User, otp: str) -> User:
    if user.is_verified:
        raise ValidationError("Email is already verified")
    if (
        not user.otp_hash
        or not user.otp_expires
        or user.otp_expires < utcnow()
        or not secrets.compare_digest(user.otp_hash, _digest(otp))
    ):
        raise ValidationError("Invalid or expired verification code")
    user.is_verified = True
    user.otp_hash = None
    user.otp_expires = None
    return store.users.save(user)


def change_password(store: DocumentStore, user: User, current: str, new: str) -> User:
    if not verify_password(current, user.password_hash):
        raise AuthenticationError("Current password is incorrect")
    user.password_hash = hash_password(new)
    return store.users.save(user)


def issue_reset_token(store: DocumentStore, email: str) -> tuple[User, str]:
    user = _find_by_email(store, email)
    if user is None:
        raise NotFoundError("No account found with that email")
    token = secrets.token_hex(32)
    user.reset_token_hash = _digest(token)
    user.reset_token_expires = utcnow() + TOKEN_TTL
    store.users.save(user)
    return user, token


def reset_password(store: DocumentStore, token: str, new: str) -> User:
    digest = _digest(token)
    now = utcnow()
    user = store.users.find_one(
        lambda u: u.reset_token_hash == digest
        and u.reset_token_expires is not None
        and u.reset_token_expires > now
    )
    if user is None:
        raise ValidationError("Invalid or expired reset token")
    user.password_hash = hash_password(new)
    user.reset_token_hash = None
    user.reset_token_expires = None
    user.failed_login_attempts = 0
    user.lock_until = None
    logger.info("Password reset for user %s", user.id)
    return store.users.save(user)
