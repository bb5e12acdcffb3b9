import hashlib
import hmac
import logging
import secrets
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from . import audit, config
from .dates import utcnow
from .errors import DuplicateEmail, LastAdmin, UserNotFound
from .models import User
from .schemas import UserCreate, UserUpdate, normalize_email
from .store import HotelStore

_log = logging.getLogger("hotel.users")

_SCHEME = "pbkdf2_sha256"


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """Salted PBKDF2-SHA256, encoded as `pbkdf2_sha256$<iterations>$<salt>$<hex digest>`."""
    n = int(iterations or config.PASSWORD_ITERATIONS)
    salt = secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), n)
    return f"{_SCHEME}${n}${salt}${dk.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, n, salt, digest = encoded.split("$", 3)
        iterations = int(n)
    except ValueError:
        return False
    if scheme != _SCHEME:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    return hmac.compare_digest(dk.hex(), digest)


def _load_user(s: Session, user_id: str) -> User:
    u = s.get(User, user_id)
    if u is None:
        raise UserNotFound(user_id)
    return u


def _email_taken(s: Session, email: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(User.id).where(User.email == email)
    if exclude_id:
        stmt = stmt.where(User.id != exclude_id)
    return s.execute(stmt).first() is not None


def _admin_count(s: Session) -> int:
    return int(s.execute(select(func.count(User.id)).where(User.role == "admin")).scalar_one())


class UserStore:
    def __init__(self, store: HotelStore):
        self.store = store

    def create(self, req: UserCreate, actor_id: Optional[str] = None) -> User:
        with self.store.transaction() as s:
            if _email_taken(s, req.email):
                raise DuplicateEmail(req.email)
            now = utcnow()
            u = User(
                id=str(uuid.uuid4()),
                email=req.email,
                name=req.name,
                role=req.role,
                password_hash=hash_password(req.password),
                created_at=now,
                updated_at=now,
            )
            s.add(u)
            s.flush()
            audit.record(s, actor_id, "user_created", "user", u.id, f"Created user {u.email}")
        _log.info("user created id=%s role=%s", u.id, u.role)
        return u

    def get(self, user_id: str) -> User:
        with self.store.snapshot() as s:
            return _load_user(s, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        try:
            email = normalize_email(email)
        except ValueError:
            return None
        with self.store.snapshot() as s:
            return s.execute(select(User).where(User.email == email)).scalars().first()

    def list_all(self) -> list[User]:
        with self.store.snapshot() as s:
            return list(s.execute(select(User).order_by(User.created_at, User.email)).scalars().all())

    def search(self, query: str) -> list[User]:
        q = (query or "").strip().lower()
        stmt = select(User).order_by(User.name)
        if q:
            stmt = stmt.where(
                or_(
                    func.lower(User.name).contains(q, autoescape=True),
                    User.email.contains(q, autoescape=True),
                )
            )
        with self.store.snapshot() as s:
            return list(s.execute(stmt).scalars().all())

    def update(self, user_id: str, req: UserUpdate, actor_id: Optional[str] = None) -> User:
        changes = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None}
        with self.store.transaction() as s:
            u = _load_user(s, user_id)
            email = changes.get("email")
            if email and email != u.email and _email_taken(s, email, u.id):
                raise DuplicateEmail(email)
            role = changes.get("role")
            if u.role == "admin" and role and role != "admin" and _admin_count(s) <= 1:
                raise LastAdmin(u.id, "cannot demote the last admin user")
            password = changes.pop("password", None)
            if password:
                u.password_hash = hash_password(password)
            for k, v in changes.items():
                setattr(u, k, v)
            u.updated_at = utcnow()
            audit.record(s, actor_id, "user_updated", "user", u.id, f"Updated user {u.email}")
        return u

    def delete(self, user_id: str, actor_id: Optional[str] = None) -> None:
        with self.store.transaction() as s:
            u = _load_user(s, user_id)
            if u.role == "admin" and _admin_count(s) <= 1:
                raise LastAdmin(u.id)
            # recorded before the row goes so a user may delete themselves
            audit.record(s, actor_id, "user_deleted", "user", u.id, f"Deleted user {u.email}")
            s.delete(u)
        _log.info("user deleted id=%s", user_id)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """The user owning these credentials, or None. A successful sign-in is audited."""
        u = self.get_by_email(email)
        if u is None or not verify_password(password, u.password_hash):
            return None
        with self.store.transaction() as s:
            audit.record(s, u.id, "user_signed_in", "user", u.id, f"{u.email} signed in")
        return u
