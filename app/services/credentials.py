"""User records, password hashes and single-use tokens.

Only this module touches User.hashed_password; everything it returns to callers
is the UserPublic projection.
"""
import secrets
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import DuplicateEmail
from app.models.user import User
from app.schemas.auth import UserPublic
from app.services.auth import get_password_hash, verify_password


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class CredentialStore:
    def __init__(self, db: Session, bcrypt_rounds: int = 12):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    def _get(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def _require(self, user: UserPublic) -> User:
        row = self._get(user.id)
        if row is None:
            raise LookupError(f"user {user.id} no longer exists")
        return row

    def create(self, email: str, raw_password: str, name: str) -> UserPublic:
        if self.db.query(User.id).filter(User.email == email).first():
            raise DuplicateEmail("That user is already registered")
        user = User(
            name=name,
            email=email,
            hashed_password=get_password_hash(raw_password, rounds=self.bcrypt_rounds),
            confirmed=False,
            token=generate_token(),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Concurrent registration won the unique(email) race
            self.db.rollback()
            raise DuplicateEmail("That user is already registered")
        self.db.refresh(user)
        return UserPublic.model_validate(user)

    def find_by_email(self, email: str) -> UserPublic | None:
        user = self.db.query(User).filter(User.email == email).first()
        return UserPublic.model_validate(user) if user else None

    def find_by_token(self, token: str) -> UserPublic | None:
        if not token:
            return None
        user = self.db.query(User).filter(User.token == token).first()
        return UserPublic.model_validate(user) if user else None

    def find_by_id(self, user_id: int) -> UserPublic | None:
        user = self._get(user_id)
        return UserPublic.model_validate(user) if user else None

    def pending_token(self, user: UserPublic) -> str | None:
        """Token currently awaiting use, for the notifier."""
        return self._require(user).token

    def verify_password(self, user: UserPublic, raw_password: str) -> bool:
        row = self._get(user.id)
        if row is None:
            return False
        return verify_password(raw_password, row.hashed_password)

    def set_password(self, user: UserPublic, raw_password: str) -> None:
        row = self._require(user)
        row.hashed_password = get_password_hash(raw_password, rounds=self.bcrypt_rounds)
        row.token = None
        self.db.commit()

    def confirm(self, user: UserPublic) -> UserPublic:
        row = self._require(user)
        row.confirmed = True
        row.token = None
        self.db.commit()
        self.db.refresh(row)
        return UserPublic.model_validate(row)

    def issue_reset_token(self, user: UserPublic) -> str:
        row = self._require(user)
        row.token = generate_token()
        self.db.commit()
        return row.token
