"""Session proofs (JWT in a cookie) and password hashing."""
from datetime import datetime, timedelta, timezone
import bcrypt
import jwt
from app.config import Settings
from app.exceptions import InvalidProof


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_pwd_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class SessionProofService:
    """Mints and checks the signed identity assertion carried in the session cookie."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 0):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionProofService":
        return cls(
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.session_expire_minutes,
        )

    def issue(self, user_id: int, name: str) -> str:
        now = datetime.now(timezone.utc)
        # PyJWT expects "sub" to be a string
        payload = {"sub": str(user_id), "name": name, "iat": now}
        if self.expire_minutes > 0:
            payload["exp"] = now + timedelta(minutes=self.expire_minutes)
        raw = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return raw if isinstance(raw, str) else raw.decode("utf-8")

    def verify(self, proof: str) -> dict:
        if not proof or not isinstance(proof, str):
            raise InvalidProof("empty token")
        try:
            payload = jwt.decode(
                proof.strip(),
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidProof(str(e)) from e
        try:
            payload["user_id"] = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise InvalidProof("invalid subject") from e
        return payload
