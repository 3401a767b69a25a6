from datetime import datetime, timezone
from uuid import uuid4

from jose import jwt
from passlib.context import CryptContext

from labinventory.config import get_settings

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(subject: str) -> str:
    settings = get_settings()

    now = datetime.now(timezone.utc)
    iat = int(now.timestamp())
    exp = iat + settings.access_token_expire_minutes * 60

    payload = {
        "sub": subject,
        "iat": iat,
        "exp": exp,
        "jti": uuid4().hex,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> str:
    """Return the login the token was issued for; raises on a bad or expired token."""
    payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])

    sub = payload.get("sub")
    if not sub:
        raise ValueError("Missing subject")

    if payload.get("type") not in (None, "access"):
        raise ValueError("Invalid token type")
    return sub
