import secrets
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings

otp_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=10,
    bcrypt__ident="2b"  # Use the modern bcrypt variant
)

def generate_numeric_otp(length: int = 6) -> str:
    """Zero-padded numeric code drawn from the OS CSPRNG"""
    return str(secrets.randbelow(10 ** length)).zfill(length)

def hash_otp(otp_code: str) -> str:
    return otp_context.hash(otp_code)

def verify_otp_hash(otp_code: str, otp_hash: str) -> bool:
    return otp_context.verify(otp_code, otp_hash)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str):
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None

def create_session_token(user_id: int) -> str:
    return create_access_token(
        data={"sub": str(user_id)},
        expires_delta=timedelta(days=settings.SESSION_EXPIRE_DAYS)
    )

def session_subject(token: str) -> Optional[str]:
    """User id carried by a session token, or None if the token is bad or expired"""
    payload = decode_access_token(token)
    if not payload:
        return None
    return payload.get("sub")
