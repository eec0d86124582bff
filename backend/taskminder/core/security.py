# taskminder/core/security.py

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError
from passlib.context import CryptContext
from loguru import logger

from taskminder.core.config import settings
from taskminder.models.auth import TokenData

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/login")

CredentialsException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

# --- Passwords ---

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Checks a plain password against a stored hash."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Error verifying password (hash might be invalid): {e}")
        return False

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

@lru_cache()
def _configured_password_hash() -> Optional[str]:
    if settings.AUTH_PASSWORD_HASH:
        return settings.AUTH_PASSWORD_HASH
    if settings.AUTH_PASSWORD:
        return get_password_hash(settings.AUTH_PASSWORD)
    return None

def authenticate(username: str, password: str) -> bool:
    """Verifies the single configured account."""
    if username != settings.AUTH_USERNAME:
        # Still hash once so unknown usernames cost the same as bad passwords
        verify_password(password, _configured_password_hash())
        return False
    return verify_password(password, _configured_password_hash())

# --- JWT ---

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Creates a new JWT access token. `data` must carry a 'sub' claim."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "nbf": now})

    subject = to_encode.get("sub")
    if not subject:
        logger.critical("FATAL: Attempted to create JWT token without 'sub' (subject) claim.")
        raise ValueError("Missing 'sub' claim in token data for JWT creation")

    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    logger.info(f"Access token created for subject: {subject}")
    logger.debug(f"Token expires at: {expire.isoformat()}")
    return encoded_jwt

async def get_current_user_from_token(token: Annotated[str, Depends(oauth2_scheme)]) -> TokenData:
    """FastAPI dependency: decodes and validates the bearer token or raises 401."""
    log = logger.bind(service="AuthTokenValidation")
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_aud": False},
        )
    except ExpiredSignatureError:
        log.warning("Token validation failed: Signature has expired.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": 'Bearer error="invalid_token", error_description="The token has expired"'},
        )
    except JWTClaimsError as e:
        log.warning(f"Token validation failed: Invalid claims - {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
            headers={"WWW-Authenticate": 'Bearer error="invalid_token", error_description="Invalid claims"'},
        )
    except JWTError as e:
        log.warning(f"Invalid JWT token format or signature: {e}")
        raise CredentialsException from e

    username: str | None = payload.get("sub")
    if username is None:
        log.warning("Token validation failed: 'sub' (username) claim missing.")
        raise CredentialsException
    log.debug(f"Token payload validated for username: {username}")
    return TokenData(username=username)

CurrentUser = Annotated[TokenData, Depends(get_current_user_from_token)]
