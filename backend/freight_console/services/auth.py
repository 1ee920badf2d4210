"""
Bearer token verification for the /api routes.
"""
from datetime import datetime, timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from freight_console.db.database import settings

oauth2_bearer = OAuth2PasswordBearer(tokenUrl="api/auth/token")

token_dependency = Annotated[str, Depends(oauth2_bearer)]


def get_current_user(token: token_dependency) -> dict:
    """Validate the bearer token on every protected endpoint."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    username: Optional[str] = payload.get("sub")
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"username": username, "roles": payload.get("roles") or []}


def create_access_token(username: str, roles: Optional[list] = None, expires_delta: Optional[timedelta] = None) -> str:
    expires = datetime.utcnow() + (expires_delta or timedelta(hours=12))
    claims = {"sub": username, "roles": roles or [], "exp": expires}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)
