from fastapi import Request, HTTPException, status
from jose import jwt, JWTError

from weekplan.config import SUPABASE_JWT_SECRET, JWT_ALGORITHM, JWT_AUDIENCE


def verify_token(token: str) -> dict | None:
    """Decode and verify an access token issued by the auth backend.
    Returns the payload or None on failure."""
    try:
        return jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except JWTError:
        return None


async def get_current_user(request: Request) -> str:
    """
    FastAPI dependency: extracts the Bearer token from the Authorization
    header, verifies it, and returns the user id (the token's subject).
    Raises HTTP 401 if the token is missing or invalid.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header.split(" ", 1)[1]
    payload = verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token payload missing required claims",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id
