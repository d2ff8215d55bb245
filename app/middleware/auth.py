"""JWT authentication middleware for FastAPI."""
from fastapi import HTTPException, status, Request
from jose import jwt, JWTError
from pydantic import BaseModel
from typing import Optional
import os

# Load environment
AUTH_SECRET = os.environ.get("AUTH_SECRET", "change-me-in-production")
AUTH_ALGORITHM = "HS256"


class CurrentUser(BaseModel):
    """User information extracted from JWT."""
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.user_id


async def get_current_user(
    request: Request
) -> CurrentUser:
    """
    Validate JWT token from Authorization header and extract user information.

    Args:
        request: FastAPI request object to extract Authorization header

    Returns:
        CurrentUser with user_id, name and email from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    # Skip authentication for OPTIONS requests (preflight CORS requests)
    if request.method == "OPTIONS":
        return CurrentUser(user_id="")

    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header[7:]  # Remove "Bearer " prefix

    try:
        payload = jwt.decode(token, AUTH_SECRET, algorithms=[AUTH_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(
        user_id=user_id,
        name=payload.get("name"),
        email=payload.get("email")
    )
