from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from prepcoach.core.config import settings

security = HTTPBearer(auto_error=False)

# Default demo user -- used when no JWT is provided
DEMO_USER_ID = "demo-user"


class UserContext(BaseModel):
    user_id: str
    email: str | None = None


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> UserContext:
    """Extract the user identity from a JWT, or fall back to the demo user.

    In production, remove the fallback and set auto_error=True.
    """
    if credentials is None:
        return UserContext(user_id=DEMO_USER_ID)

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
        user_id = payload["sub"]
        if not user_id:
            raise ValueError("empty subject")
        return UserContext(user_id=str(user_id), email=payload.get("email"))
    except (JWTError, KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
        ) from exc
