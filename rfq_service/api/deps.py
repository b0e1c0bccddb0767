# rfq_service/api/deps.py
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from rfq_service.core.config import settings
from rfq_service.schemas.token import TokenPayload

# The tokenUrl is only used for the OpenAPI docs; tokens are issued by the
# user service.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenPayload:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
        token_data = TokenPayload(**payload)
    except (JWTError, ValueError):
        # Covers both jose decoding errors and pydantic validation errors
        raise credentials_exception

    return token_data


def get_current_agency_user(
    current_user: TokenPayload = Depends(get_current_user),
) -> TokenPayload:
    """Caller must be an agency contact."""
    if not current_user.agency_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Agency contact access required",
        )
    return current_user
