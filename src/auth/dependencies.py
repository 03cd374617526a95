from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from src.auth.utils import verify_token
from src.auth.schemas import CallerIdentity, TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

def get_current_identity(token: str = Depends(oauth2_scheme)) -> CallerIdentity:
    """Get the authenticated caller from the bearer token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = TokenData(**verify_token(token, credentials_exception))

    return CallerIdentity(
        user_id=token_data.user_id,
        email=token_data.email,
        roles=token_data.roles
    )

def require_admin(identity: CallerIdentity = Depends(get_current_identity)) -> CallerIdentity:
    """Require admin role for access"""
    if not identity.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return identity
