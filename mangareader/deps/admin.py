# mangareader/deps/admin.py
from fastapi import Depends, HTTPException, status

from mangareader.utils.token_utils import Identity, get_current_identity


async def require_user(identity: Identity = Depends(get_current_identity)) -> Identity:
    """
    Any holder of a valid, unexpired token.
    """
    return identity


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """
    Requires the token to carry role=admin.
    Raises 403 otherwise.
    """
    if not identity.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to access",
        )
    return identity
