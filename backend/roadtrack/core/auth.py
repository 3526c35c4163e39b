"""Authentication stand-in.

Roadmaps are owned by a user id, but issuing and checking credentials is
handled outside this service. Until a gateway forwards the caller's
identity, every request acts as the guest user.
"""

from typing import Annotated

from fastapi import Depends, Request

# Default guest user - owns every roadmap created without a real identity
DEFAULT_USER_ID = 1


def get_auth_user(request: Request) -> int:
    """Return the user id the current HTTP request acts on behalf of.

    Args:
        request: HTTP request object (injected by FastAPI)

    Returns:
        User ID (int)
    """
    return DEFAULT_USER_ID


# Type alias for FastAPI dependency
CurrentUserDep = Annotated[int, Depends(get_auth_user)]
