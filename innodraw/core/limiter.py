# innodraw/core/limiter.py
from slowapi import Limiter
from slowapi.util import get_remote_address
from innodraw.core.config import settings

# Each workspace belongs to the caller named by this header.
WORKSPACE_OWNER_HEADER = "x-user-id"

# Generation fans out to one artwork call per component, so it gets the tighter budget.
GENERATION_LIMIT = settings.GENERATION_RATE_LIMIT
CHAT_MESSAGE_LIMIT = settings.CHAT_MESSAGE_RATE_LIMIT

def workspace_owner_key(request) -> str:
    """Rate-limit per workspace owner; requests without the header share their client address."""
    return request.headers.get(WORKSPACE_OWNER_HEADER) or get_remote_address(request)

limiter = Limiter(
    key_func=workspace_owner_key,
    storage_uri=settings.LIMITER_STORAGE_URI,
    strategy="fixed-window"
)
