"""
Widget access check.

When `SUPPORTCHAT_WIDGET_KEY` is set, every widget-facing endpoint requires
`Authorization: Bearer <widget_key>`. When it is unset the endpoints are open.
"""

import hmac
from typing import Optional

from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from supportchat.config import settings
from supportchat.core.errors import SupportChatError

bearer_scheme = HTTPBearer(auto_error=False)


async def verify_widget_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> None:
    """FastAPI dependency: raise SC-API-002 unless the bearer token matches."""
    expected = settings.widget_key
    if not expected:
        return
    if credentials is None:
        raise SupportChatError("SC-API-002", detail="missing bearer token")
    if not hmac.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise SupportChatError("SC-API-002", detail="widget key mismatch")
