"""
Structured errors for the support chat API.

Every failure a client can see is a SupportChatError carrying a registry
code of the form SC-<DOMAIN>-<NNN>. The exception handler in
`supportchat.core.errors.middleware` renders it as the flat body the
widget reads: ``{"error": <safe message>, "code": <code>}``.

    raise SupportChatError("SC-LLM-002", detail="anthropic returned 429")
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

CODE_PATTERN = re.compile(r"^SC-(?P<domain>[A-Z]{2,6})-(?P<number>\d{3})$")


class SupportChatError(Exception):
    """An error tied to a registry code.

    `detail` and `context` go to the logs only; clients see the registry's
    safe message.
    """

    def __init__(
        self,
        code: str,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        match = CODE_PATTERN.match(code)
        if match is None:
            raise ValueError(f"Invalid error code format: {code!r}")
        self.code = code
        self.domain = match.group("domain")
        self.detail = detail
        self.context = dict(context or {})
        super().__init__(code if detail is None else f"{code}: {detail}")
