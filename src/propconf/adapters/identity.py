# src/propconf/adapters/identity.py
from __future__ import annotations

import hmac

from propconf.adapters.config import config


class TokenIdentity:
    """Admin check against the bearer tokens listed in ADMIN_TOKENS."""

    def __init__(self, tokens: list[str] | None = None) -> None:
        self.tokens = list(tokens) if tokens is not None else config.admin_tokens

    def is_admin(self, credentials: str | None) -> bool:
        if not credentials:
            return False
        scheme, _, token = credentials.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return False
        token = token.strip()
        return any(hmac.compare_digest(token, t) for t in self.tokens)
