from __future__ import annotations

import secrets
from typing import Protocol

from ..core.constants import TOKEN_NBYTES


class TokenGenerator(Protocol):
    def __call__(self) -> str:
        raise NotImplementedError


def generate_token(nbytes: int = TOKEN_NBYTES) -> str:
    """Unguessable URL-safe session token."""
    return secrets.token_urlsafe(nbytes)
