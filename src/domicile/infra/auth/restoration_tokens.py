"""Restoration token generation.

Separated from the domain layer because randomness is an infrastructure
concern. Implements TokenGeneratorPort from
domicile.foundation.domain.ports.
"""

from __future__ import annotations

import secrets

# At least 128 bits of entropy
MIN_TOKEN_BYTES = 16
DEFAULT_TOKEN_BYTES = 32


class SecretsTokenGenerator:
    """Hex-encoded token generator backed by :mod:`secrets`.

    Hex output is URL-safe. The default 32 bytes give 256 bits of entropy
    and a 64-character token.

    Example:
        >>> len(SecretsTokenGenerator().generate_token())
        64
    """

    def __init__(self, token_bytes: int = DEFAULT_TOKEN_BYTES) -> None:
        if token_bytes < MIN_TOKEN_BYTES:
            msg = f"token_bytes must be at least {MIN_TOKEN_BYTES}, got {token_bytes}"
            raise ValueError(msg)
        self._token_bytes = token_bytes

    def generate_token(self) -> str:
        return secrets.token_hex(self._token_bytes)
