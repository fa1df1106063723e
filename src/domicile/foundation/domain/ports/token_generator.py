"""Port interface for restoration token generation.

Restoration tokens are bearer credentials: anyone holding one may view the
snapshot and restore the listing. Implementations must draw at least 128
bits from a cryptographically secure source and return a URL-safe string.

Example:
    >>> from domicile.foundation.domain.ports import TokenGeneratorPort
    >>> def issue(gen: TokenGeneratorPort) -> str:
    ...     return gen.generate_token()
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenGeneratorPort(Protocol):
    """Port for issuing high-entropy restoration tokens.

    The protocol is runtime_checkable to enable isinstance() verification
    in tests and dependency injection validation.
    """

    def generate_token(self) -> str:
        """Generate a new unique, URL-safe restoration token."""
        ...
