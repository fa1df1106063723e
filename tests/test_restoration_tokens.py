"""Unit tests for domicile.infra.auth.restoration_tokens."""

from __future__ import annotations

import string

import pytest

from domicile.infra.auth.restoration_tokens import MIN_TOKEN_BYTES, SecretsTokenGenerator


class TestSecretsTokenGenerator:
    @pytest.mark.unit
    def test_default_token_is_64_hex_chars(self) -> None:
        token = SecretsTokenGenerator().generate_token()
        assert len(token) == 64
        assert set(token) <= set(string.hexdigits.lower())

    @pytest.mark.unit
    def test_token_length_follows_byte_count(self) -> None:
        assert len(SecretsTokenGenerator(MIN_TOKEN_BYTES).generate_token()) == 32

    @pytest.mark.unit
    def test_tokens_are_unique(self) -> None:
        generator = SecretsTokenGenerator()
        assert len({generator.generate_token() for _ in range(200)}) == 200

    @pytest.mark.unit
    def test_rejects_weak_tokens(self) -> None:
        with pytest.raises(ValueError, match="at least 16"):
            SecretsTokenGenerator(8)
