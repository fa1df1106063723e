"""Unit tests for domicile.foundation.application.context."""

from __future__ import annotations

import asyncio

import pytest

from domicile.foundation.application import context
from domicile.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    clear_request_context,
    get_current_context,
    get_current_user_id,
    set_request_context,
)


class TestRequestContextLifecycle:
    @pytest.mark.unit
    def test_get_raises_when_no_context(self) -> None:
        with pytest.raises(NoRequestContextError):
            get_current_user_id()

    @pytest.mark.unit
    def test_set_get_clear_lifecycle(self) -> None:
        token = set_request_context("u-buyer", "corr-abc")
        try:
            assert get_current_context() == RequestContext("u-buyer", "corr-abc")
            assert get_current_user_id() == "u-buyer"
        finally:
            clear_request_context(token)

        with pytest.raises(NoRequestContextError):
            get_current_context()

    @pytest.mark.unit
    def test_anonymous_request(self) -> None:
        token = set_request_context(None, "corr-anon")
        try:
            assert get_current_user_id() is None
        finally:
            clear_request_context(token)

    @pytest.mark.unit
    def test_no_principal_state_is_kept(self) -> None:
        exported = {name for name in vars(context) if not name.startswith("_")}
        assert not {n for n in exported if "principal" in n}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self) -> None:
        async def handle(user_id: str) -> str | None:
            token = set_request_context(user_id, f"corr-{user_id}")
            try:
                await asyncio.sleep(0)
                return get_current_user_id()
            finally:
                clear_request_context(token)

        assert await asyncio.gather(handle("u-1"), handle("u-2")) == ["u-1", "u-2"]
