"""
Unit tests for TransactionRegistry resolve/expire exactly-once delivery.

Uses the real event loop with short timeouts; no sockets.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from custom_components.lightwaverf.device_abstraction.comms.registry import (
    TransactionRegistry,
)
from custom_components.lightwaverf.device_abstraction.comms.results import (
    CommandResult,
    DuplicateTransactionError,
    ResultStatus,
)


def _ok(transaction_id: int) -> CommandResult:
    return CommandResult(ResultStatus.OK, transaction_id=transaction_id, content="OK")


class TestResolve:

    @pytest.mark.asyncio
    async def test_resolve_delivers_once_and_cancels_timeout(self):
        registry = TransactionRegistry()
        completion = MagicMock()
        registry.register(7, completion, timeout=0.05)

        assert registry.resolve(7, _ok(7)) is True
        await asyncio.sleep(0.1)

        completion.assert_called_once()
        assert completion.call_args[0][0].status is ResultStatus.OK
        assert not registry.is_pending(7)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_unknown_id_is_ignored(self):
        registry = TransactionRegistry()
        assert registry.resolve(99, _ok(99)) is False

    @pytest.mark.asyncio
    async def test_second_resolve_is_noop(self):
        registry = TransactionRegistry()
        completion = MagicMock()
        registry.register(1, completion, timeout=1.0)

        assert registry.resolve(1, _ok(1)) is True
        assert registry.resolve(1, _ok(1)) is False
        completion.assert_called_once()

    @pytest.mark.asyncio
    async def test_duplicate_pending_id_rejected(self):
        registry = TransactionRegistry()
        registry.register(3, MagicMock(), timeout=1.0)

        with pytest.raises(DuplicateTransactionError):
            registry.register(3, MagicMock(), timeout=1.0)
        registry.close()

    @pytest.mark.asyncio
    async def test_id_reusable_after_resolution(self):
        registry = TransactionRegistry()
        registry.register(3, MagicMock(), timeout=1.0)
        registry.resolve(3, _ok(3))

        registry.register(3, MagicMock(), timeout=1.0)
        assert registry.is_pending(3)
        registry.close()


class TestExpire:

    @pytest.mark.asyncio
    async def test_timeout_delivers_timeout_result(self):
        registry = TransactionRegistry()
        completion = MagicMock()
        registry.register(5, completion, timeout=0.05)

        await asyncio.sleep(0.1)

        completion.assert_called_once()
        result = completion.call_args[0][0]
        assert result.status is ResultStatus.TIMEOUT
        assert result.transaction_id == 5
        assert not result.ok

    @pytest.mark.asyncio
    async def test_late_response_after_timeout_is_discarded(self):
        registry = TransactionRegistry()
        completion = MagicMock()
        registry.register(5, completion, timeout=0.02)
        await asyncio.sleep(0.05)

        assert registry.resolve(5, _ok(5)) is False
        completion.assert_called_once()

    @pytest.mark.asyncio
    async def test_expire_after_resolve_is_noop(self):
        registry = TransactionRegistry()
        completion = MagicMock()
        registry.register(2, completion, timeout=1.0)
        registry.resolve(2, _ok(2))

        registry.expire(2)
        completion.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_expires_everything(self):
        registry = TransactionRegistry()
        completions = [MagicMock() for _ in range(3)]
        for i, completion in enumerate(completions):
            registry.register(i, completion, timeout=10.0)

        registry.close()

        assert len(registry) == 0
        for completion in completions:
            completion.assert_called_once()
            assert completion.call_args[0][0].status is ResultStatus.TIMEOUT


class TestCompletionErrors:

    @pytest.mark.asyncio
    async def test_failing_completion_does_not_break_registry(self):
        registry = TransactionRegistry()
        registry.register(1, MagicMock(side_effect=RuntimeError("boom")), timeout=1.0)
        other = MagicMock()
        registry.register(2, other, timeout=1.0)

        assert registry.resolve(1, _ok(1)) is True
        assert registry.resolve(2, _ok(2)) is True
        other.assert_called_once()
