"""Tests for the bounded provider poll loop."""

from unittest.mock import AsyncMock, patch

import pytest

from adkit.clients.polling import poll_until_complete
from adkit.exceptions import ProviderError, ProviderTimeoutError


class TestPollUntilComplete:
    @pytest.mark.asyncio
    async def test_returns_first_non_none_result(self):
        check = AsyncMock(side_effect=[None, None, "https://cdn.example.com/v.mp4"])

        result = await poll_until_complete("kling", "req-1", check, 0, 10)

        assert result == "https://cdn.example.com/v.mp4"
        assert check.await_count == 3

    @pytest.mark.asyncio
    async def test_exhaustion_raises_timeout(self):
        check = AsyncMock(return_value=None)

        with pytest.raises(ProviderTimeoutError) as exc_info:
            await poll_until_complete("heygen", "vid-9", check, 0, 4)

        assert check.await_count == 4
        assert exc_info.value.provider_id == "heygen"
        assert exc_info.value.job_id == "vid-9"

    @pytest.mark.asyncio
    async def test_terminal_failure_stops_loop(self):
        check = AsyncMock(side_effect=[None, ProviderError("runway", "task FAILED"), "unused"])

        with pytest.raises(ProviderError, match="task FAILED"):
            await poll_until_complete("runway", "task-1", check, 0, 10)

        assert check.await_count == 2

    @pytest.mark.asyncio
    async def test_sleeps_fixed_interval_before_each_check(self):
        check = AsyncMock(side_effect=[None, "done"])

        with patch("adkit.clients.polling.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await poll_until_complete("kling", "req-1", check, 5.0, 60)

        assert [call.args[0] for call in mock_sleep.await_args_list] == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_timeout_reports_total_wait(self):
        check = AsyncMock(return_value=None)

        with patch("adkit.clients.polling.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(ProviderTimeoutError, match="300s"):
                await poll_until_complete("kling", "req-1", check, 5.0, 60)
