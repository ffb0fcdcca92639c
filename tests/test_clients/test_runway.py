"""Tests for RunwayClient and ratio conversion."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from adkit.clients.runway import RUNWAY_API_VERSION, RunwayClient, to_runway_ratio
from adkit.clients.types import VideoRequest
from adkit.exceptions import ProviderError, ProviderTimeoutError


def response(status_code=200, json_data=None, text=""):
    mock = Mock()
    mock.status_code = status_code
    mock.json.return_value = json_data or {}
    mock.text = text
    return mock


@pytest.fixture
def client():
    return RunwayClient(api_secret="rw-secret", poll_interval=0, max_attempts=3)


@pytest.fixture
def cinematic_request():
    return VideoRequest(
        image_url="https://cdn.example.com/hero.png",
        prompt="Cinematic: 夕暮れの街",
        aspect_ratio="16:9",
    )


class TestToRunwayRatio:
    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [("16:9", "1280:720"), ("9:16", "720:1280"), ("1:1", "960:960")],
    )
    def test_known_ratios(self, ratio, expected):
        assert to_runway_ratio(ratio) == expected

    def test_runway_notation_passes_through(self):
        assert to_runway_ratio("720:1280") == "720:1280"

    def test_unknown_defaults_to_landscape(self):
        assert to_runway_ratio("4:5") == "1280:720"


class TestRunwayClient:
    @pytest.mark.asyncio
    async def test_generate_success(self, client, cinematic_request):
        with (
            patch.object(client.client, "post", new_callable=AsyncMock) as mock_post,
            patch.object(client.client, "get", new_callable=AsyncMock) as mock_get,
        ):
            mock_post.return_value = response(json_data={"id": "task-7"})
            mock_get.side_effect = [
                response(json_data={"status": "RUNNING"}),
                response(json_data={"status": "SUCCEEDED", "output": ["https://runway.example/v.mp4"]}),
            ]

            output = await client.generate(cinematic_request)

        assert output.url == "https://runway.example/v.mp4"
        assert output.provider_id == "runway"
        assert output.job_id == "task-7"

        payload = mock_post.call_args.kwargs["json"]
        assert payload["model"] == "gen4_turbo"
        assert payload["ratio"] == "1280:720"
        assert payload["promptImage"] == "https://cdn.example.com/hero.png"
        headers = mock_post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer rw-secret"
        assert headers["X-Runway-Version"] == RUNWAY_API_VERSION
        assert mock_get.call_args.args[0].endswith("/tasks/task-7")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", ["FAILED", "CANCELLED"])
    async def test_terminal_failure_states(self, client, cinematic_request, state):
        with (
            patch.object(client.client, "post", new_callable=AsyncMock) as mock_post,
            patch.object(client.client, "get", new_callable=AsyncMock) as mock_get,
        ):
            mock_post.return_value = response(json_data={"id": "task-7"})
            mock_get.return_value = response(json_data={"status": state, "failure": "content policy"})

            with pytest.raises(ProviderError):
                await client.generate(cinematic_request)

        mock_get.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_succeeded_without_output(self, client, cinematic_request):
        with (
            patch.object(client.client, "post", new_callable=AsyncMock) as mock_post,
            patch.object(client.client, "get", new_callable=AsyncMock) as mock_get,
        ):
            mock_post.return_value = response(json_data={"id": "task-7"})
            mock_get.return_value = response(json_data={"status": "SUCCEEDED", "output": []})

            with pytest.raises(ProviderError, match="no output URL"):
                await client.generate(cinematic_request)

    @pytest.mark.asyncio
    async def test_submit_without_task_id(self, client, cinematic_request):
        with patch.object(client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = response(json_data={})

            with pytest.raises(ProviderError, match="task id"):
                await client.generate(cinematic_request)

    @pytest.mark.asyncio
    async def test_throttled_until_budget_exhausted(self, client, cinematic_request):
        with (
            patch.object(client.client, "post", new_callable=AsyncMock) as mock_post,
            patch.object(client.client, "get", new_callable=AsyncMock) as mock_get,
        ):
            mock_post.return_value = response(json_data={"id": "task-7"})
            mock_get.return_value = response(json_data={"status": "THROTTLED"})

            with pytest.raises(ProviderTimeoutError):
                await client.generate(cinematic_request)
