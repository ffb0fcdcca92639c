"""Tests for ElevenLabsClient."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from adkit.clients.elevenlabs import ElevenLabsClient, estimate_mp3_duration
from adkit.clients.types import VoiceoverRequest
from adkit.exceptions import ConfigurationError, ProviderError


@pytest.fixture
def client():
    return ElevenLabsClient(api_key="xi-key", voice_id="voice-default")


def test_estimate_mp3_duration():
    assert estimate_mp3_duration(b"\x00" * 160_000) == 10
    assert estimate_mp3_duration(b"") == 0


class TestElevenLabsClient:
    @pytest.mark.asyncio
    async def test_generate_success(self, client):
        audio = b"\xff\xfb" * 24_000
        with patch.object(client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = Mock(status_code=200, content=audio)

            output = await client.generate(VoiceoverRequest(text="毎日をもっとおいしく。"))

        assert output.content == audio
        assert output.mime_type == "audio/mpeg"
        assert output.duration_seconds == 3.0
        assert output.url is None

        url = mock_post.call_args.args[0]
        assert url.endswith("/v1/text-to-speech/voice-default")
        assert mock_post.call_args.kwargs["headers"]["xi-api-key"] == "xi-key"
        assert mock_post.call_args.kwargs["json"]["language_code"] == "ja"
        assert mock_post.call_args.kwargs["params"] == {"output_format": "mp3_44100_128"}

    @pytest.mark.asyncio
    async def test_request_voice_overrides_default(self, client):
        with patch.object(client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = Mock(status_code=200, content=b"mp3")

            await client.generate(VoiceoverRequest(text="テスト", voice_id="voice-override"))

        assert mock_post.call_args.args[0].endswith("/voice-override")

    @pytest.mark.asyncio
    async def test_http_error(self, client):
        with patch.object(client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = Mock(status_code=429, text="too many requests")

            with pytest.raises(ProviderError, match="429"):
                await client.generate(VoiceoverRequest(text="テスト"))

    @pytest.mark.asyncio
    async def test_network_error(self, client):
        with patch.object(client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = httpx.ConnectError("Connection failed")

            with pytest.raises(ProviderError, match="request failed"):
                await client.generate(VoiceoverRequest(text="テスト"))

    @pytest.mark.asyncio
    async def test_empty_audio(self, client):
        with patch.object(client.client, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = Mock(status_code=200, content=b"")

            with pytest.raises(ProviderError, match="empty audio"):
                await client.generate(VoiceoverRequest(text="テスト"))

    @pytest.mark.asyncio
    async def test_missing_voice_id(self, monkeypatch):
        monkeypatch.delenv("ELEVENLABS_VOICE_ID_JP_FEMALE", raising=False)
        client = ElevenLabsClient(api_key="xi-key")

        with pytest.raises(ConfigurationError, match="ELEVENLABS_VOICE_ID_JP_FEMALE"):
            await client.generate(VoiceoverRequest(text="テスト"))
