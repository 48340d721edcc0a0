"""Tests for SoundDeviceRecorder."""

from __future__ import annotations

import asyncio
import io
import wave
from unittest.mock import MagicMock, patch

import pytest

from errors import PERMISSION_DENIED, CaptureError
from models import AudioFrame
from recorder import SoundDeviceRecorder, frames_to_wav


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

class _FakeNp:
    """Minimal numpy stand-in so recorder._on_audio doesn't bail."""

    class int16:
        pass

    @staticmethod
    def asarray(data, dtype=None):
        return data


class _FakeAudioInput:
    """Fake audio input similar to what sounddevice callback provides."""

    def __init__(self, n_samples: int = 1600) -> None:
        self._data = b"\x01\x00" * n_samples

    def tobytes(self) -> bytes:
        return self._data


def _read_wav(data: bytes) -> tuple[int, int, bytes]:
    with wave.open(io.BytesIO(data), "rb") as wf:
        return wf.getframerate(), wf.getnchannels(), wf.readframes(wf.getnframes())


# ---------------------------------------------------------------
# frames_to_wav
# ---------------------------------------------------------------

def test_frames_to_wav_concatenates_chunks() -> None:
    frames = [AudioFrame(b"\x00\x00" * 10), AudioFrame(b"\x01\x00" * 5)]
    rate, channels, pcm = _read_wav(frames_to_wav(frames))

    assert rate == 16000
    assert channels == 1
    assert pcm == b"\x00\x00" * 10 + b"\x01\x00" * 5


# ---------------------------------------------------------------
# Start / stop
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_start_opens_stream_and_stop_releases_it(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_sd.InputStream.return_value = mock_stream
    recorder = SoundDeviceRecorder()

    async def scenario():
        await recorder.start()
        assert recorder.running is True
        return await recorder.stop()

    clip = asyncio.run(scenario())

    mock_sd.InputStream.assert_called_once()
    mock_stream.start.assert_called_once()
    mock_stream.stop.assert_called_once()
    mock_stream.close.assert_called_once()
    assert recorder.running is False
    assert clip.is_empty
    assert clip.media_type == "audio/wav"


@patch("recorder.sd")
def test_start_is_idempotent(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    recorder = SoundDeviceRecorder()

    async def scenario():
        await recorder.start()
        await recorder.start()
        await recorder.stop()

    asyncio.run(scenario())
    assert mock_sd.InputStream.call_count == 1


@patch("recorder.sd")
def test_stop_without_start_returns_empty_clip(mock_sd: MagicMock) -> None:
    clip = asyncio.run(SoundDeviceRecorder().stop())
    assert clip.is_empty
    mock_sd.InputStream.assert_not_called()


@patch("recorder.np", _FakeNp())
@patch("recorder.sd")
def test_buffered_chunks_end_up_in_clip(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    recorder = SoundDeviceRecorder(sample_rate=16000, channels=1, chunk_ms=100)

    async def scenario():
        await recorder.start()
        recorder._on_audio(_FakeAudioInput(1600), frames=1600, time_info=None, status=None)
        recorder._on_audio(_FakeAudioInput(1600), frames=1600, time_info=None, status=None)
        return await recorder.stop()

    clip = asyncio.run(scenario())

    assert clip.chunks == 2
    _, _, pcm = _read_wav(clip.data)
    assert len(pcm) == 2 * 1600 * 2


@patch("recorder.np", _FakeNp())
@patch("recorder.sd")
def test_callback_after_stop_is_noop(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    recorder = SoundDeviceRecorder()

    async def scenario():
        await recorder.start()
        await recorder.stop()
        recorder._on_audio(_FakeAudioInput(), frames=1600, time_info=None, status=None)
        return await recorder.stop()

    clip = asyncio.run(scenario())
    assert clip.is_empty


# ---------------------------------------------------------------
# Device failures
# ---------------------------------------------------------------

def test_start_raises_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    import recorder as rec_mod
    monkeypatch.setattr(rec_mod, "sd", None)

    with pytest.raises(CaptureError, match="sounddevice is not installed"):
        asyncio.run(SoundDeviceRecorder().start())


@patch("recorder.sd")
def test_device_open_failure_maps_to_permission_error(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_stream.start.side_effect = OSError("Device unavailable")
    mock_sd.InputStream.return_value = mock_stream
    recorder = SoundDeviceRecorder()

    with pytest.raises(CaptureError) as info:
        asyncio.run(recorder.start())

    assert info.value.code == PERMISSION_DENIED
    assert recorder.running is False
    mock_stream.close.assert_called_once()
