"""
Audio Preprocessor - Decoding and normalization for the recognizer.

Converts any supported input to 16kHz mono PCM16, optionally applying
band-pass filtering and gain normalization.

WAV input is decoded in-process. Other containers (mp3, flac, ogg, webm)
are transcoded with ffmpeg through temporary files that live in a
per-call temporary directory, removed on every exit path.

Usage:
    from voice_translator.services.audio.preprocessor import AudioPreprocessor

    preprocessor = AudioPreprocessor()
    decoded = await preprocessor.decode(audio_bytes, "mp3")
    normalized = preprocessor.normalize_decoded(decoded, enhance=True)
"""

import asyncio
import io
import logging
import os
import tempfile
import wave
from dataclasses import dataclass
from typing import Optional

import numpy as np

from voice_translator.config.constants import (
    AUDIO_BYTES_PER_SAMPLE,
    AUDIO_CHANNELS,
    AUDIO_SAMPLE_RATE,
    FFMPEG_BINARY,
    FFMPEG_TIMEOUT_SEC,
    GAIN_NORMALIZE_PEAK,
    HIGHPASS_CUTOFF_HZ,
    LOWPASS_CUTOFF_HZ,
)
from voice_translator.services.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedAudio:
    """Float32 waveform in [-1, 1], shape (frames,) for mono or (frames, channels)."""
    samples: np.ndarray
    sample_rate: int

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.samples.shape[0] / float(self.sample_rate)


@dataclass(frozen=True)
class NormalizedAudio:
    """PCM16 audio in the layout the recognizer expects."""
    pcm: bytes
    sample_rate: int = AUDIO_SAMPLE_RATE
    channels: int = AUDIO_CHANNELS
    sample_width: int = AUDIO_BYTES_PER_SAMPLE

    @property
    def duration_seconds(self) -> float:
        return len(self.pcm) / float(self.sample_rate * self.channels * self.sample_width)


def decode_wav(audio_bytes: bytes) -> DecodedAudio:
    """
    Decode a WAV buffer into a float waveform.

    Supports 8, 16, 24 and 32 bit integer PCM.

    Raises:
        InvalidInputError: if the buffer is not readable WAV
    """
    try:
        with wave.open(io.BytesIO(audio_bytes), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            frames = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError) as e:
        raise InvalidInputError(f"Malformed WAV data: {e}") from e

    if width == 1:
        data = (np.frombuffer(frames, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    elif width == 2:
        data = np.frombuffer(frames, dtype="<i2").astype(np.float32) / 32768.0
    elif width == 3:
        raw = np.frombuffer(frames, dtype=np.uint8).reshape(-1, 3)
        ints = (
            raw[:, 0].astype(np.int32)
            | (raw[:, 1].astype(np.int32) << 8)
            | (raw[:, 2].astype(np.int32) << 16)
        )
        ints = np.where(ints & 0x800000, ints - 0x1000000, ints)
        data = ints.astype(np.float32) / 8388608.0
    elif width == 4:
        data = np.frombuffer(frames, dtype="<i4").astype(np.float32) / 2147483648.0
    else:
        raise InvalidInputError(f"Unsupported WAV sample width: {width} bytes")

    if channels > 1:
        usable = (data.shape[0] // channels) * channels
        data = data[:usable].reshape(-1, channels)

    return DecodedAudio(samples=data, sample_rate=rate)


def encode_wav(pcm: bytes, sample_rate: int, channels: int = 1, sample_width: int = 2) -> bytes:
    """Wrap raw PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


class AudioPreprocessor:
    """
    Normalizes audio to the recognizer's sample rate, channel count and
    bit depth.

    Args:
        sample_rate: Output sample rate (default: 16000)
        work_dir: Parent directory for transient transcode files
                  (default: system temp directory)
        ffmpeg_binary: ffmpeg executable used for non-WAV containers
    """

    def __init__(
        self,
        sample_rate: int = AUDIO_SAMPLE_RATE,
        work_dir: Optional[str] = None,
        ffmpeg_binary: str = FFMPEG_BINARY,
        ffmpeg_timeout: float = FFMPEG_TIMEOUT_SEC,
    ):
        self.sample_rate = sample_rate
        self.work_dir = work_dir
        self.ffmpeg_binary = ffmpeg_binary
        self.ffmpeg_timeout = ffmpeg_timeout

    async def decode(self, audio_bytes: bytes, audio_format: str = "wav") -> DecodedAudio:
        """Decode any supported container into a float waveform."""
        fmt = audio_format.lower().lstrip(".")
        if fmt == "wav":
            return decode_wav(bytes(audio_bytes))
        return decode_wav(await self._transcode_to_wav(bytes(audio_bytes), fmt))

    async def normalize(
        self,
        audio_bytes: bytes,
        audio_format: str = "wav",
        enhance: bool = True,
    ) -> NormalizedAudio:
        """Decode and normalize in one step."""
        decoded = await self.decode(audio_bytes, audio_format)
        return self.normalize_decoded(decoded, enhance=enhance)

    def normalize_decoded(self, decoded: DecodedAudio, enhance: bool = True) -> NormalizedAudio:
        """
        Convert a decoded waveform to mono PCM16 at the target rate.

        Args:
            decoded: Waveform from decode()
            enhance: Apply band-pass filtering and gain normalization

        Returns:
            NormalizedAudio
        """
        samples = decoded.samples
        if samples.ndim > 1:
            samples = samples.mean(axis=1)

        if samples.size == 0:
            raise InvalidInputError("Audio contains no samples")

        samples = self._resample(samples, decoded.sample_rate, self.sample_rate)

        if enhance:
            samples = self._band_pass(samples, self.sample_rate)
            samples = self._normalize_gain(samples)

        pcm = (np.clip(samples, -1.0, 1.0) * 32767.0).astype("<i2").tobytes()
        logger.debug(
            f"[AudioPreprocessor] normalized {decoded.duration_seconds:.2f}s "
            f"@ {decoded.sample_rate}Hz -> {len(pcm)} bytes @ {self.sample_rate}Hz "
            f"(enhance={enhance})"
        )
        return NormalizedAudio(pcm=pcm, sample_rate=self.sample_rate)

    @staticmethod
    def _resample(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
        if src_rate == dst_rate or samples.size < 2:
            return samples.astype(np.float32)
        duration = samples.size / float(src_rate)
        dst_len = max(1, int(round(duration * dst_rate)))
        src_times = np.arange(samples.size) / float(src_rate)
        dst_times = np.arange(dst_len) / float(dst_rate)
        return np.interp(dst_times, src_times, samples).astype(np.float32)

    @staticmethod
    def _band_pass(samples: np.ndarray, sample_rate: int) -> np.ndarray:
        spectrum = np.fft.rfft(samples)
        freqs = np.fft.rfftfreq(samples.size, 1.0 / sample_rate)
        high = min(LOWPASS_CUTOFF_HZ, sample_rate / 2.0)
        mask = (freqs >= HIGHPASS_CUTOFF_HZ) & (freqs <= high)
        return np.fft.irfft(spectrum * mask, n=samples.size).astype(np.float32)

    @staticmethod
    def _normalize_gain(samples: np.ndarray) -> np.ndarray:
        peak = float(np.max(np.abs(samples))) if samples.size else 0.0
        if peak <= 1e-6:
            return samples
        return (samples * (GAIN_NORMALIZE_PEAK / peak)).astype(np.float32)

    async def _transcode_to_wav(self, audio_bytes: bytes, audio_format: str) -> bytes:
        """Run ffmpeg on a temporary copy of the input; files never outlive the call."""
        with tempfile.TemporaryDirectory(prefix="voice_", dir=self.work_dir) as tmp:
            input_path = os.path.join(tmp, f"input.{audio_format}")
            output_path = os.path.join(tmp, "output.wav")
            with open(input_path, "wb") as f:
                f.write(audio_bytes)

            try:
                proc = await asyncio.create_subprocess_exec(
                    self.ffmpeg_binary, "-y", "-loglevel", "error",
                    "-i", input_path,
                    "-acodec", "pcm_s16le",
                    "-ar", str(self.sample_rate),
                    "-ac", str(AUDIO_CHANNELS),
                    output_path,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise InvalidInputError(
                    f"Cannot decode {audio_format}: {self.ffmpeg_binary} is not installed"
                ) from e

            try:
                _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.ffmpeg_timeout)
            except asyncio.TimeoutError as e:
                proc.kill()
                await proc.wait()
                raise InvalidInputError(f"Decoding {audio_format} audio timed out") from e

            if proc.returncode != 0 or not os.path.exists(output_path):
                message = (stderr or b"").decode("utf-8", "replace").strip()[:200]
                logger.warning(f"[AudioPreprocessor] ffmpeg failed ({proc.returncode}): {message}")
                raise InvalidInputError(f"Cannot decode {audio_format} audio: {message}")

            with open(output_path, "rb") as f:
                return f.read()
