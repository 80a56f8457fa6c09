import base64
import binascii
import io
import logging
import threading
import wave
from dataclasses import dataclass
from typing import Optional

import numpy as np
from openai import OpenAI

from latelier.errors import SpeechServiceError

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
PLAYING = "playing"


class AudioClip:
    """Mono float32 samples in [-1, 1] at a fixed sample rate."""

    def __init__(self, samples, sample_rate):
        self.samples = samples
        self.sample_rate = sample_rate

    @property
    def frame_count(self):
        return int(self.samples.shape[0])

    @property
    def duration(self):
        if not self.sample_rate:
            return 0.0
        return self.frame_count / float(self.sample_rate)

    def to_wav(self):
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(self.sample_rate)
            pcm16 = np.clip(np.round(self.samples * 32768.0), -32768, 32767).astype("<i2")
            wf.writeframes(pcm16.tobytes())
        return buf.getvalue()


def decode_pcm16(b64_audio, sample_rate=24000):
    """base64 -> little-endian int16 -> float32 normalised by 32768."""
    try:
        raw = base64.b64decode(b64_audio, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SpeechServiceError(f"Audio payload is not valid base64: {e}") from e
    if len(raw) % 2:
        raw = raw[:-1]
    samples = np.frombuffer(raw, dtype="<i2").astype(np.float32) / 32768.0
    return AudioClip(samples, sample_rate)


class SpeechClient:
    def __init__(self, api_key, base_url, model, voice, sample_rate=24000, client=None):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.voice = voice
        self.sample_rate = sample_rate
        self._client = client

    @classmethod
    def from_config(cls, cfg, client=None):
        return cls(
            cfg.OPENAI_API_KEY,
            cfg.OPENAI_BASE_URL,
            cfg.TTS_MODEL_ID,
            cfg.TTS_VOICE,
            sample_rate=cfg.TTS_SAMPLE_RATE,
            client=client,
        )

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise SpeechServiceError("openai_api_key_missing")
            self._client = OpenAI(base_url=self.base_url, api_key=self.api_key)
        return self._client

    def request_audio(self, text):
        """Return the synthesised speech for ``text`` as base64 PCM16."""
        try:
            response = self.client.audio.speech.create(
                model=self.model,
                voice=self.voice,
                input=text,
                instructions="Say clearly in French.",
                response_format="pcm",
            )
            audio_bytes = response.read() if hasattr(response, "read") else response
        except SpeechServiceError:
            raise
        except Exception as e:
            logger.error("Speech error: %s", e)
            raise SpeechServiceError(str(e) or "Speech request failed") from e
        if not audio_bytes:
            raise SpeechServiceError("No audio data received from the AI model.")
        return base64.b64encode(audio_bytes).decode("ascii")

    def synthesize(self, text):
        return decode_pcm16(self.request_audio(text), self.sample_rate)


@dataclass(frozen=True)
class PlaybackState:
    phase: str = IDLE
    text: Optional[str] = None


@dataclass(frozen=True)
class Playback:
    text: str
    clip: AudioClip
    rate: float


class PlaybackController:
    """Single audio output slot shared by every speech button.

    Several texts may be loading at once; only the most recent request may
    take the slot when its audio arrives.
    """

    def __init__(self, speech_client):
        self.speech_client = speech_client
        self._lock = threading.Lock()
        self._state = PlaybackState()
        self._loading = {}
        self._ticket = 0
        self._current = None

    @property
    def state(self):
        return self._state

    @property
    def current(self):
        return self._current

    def is_loading(self, text):
        return text in self._loading

    def speak(self, text, speed=1.0):
        """Toggle or start playback of ``text``.

        Returns the new Playback when audio starts, otherwise None (stopped,
        already loading, or superseded by a newer request).
        """
        with self._lock:
            if self._state.phase == PLAYING and self._state.text == text:
                self._stop_locked()
                return None
            if text in self._loading:
                return None
            if self._state.phase == PLAYING:
                self._stop_locked()
            self._ticket += 1
            ticket = self._ticket
            self._loading[text] = ticket
            self._state = PlaybackState(LOADING, text)

        try:
            clip = self.speech_client.synthesize(text)
        except Exception:
            with self._lock:
                self._loading.pop(text, None)
                self._settle_locked()
            raise

        with self._lock:
            self._loading.pop(text, None)
            if ticket != self._ticket:
                logger.info("Discarding superseded speech for %r", text[:40])
                self._settle_locked()
                return None
            self._current = Playback(text=text, clip=clip, rate=speed)
            self._state = PlaybackState(PLAYING, text)
            return self._current

    def finished(self, text):
        with self._lock:
            if self._state.phase == PLAYING and self._state.text == text:
                self._stop_locked()
                return True
            return False

    def stop(self):
        with self._lock:
            if self._state.phase == PLAYING:
                self._stop_locked()

    def snapshot(self):
        with self._lock:
            state = self._state
            return {
                "phase": state.phase,
                "text": state.text,
                "loading": sorted(self._loading, key=self._loading.get),
                "rate": self._current.rate if self._current else None,
            }

    def _stop_locked(self):
        self._current = None
        self._settle_locked(stopping=True)

    def _settle_locked(self, stopping=False):
        if self._state.phase == PLAYING and not stopping:
            return
        if self._loading:
            newest = max(self._loading, key=self._loading.get)
            self._state = PlaybackState(LOADING, newest)
        else:
            self._state = PlaybackState()
