"""
Translation Models

Data classes passed between the pipeline stages, the task queue and
the callers. Results are serialized to plain dicts before they are
cached, so cache entries are always copies and never aliases.
"""
import asyncio
import base64
import hashlib
import json
import time
import uuid
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from voice_translator.config.constants import AUTO_LANGUAGE


def _b64encode(data: Optional[bytes]) -> Optional[str]:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _b64decode(data: Optional[str]) -> Optional[bytes]:
    if data is None:
        return None
    return base64.b64decode(data)


class TaskState(str, Enum):
    """Lifecycle of a translation task."""
    SUBMITTED = "submitted"
    QUEUED = "queued"
    RUNNING = "running"
    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class VoiceOptions:
    """
    Per-request processing options.

    Attributes:
        voice_type: SSML gender of the synthesized voice (NEUTRAL, MALE, FEMALE)
        voice_name: Explicit provider voice; defaults to the language's voice
        speaking_rate: Synthesis speaking rate (1.0 = normal)
        pitch: Synthesis pitch offset in semitones
        enhance_audio: Apply band-pass filtering and gain normalization
        synthesize: Produce target-language audio
        audio_format: Declared container of the input audio
    """
    voice_type: str = "NEUTRAL"
    voice_name: Optional[str] = None
    speaking_rate: float = 1.0
    pitch: float = 0.0
    enhance_audio: bool = True
    synthesize: bool = True
    audio_format: str = "wav"

    def voice_options_hash(self) -> str:
        """Hash of the fields that change synthesized audio."""
        payload = json.dumps(
            {
                "voice_type": self.voice_type,
                "voice_name": self.voice_name,
                "speaking_rate": self.speaking_rate,
                "pitch": self.pitch,
            },
            sort_keys=True,
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class WordTiming:
    word: str
    start: float
    end: float


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    confidence: float
    detected_language: str
    word_timings: Tuple[WordTiming, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionResult":
        return cls(
            text=data["text"],
            confidence=float(data.get("confidence", 0.0)),
            detected_language=data.get("detected_language", ""),
            word_timings=tuple(WordTiming(**w) for w in data.get("word_timings", [])),
        )


@dataclass(frozen=True)
class TranslationResult:
    text: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationResult":
        return cls(text=data["text"], confidence=float(data.get("confidence", 0.0)))


@dataclass(frozen=True)
class SynthesisResult:
    audio: bytes
    encoding: str
    sample_rate: int
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "audio": _b64encode(self.audio),
            "encoding": self.encoding,
            "sample_rate": self.sample_rate,
            "duration_seconds": self.duration_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SynthesisResult":
        return cls(
            audio=_b64decode(data["audio"]) or b"",
            encoding=data["encoding"],
            sample_rate=int(data["sample_rate"]),
            duration_seconds=float(data.get("duration_seconds", 0.0)),
        )


@dataclass(frozen=True)
class LanguageResult:
    """
    Outcome for one target language.

    Attributes:
        target_language: Target language code
        translated_text: Translated text (None if translation failed)
        confidence: Translation confidence
        synthesized_audio: Synthesized audio (None if skipped or failed)
        audio_encoding: Encoding of synthesized_audio
        error: Error annotation when translation or synthesis failed
    """
    target_language: str
    translated_text: Optional[str] = None
    confidence: float = 0.0
    synthesized_audio: Optional[bytes] = None
    audio_encoding: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.translated_text is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["synthesized_audio"] = _b64encode(self.synthesized_audio)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LanguageResult":
        return cls(
            target_language=data["target_language"],
            translated_text=data.get("translated_text"),
            confidence=float(data.get("confidence", 0.0)),
            synthesized_audio=_b64decode(data.get("synthesized_audio")),
            audio_encoding=data.get("audio_encoding"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class PipelineResult:
    """End-to-end outcome of one translation request."""
    task_id: str
    original_text: str
    source_language: str
    detected_language: str
    translations: Dict[str, LanguageResult]
    quality_score: float
    processing_time_ms: float
    timestamp: float = field(default_factory=time.time)
    from_cache: bool = False

    @property
    def target_language(self) -> Optional[str]:
        return next(iter(self.translations), None)

    @property
    def translated_text(self) -> Optional[str]:
        """Translated text of the first target language."""
        first = self.target_language
        return self.translations[first].translated_text if first else None

    @property
    def synthesized_audio(self) -> Optional[bytes]:
        first = self.target_language
        return self.translations[first].synthesized_audio if first else None

    @property
    def succeeded_languages(self) -> Tuple[str, ...]:
        return tuple(lang for lang, r in self.translations.items() if r.ok and not r.error)

    @property
    def failed_languages(self) -> Tuple[str, ...]:
        return tuple(lang for lang, r in self.translations.items() if r.error)

    def cache_entry(self, target_language: str) -> Dict[str, Any]:
        """Serialized per-target entry for the whole-pipeline cache."""
        return {
            "original_text": self.original_text,
            "detected_language": self.detected_language,
            "quality_score": self.quality_score,
            "processing_time_ms": self.processing_time_ms,
            "translation": self.translations[target_language].to_dict(),
        }

    @classmethod
    def from_cache_entries(
        cls,
        task_id: str,
        source_language: str,
        entries: Dict[str, Dict[str, Any]],
    ) -> "PipelineResult":
        """Assemble a result from per-target cache entries (all targets present)."""
        first = next(iter(entries.values()))
        return cls(
            task_id=task_id,
            original_text=first["original_text"],
            source_language=source_language,
            detected_language=first["detected_language"],
            translations={
                lang: LanguageResult.from_dict(entry["translation"])
                for lang, entry in entries.items()
            },
            quality_score=float(first["quality_score"]),
            processing_time_ms=float(first["processing_time_ms"]),
            from_cache=True,
        )


@dataclass(eq=False)
class TranslationTask:
    """
    A queued translation request.

    The request fields are never changed after creation; only `state`
    and the outcome attached to `future` are.
    """
    audio_bytes: bytes
    source_language: str
    target_languages: Tuple[str, ...]
    options: VoiceOptions = field(default_factory=VoiceOptions)
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    submitted_at: float = field(default_factory=time.time)
    state: TaskState = TaskState.SUBMITTED
    future: Optional[asyncio.Future] = None
    audio_hash: str = field(init=False)

    def __post_init__(self):
        self.target_languages = tuple(self.target_languages)
        self.audio_hash = hashlib.sha256(self.audio_bytes).hexdigest()

    @property
    def auto_detect(self) -> bool:
        return self.source_language == AUTO_LANGUAGE


@dataclass(frozen=True)
class TaskOutcome:
    """What the stats collector records about a finished task."""
    source_language: str
    target_languages: Tuple[str, ...]
    processing_time_ms: float
    quality_score: float
    success: bool
    audio_bytes: int = 0
    partial: bool = False
    error_code: Optional[str] = None


@dataclass(frozen=True)
class StatsView:
    """Read-only snapshot of engine statistics."""
    attempted: int
    succeeded: int
    failed: int
    partial: int
    cache_hits: int
    success_rate: float
    average_processing_time_ms: float
    average_quality_score: float
    quality_p50: float
    quality_p90: float
    total_audio_bytes: int
    language_usage: Dict[str, int]
    error_counts: Dict[str, int]
    queue_length: int = 0
    is_processing: bool = False
