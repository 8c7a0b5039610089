"""Session controller: composes the pipeline into a conversation lifecycle.

audio -> AudioBuffer -> flush -> STT -> ingest_text -> classify -> deduct
energy -> cache lookup -> (miss) LLM suggestion -> cache store -> display.

Everything here runs on one asyncio loop. The controller is the only writer
of session, cache and energy state; the presentation layer reads `snapshot()`.
"""

import asyncio
import logging
import random
import time
from collections import deque
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from convocue import config
from convocue.audio_buffer import AudioBuffer, Chunk
from convocue.cache import SuggestionCache, make_key
from convocue.config import Config
from convocue.dispatcher import TaskDispatcher
from convocue.energy import SocialEnergyModel
from convocue.errors import RequestTimeoutError, ServiceLoadError
from convocue.intent import IntentClassifier, precomputed_suggestion, should_generate_suggestion
from convocue.models import (
    ChatMessage,
    Persona,
    Speaker,
    SuggestionContext,
    SuggestionResult,
    SummaryStats,
    Task,
    TaskKind,
    TranscriptEntry,
)
from convocue.personas import (
    EXHAUSTED_INSTRUCTION,
    SILENCE_BREAKER_PREFIX,
    bridge_phrase,
    get_persona,
)
from convocue.providers.base import LLMService, STTService
from convocue.speaker import SpeakerAttribution
from convocue.state import ServiceStatus, Session

log = logging.getLogger(__name__)


def display_probability(energy: float) -> float:
    """Chance that an eligible suggestion is shown at this energy level.

    Full visibility at or above the fatigue threshold, linear fade below it.
    """
    if energy >= config.FATIGUE_THRESHOLD:
        return 1.0
    return max(0.0, energy) / 100.0


class SessionController:
    """Owns one Session and every stateful pipeline component.

    Usage:
        controller = SessionController(stt, llm)
        await controller.load_services()
        controller.start()
        controller.start_idle_monitor()
        controller.ingest_text("How are you?")
    """

    def __init__(
        self,
        stt: STTService,
        llm: LLMService,
        *,
        persona_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        classifier: Optional[IntentClassifier] = None,
        energy: Optional[SocialEnergyModel] = None,
        cache: Optional[SuggestionCache] = None,
        dispatcher: Optional[TaskDispatcher] = None,
        speaker: Optional[SpeakerAttribution] = None,
        flush_threshold: int = config.FLUSH_SAMPLE_THRESHOLD,
        flush_idle_seconds: float = config.FLUSH_IDLE_SECONDS,
    ):
        self.stt = stt
        self.llm = llm
        self._rng = rng or random.Random()
        self._clock = clock
        self.default_persona_id = get_persona(persona_id or Config.DEFAULT_PERSONA).id

        self.classifier = classifier or IntentClassifier()
        self.energy = energy or SocialEnergyModel()
        self.cache = cache or SuggestionCache(clock=clock)
        self.dispatcher = dispatcher or TaskDispatcher(clock=clock)
        self.speaker = speaker or SpeakerAttribution(rng=self._rng)
        self.audio = AudioBuffer(
            on_flush=self._on_audio_flush,
            threshold_samples=flush_threshold,
            idle_seconds=flush_idle_seconds,
        )

        self.stt_status = ServiceStatus()
        self.llm_status = ServiceStatus()

        self._intent_history: deque = deque(maxlen=config.INTENT_HISTORY_SIZE)
        self._messages: deque = deque(maxlen=config.MESSAGE_WINDOW)
        self._last_activity = self._clock()
        self._silence_triggered = False
        self._idle_task: Optional[asyncio.Task] = None

        self.session = Session(persona_id=self.default_persona_id)

    # -- Properties --

    @property
    def persona(self) -> Persona:
        return get_persona(self.session.persona_id)

    @property
    def is_ready(self) -> bool:
        return self.stt_status.ready and self.llm_status.ready

    @property
    def status(self) -> str:
        if not self.is_ready:
            progress = (self.stt_status.progress + self.llm_status.progress) // 2
            return f"Loading... {progress}% (STT: {self.stt_status.stage}, LLM: {self.llm_status.stage})"
        return "Processing..." if self.session.is_processing else "Ready"

    # -- Lifecycle --

    async def load_services(self) -> None:
        """Initialize both services. A failure leaves a persistent not-ready status."""
        for service, status in ((self.stt, self.stt_status), (self.llm, self.llm_status)):
            status.stage = "loading"
            try:
                await service.load()
            except ServiceLoadError as e:
                status.ready = False
                status.stage = "error"
                status.error = str(e)
                log.error("[SESSION] %s failed to load: %s", service.name, e)
                continue
            status.ready = True
            status.progress = 100
            status.stage = "ready" if getattr(service, "accepts_audio", True) else "text-only"
            status.error = None
            log.info("[SESSION] %s ready", service.name)

    def start(self) -> None:
        """Begin a fresh session: transcript, energy, cache, timers and persona all reset."""
        self.dispatcher.reset()
        self.audio.clear()
        self.cache.clear()
        self.energy.reset()
        self.speaker.reset()
        self._intent_history.clear()
        self._messages.clear()
        self._last_activity = self._clock()
        self._silence_triggered = False
        self.session = Session(persona_id=self.default_persona_id)
        log.info("[SESSION] started (persona %s)", self.session.persona_id)

    reset = start

    def start_idle_monitor(self) -> None:
        if self._idle_task is None or self._idle_task.done():
            self._idle_task = asyncio.get_running_loop().create_task(
                self._idle_loop(), name="convocue-idle-monitor"
            )

    async def stop(self) -> None:
        if self._idle_task is not None:
            self._idle_task.cancel()
            try:
                await self._idle_task
            except asyncio.CancelledError:
                pass
            self._idle_task = None
        self.audio.clear()
        await self.dispatcher.shutdown()
        await self.stt.aclose()
        await self.llm.aclose()

    # -- Ingestion --

    def _touch(self) -> None:
        self._last_activity = self._clock()
        self._silence_triggered = False

    def ingest_audio(self, chunk: Chunk, metadata: Optional[Dict[str, Any]] = None) -> bool:
        """Feed one audio chunk. Returns False when STT is not ready or text-only."""
        if not self.stt_status.ready or not self.stt.accepts_audio:
            return False
        self._touch()

        rms = (metadata or {}).get("rms")
        if rms is not None:
            self.speaker.observe(float(rms))

        self.audio.append(chunk)
        return True

    def _on_audio_flush(self, samples: np.ndarray) -> None:
        self.dispatcher.dispatch(
            TaskKind.STT,
            partial(self.stt.transcribe, samples),
            on_result=self._on_stt_result,
            on_error=self._on_stt_error,
        )

    def _on_stt_result(self, task: Task, text: str) -> None:
        if text and text.strip():
            self.ingest_text(text)

    def _on_stt_error(self, task: Task, error: Exception) -> None:
        self.session.last_error = str(error)

    def recent_intents(self) -> List[str]:
        now = self._clock()
        recent = [i for i, ts in self._intent_history if now - ts < config.INTENT_WINDOW_SECONDS]
        return recent[-config.INTENT_HISTORY_KEY_SIZE:]

    def ingest_text(self, text: str, speaker: Optional[Speaker] = None) -> Optional[TranscriptEntry]:
        """Process one recognized utterance. Returns the transcript entry, or None for blank text."""
        text = (text or "").strip()
        if not text:
            return None
        self._touch()

        speaker = speaker or self.speaker.current
        persona = self.persona
        session = self.session

        canned = precomputed_suggestion(text)
        if canned is not None:
            intent, canned_text = canned
            needs_suggestion = True
            session.suggestion = canned_text
            session.is_processing = False
        else:
            intent = self.classifier.classify(text).label
            needs_suggestion = should_generate_suggestion(text)
        session.detected_intent = intent
        self._intent_history.append((intent, self._clock()))

        energy = self.energy.deduct(text, intent, persona)

        last = session.transcript[-1] if session.transcript else None
        session.consecutive_count = session.consecutive_count + 1 if last and last.speaker == speaker else 1
        entry = TranscriptEntry(text=text, speaker=speaker, intent=intent)
        session.transcript.append(entry)

        label = "Me" if speaker == "me" else "Them"
        self._messages.append(ChatMessage(role="user", content=f"{label}: {text}"))

        if canned is not None:
            return entry

        show = needs_suggestion and self._rng.random() < display_probability(energy)
        if not show or speaker == "me":
            session.suggestion = ""
            session.is_processing = False
            return entry

        recent = self.recent_intents()
        key = make_key(intent, recent, persona.id, energy)
        cached = self.cache.get(key)
        if cached is not None:
            log.debug("[SESSION] cache hit %s", key)
            session.suggestion = cached
            session.is_processing = False
            return entry

        self._request_suggestion(intent, recent, key, energy, persona)
        return entry

    def _request_suggestion(self, intent: str, recent: List[str], key: str,
                            energy: float, persona: Persona) -> Task:
        session = self.session
        session.suggestion = bridge_phrase(intent)
        session.is_processing = True

        exhausted = self.energy.is_exhausted
        context = SuggestionContext(
            persona_label=persona.label,
            intent_label=intent.upper(),
            battery_percent=round(energy),
            is_exhausted=exhausted,
            recent_intents_window="_".join(recent),
        )
        instruction = EXHAUSTED_INSTRUCTION if exhausted else persona.prompt_template
        messages = list(self._messages)

        return self.dispatcher.dispatch(
            TaskKind.LLM_SUGGEST,
            partial(self.llm.suggest, messages, context, instruction),
            on_result=partial(self._on_suggestion, key),
            on_error=self._on_suggestion_error,
            on_soft_timeout=partial(self._on_suggestion_slow, intent),
        )

    def _on_suggestion(self, key: str, task: Task, result: SuggestionResult) -> None:
        self.cache.put(key, result.suggestion_text)
        self.session.suggestion = result.suggestion_text
        self.session.suggestion_intent = result.intent_label
        self.session.is_processing = False
        self.session.last_error = None
        if result.speaker_toggle_hint:
            # last message was a direct question to the user
            self.speaker.assign("me")

    def _on_suggestion_error(self, task: Task, error: Exception) -> None:
        self.session.suggestion = ""
        self.session.is_processing = False
        self.session.last_error = str(error)

    def _on_suggestion_slow(self, intent: str, task: Task, error: RequestTimeoutError) -> None:
        if self.session.is_processing:
            self.session.suggestion = f"Still thinking about {intent}..."

    # -- Summary --

    def summary_stats(self) -> SummaryStats:
        transcript = self.session.transcript
        return SummaryStats(
            total_count=len(transcript),
            me_count=sum(1 for t in transcript if t.speaker == "me"),
            them_count=sum(1 for t in transcript if t.speaker == "them"),
            total_drain_percent=round(self.session.initial_energy - self.energy.value),
        )

    def summarize(self) -> Optional[Task]:
        """Request a one-shot session summary. No-op on an empty transcript."""
        if not self.session.transcript:
            return None
        self.session.is_summarizing = True
        self.session.summary_error = None
        transcript = list(self.session.transcript)
        return self.dispatcher.dispatch(
            TaskKind.LLM_SUMMARIZE,
            partial(self.llm.summarize, transcript, self.summary_stats()),
            on_result=self._on_summary,
            on_error=self._on_summary_error,
        )

    def _on_summary(self, task: Task, summary: str) -> None:
        self.session.summary = summary
        self.session.is_summarizing = False

    def _on_summary_error(self, task: Task, error: Exception) -> None:
        self.session.is_summarizing = False
        self.session.summary_error = str(error)

    def close_summary(self) -> None:
        self.session.summary = None
        self.session.summary_error = None

    # -- Silence breaker --

    def check_silence(self) -> bool:
        """Fire one silence-breaker suggestion per silence episode. Returns True if fired."""
        if not self.is_ready or self.energy.paused or self.session.is_processing:
            return False
        if self._silence_triggered or not self.session.transcript:
            return False
        if self._clock() - self._last_activity <= config.SILENCE_THRESHOLD_SECONDS:
            return False

        self._silence_triggered = True
        persona = self.persona
        self.energy.deduct_passive("general", persona)
        if persona.silence_breakers:
            line = self._rng.choice(persona.silence_breakers)
            self.session.suggestion = f"{SILENCE_BREAKER_PREFIX}{line}"
        self.session.detected_intent = "social"
        log.info("[SESSION] silence breaker fired")
        return True

    async def _idle_loop(self) -> None:
        """Background poll for silence."""
        while True:
            await asyncio.sleep(config.SILENCE_POLL_SECONDS)
            try:
                self.check_silence()
            except Exception:
                log.exception("[SESSION] error in idle check")

    # -- Inbound controls --

    def set_persona(self, persona_id: str) -> Persona:
        persona = get_persona(persona_id)
        self.session.persona_id = persona.id
        return persona

    def set_sensitivity(self, level: str) -> float:
        return self.energy.set_sensitivity(level)

    def toggle_pause(self) -> bool:
        return self.energy.toggle_pause()

    def toggle_speaker(self) -> Speaker:
        self.session.consecutive_count = 0
        return self.speaker.toggle(manual=True)

    def recharge(self, amount: float) -> float:
        return self.energy.recharge(amount)

    def dismiss_suggestion(self) -> None:
        self.session.suggestion = ""
        self.session.is_processing = False

    # -- Outbound observables --

    def snapshot(self) -> Dict[str, Any]:
        s = self.session
        return {
            "status": self.status,
            "ready": self.is_ready,
            "services": {
                "stt": self.stt_status.to_dict(),
                "llm": self.llm_status.to_dict(),
            },
            "suggestion": s.suggestion,
            "is_processing": s.is_processing,
            "detected_intent": s.detected_intent,
            "suggestion_intent": s.suggestion_intent,
            "persona": s.persona_id,
            "battery": round(self.energy.value, 2),
            "initial_battery": s.initial_energy,
            "last_drain": round(self.energy.last_drain_amount, 3),
            "is_exhausted": self.energy.is_exhausted,
            "is_paused": self.energy.paused,
            "sensitivity": self.energy.sensitivity,
            "current_speaker": self.speaker.current,
            "consecutive_count": s.consecutive_count,
            "transcript": [t.to_dict() for t in s.transcript],
            "summary": s.summary,
            "is_summarizing": s.is_summarizing,
            "summary_error": s.summary_error,
            "last_error": s.last_error,
            "started_at": s.started_at,
        }
