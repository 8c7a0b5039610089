"""FastAPI surface for ConvoCue: session controls in, observables out."""

from contextlib import asynccontextmanager
from typing import List, Optional
import asyncio
import hashlib
import json
import logging

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from convocue.config import Config
from convocue.personas import PERSONAS
from convocue.providers import LLMService, STTService, create_llm_service, create_stt_service
from convocue.session import SessionController

log = logging.getLogger(__name__)


# Request models
class TextRequest(BaseModel):
    text: str
    speaker: Optional[str] = Field(default=None, pattern="^(me|them)$")


class AudioRequest(BaseModel):
    samples: List[float]
    rms: Optional[float] = Field(default=None, ge=0.0)


class PersonaRequest(BaseModel):
    persona_id: str


class SensitivityRequest(BaseModel):
    level: str


class RechargeRequest(BaseModel):
    amount: float = Field(gt=0)


def create_app(stt: Optional[STTService] = None, llm: Optional[LLMService] = None,
               controller: Optional[SessionController] = None) -> FastAPI:
    """Build the app. Services default to the ones selected in Config."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctrl = controller
        if ctrl is None:
            missing = Config.validate()
            for item in missing:
                log.warning("[CONFIG] missing %s", item)
            ctrl = SessionController(
                stt or create_stt_service(Config.STT_PROVIDER),
                llm or create_llm_service(Config.LLM_PROVIDER),
            )
        app.state.controller = ctrl
        await ctrl.load_services()
        ctrl.start()
        ctrl.start_idle_monitor()
        log.info("[SERVER] %s", ctrl.status)
        try:
            yield
        finally:
            await ctrl.stop()

    app = FastAPI(title="ConvoCue", lifespan=lifespan)

    # CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def ctrl() -> SessionController:
        return app.state.controller

    @app.get("/favicon.ico")
    async def favicon():
        """Return empty favicon to prevent 404 errors."""
        return Response(content="", media_type="image/x-icon")

    @app.get("/personas")
    async def list_personas():
        return {
            "personas": [
                {"id": p.id, "label": p.label, "description": p.description,
                 "drain_rate": p.drain_rate_multiplier}
                for p in PERSONAS.values()
            ]
        }

    @app.get("/session")
    async def session_state():
        return ctrl().snapshot()

    @app.post("/session/start")
    async def session_start():
        ctrl().start()
        return ctrl().snapshot()

    @app.post("/session/reset")
    async def session_reset():
        ctrl().reset()
        return ctrl().snapshot()

    @app.post("/session/text")
    async def session_text(request: TextRequest):
        entry = ctrl().ingest_text(request.text, speaker=request.speaker)
        if entry is None:
            raise HTTPException(status_code=400, detail="Empty text")
        return {"entry": entry.to_dict(), "state": ctrl().snapshot()}

    @app.post("/session/audio")
    async def session_audio(request: AudioRequest):
        metadata = {"rms": request.rms} if request.rms is not None else None
        accepted = ctrl().ingest_audio(request.samples, metadata)
        if not accepted:
            raise HTTPException(status_code=503, detail="Speech recognition not ready or text-only")
        return {"accepted": True, "buffered": ctrl().audio.buffered_samples,
                "speaker": ctrl().speaker.current}

    @app.post("/session/persona")
    async def session_persona(request: PersonaRequest):
        try:
            persona = ctrl().set_persona(request.persona_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"persona": persona.id}

    @app.post("/session/sensitivity")
    async def session_sensitivity(request: SensitivityRequest):
        try:
            value = ctrl().set_sensitivity(request.level)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"sensitivity": value}

    @app.post("/session/pause")
    async def session_pause():
        return {"paused": ctrl().toggle_pause()}

    @app.post("/session/speaker")
    async def session_speaker():
        return {"speaker": ctrl().toggle_speaker()}

    @app.post("/session/recharge")
    async def session_recharge(request: RechargeRequest):
        return {"battery": ctrl().recharge(request.amount)}

    @app.post("/session/dismiss")
    async def session_dismiss():
        ctrl().dismiss_suggestion()
        return {"suggestion": ""}

    @app.post("/session/summarize")
    async def session_summarize():
        task = ctrl().summarize()
        if task is None:
            raise HTTPException(status_code=400, detail="Transcript is empty")
        return {"task_id": task.id}

    @app.post("/session/summary/close")
    async def session_summary_close():
        ctrl().close_summary()
        return {"summary": None}

    @app.get("/session/stream")
    async def session_stream():
        """Stream session snapshots via Server-Sent Events when they change."""

        async def event_generator():
            last_hash = ""
            while True:
                try:
                    payload = json.dumps(ctrl().snapshot())
                    digest = hashlib.md5(payload.encode()).hexdigest()
                    if digest != last_hash:
                        last_hash = digest
                        yield f"data: {payload}\n\n"
                    else:
                        # heartbeat keeps the connection alive
                        yield ": heartbeat\n\n"
                    await asyncio.sleep(0.5)
                except asyncio.CancelledError:
                    break

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable buffering for nginx
            }
        )

    return app


app = create_app()
