"""
Session WebSocket.

One connection per live session. The server pushes a ``state`` message
after every session transition and relays speech and media requests to
the browser, which owns the speakers, microphone and camera.

Client -> server messages:
    start_voice      {"recognizer": "client" | "whisper"}
    stop_voice
    transcript       {"text"}              full utterance-so-far (Web Speech)
    audio            {"data"}              base64 audio segment (whisper)
    speech_done      {"utterance_id", "error"?}
    media_chunk      {"data"}              base64 MediaRecorder chunk
    media_denied     {"reason"?}
    end_session                            submits the pending answer, then ends;
                                           not ended if that submission fails

Server -> client messages:
    state, speak, cancel_speech, listen, media_start, media_pause,
    media_resume, media_stop, pending_answer, error
"""
import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, Optional, Set

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from mock_interview.core.auth import authenticate_token
from mock_interview.core.config import Settings
from mock_interview.core.errors import SessionNotFoundError
from mock_interview.models.session import OperationOutcome, SessionSnapshot
from mock_interview.providers.media.capture import MediaCapture
from mock_interview.providers.media.client_stream import ClientStreamDevice
from mock_interview.providers.speech.adapter import SpeechAdapter
from mock_interview.providers.speech.client_relay import (
    ClientRelaySynthesizer,
    ClientTranscriptRecognizer,
)
from mock_interview.providers.speech.whisper_recognizer import WhisperRecognizer
from mock_interview.services.session_manager import SessionManager
from mock_interview.services.session_orchestrator import SessionOrchestrator
from mock_interview.services.voice_answer_flow import VoiceAnswerFlow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["voice"])


class SessionConnection:
    """Binds one WebSocket to one session orchestrator."""

    def __init__(
        self,
        websocket: WebSocket,
        manager: SessionManager,
        orchestrator: SessionOrchestrator,
        user_id: str,
        session_id: str,
        settings: Settings,
    ):
        self.websocket = websocket
        self.manager = manager
        self.orchestrator = orchestrator
        self.user_id = user_id
        self.session_id = session_id
        self.settings = settings

        self._send_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

        self.synthesizer = ClientRelaySynthesizer(self.send)
        self.client_recognizer = ClientTranscriptRecognizer(self.send)
        self.whisper_recognizer: Optional[WhisperRecognizer] = None
        self.speech = SpeechAdapter(self.synthesizer, self.client_recognizer)
        self.flow: Optional[VoiceAnswerFlow] = None
        self.device = ClientStreamDevice(self.send)

        self._unsubscribe = None

    async def send(self, message: Dict[str, Any]) -> None:
        if self.websocket.client_state != WebSocketState.CONNECTED:
            logger.debug(f"Dropping {message.get('type')} message, socket not connected")
            return
        async with self._send_lock:
            await self.websocket.send_json(message)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"WebSocket task failed: {task.exception()}")

    def _on_state(self, snapshot: SessionSnapshot):
        self._spawn(self.send({"type": "state", "session": snapshot.model_dump(mode="json")}))

    async def open(self):
        self._unsubscribe = self.orchestrator.subscribe(self._on_state)
        self.orchestrator.speech = self.speech
        if self.orchestrator.media is None:
            await self.orchestrator.attach_media(MediaCapture(self.device))
        elif isinstance(self.orchestrator.media.device, ClientStreamDevice):
            # Reconnect: keep the recorder, route its requests to this socket
            self.device = self.orchestrator.media.device
            self.device.bind(self.send)
        await self.send({"type": "state", "session": self.orchestrator.snapshot().model_dump(mode="json")})

    async def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
        if self.flow is not None:
            await self.flow.stop()
        if self.orchestrator.speech is self.speech:
            self.orchestrator.speech = None
        for task in list(self._tasks):
            task.cancel()

    async def run(self):
        await self.open()
        try:
            while True:
                message = await self.websocket.receive_json()
                await self.handle(message)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected for session {self.session_id}")
        finally:
            await self.close()

    async def handle(self, message: Dict[str, Any]):
        msg_type = message.get("type") if isinstance(message, dict) else None

        if msg_type == "start_voice":
            self._spawn(self._start_voice(message.get("recognizer", "client")))
        elif msg_type == "stop_voice":
            if self.flow is not None:
                await self.flow.stop()
        elif msg_type == "transcript":
            self.client_recognizer.push_transcript(str(message.get("text", "")))
            if self.flow is not None:
                await self.send({"type": "pending_answer", "text": self.flow.pending_answer})
        elif msg_type == "audio":
            data = await self._decode(message)
            if data is not None and self.whisper_recognizer is not None:
                self._spawn(self.whisper_recognizer.push_audio(data))
        elif msg_type == "speech_done":
            self.synthesizer.acknowledge(message.get("utterance_id"), message.get("error"))
        elif msg_type == "media_chunk":
            data = await self._decode(message)
            if data is not None:
                self.device.push_chunk(data)
        elif msg_type == "media_denied":
            self.device.deny(message.get("reason") or "permission denied")
        elif msg_type == "end_session":
            self._spawn(self._end_session())
        else:
            await self.send({"type": "error", "detail": f"Unknown message type: {msg_type}"})

    async def _decode(self, message: Dict[str, Any]) -> Optional[bytes]:
        try:
            return base64.b64decode(message.get("data") or "", validate=True)
        except (binascii.Error, ValueError):
            await self.send({"type": "error", "detail": "Payload is not valid base64"})
            return None

    async def _start_voice(self, recognizer: str):
        if self.flow is not None and self.flow.active:
            return

        if recognizer == "whisper":
            if self.whisper_recognizer is None:
                self.whisper_recognizer = WhisperRecognizer()
            self.speech = SpeechAdapter(self.synthesizer, self.whisper_recognizer)
        else:
            self.speech = SpeechAdapter(self.synthesizer, self.client_recognizer)
        self.orchestrator.speech = self.speech

        self.flow = VoiceAnswerFlow(
            self.orchestrator,
            self.speech,
            silence_timeout=self.settings.silence_timeout_seconds,
        )
        await self.flow.start()

    async def _end_session(self):
        if self.flow is not None:
            await self.flow.stop()
            await self.flow.wait_idle()
            outcome = await self.flow.submit_pending_answer()
            if outcome in (OperationOutcome.FAILED, OperationOutcome.BUSY):
                # Keep the answer on the client so it can be retried
                await self.send({"type": "pending_answer", "text": self.flow.pending_answer})
                await self.send({
                    "type": "error",
                    "detail": f"Pending answer not submitted ({outcome.value}); session not ended",
                    "last_error": self.orchestrator.last_error,
                })
                return
        await self.manager.end_session(self.user_id, self.session_id)


@router.websocket("/ws/sessions/{session_id}")
async def session_socket(websocket: WebSocket, session_id: str):
    """
    Live channel for a session. Authenticate with ``?token=<access token>``.
    """
    try:
        user = authenticate_token(websocket.query_params.get("token"))
    except HTTPException:
        await websocket.close(code=1008, reason="Unauthorized")
        return

    manager: SessionManager = websocket.app.state.session_manager
    try:
        orchestrator = manager.get(user.user_id, session_id)
    except SessionNotFoundError:
        await websocket.close(code=1008, reason="Session not found")
        return

    await websocket.accept()
    logger.info(f"WebSocket connected for session {session_id}")

    connection = SessionConnection(
        websocket,
        manager,
        orchestrator,
        user.user_id,
        session_id,
        websocket.app.state.settings,
    )
    await connection.run()
