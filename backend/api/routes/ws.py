"""WebSocket endpoint for streamed simulations."""

import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.config import get_settings
from app.dependencies import build_driver, load_workflow
from api.schemas.simulation import WebSocketRunMessage
from api.websockets.connection_manager import manager
from core.exceptions import SimulatorException
from simulator.driver import SimulationDriver, SimulationObserver

logger = logging.getLogger(__name__)

router = APIRouter()


class SimulationSession:
    """One WebSocket client and the run it may have in flight."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.driver: Optional[SimulationDriver] = None
        self.task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.task is not None and not self.task.done()

    def observer(self) -> SimulationObserver:
        sid = self.session_id

        async def on_node_start(name):
            await manager.send_event(sid, "node.started", node=name)

        async def on_status_change(name, status):
            await manager.send_event(sid, "node.status_changed", node=name, status=status.value)

        async def on_node_complete(name, result):
            await manager.send_event(sid, "node.completed", node=name, result=result.to_dict())

        async def on_log(line):
            await manager.send_event(sid, "log", line=line)

        return SimulationObserver(
            on_node_start=on_node_start,
            on_node_complete=on_node_complete,
            on_log=on_log,
            on_status_change=on_status_change,
        )

    async def start(self, message: dict) -> None:
        if self.is_running:
            await manager.send_event(
                self.session_id, "error", code="in-progress", detail="A simulation is already running"
            )
            return

        try:
            request = WebSocketRunMessage.model_validate(message)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "message"
            await manager.send_event(
                self.session_id, "error", code="invalid-message", detail=f"{field}: {first['msg']}"
            )
            return

        settings = get_settings()
        try:
            graph = load_workflow(request.workflow, settings, demo_fallback=request.demo_fallback)
        except SimulatorException as e:
            await manager.send_event(
                self.session_id, "error", code=getattr(e, "code", "invalid-workflow"), detail=e.message
            )
            return

        animate = request.animate if request.animate is not None else settings.SIMULATION_WS_ANIMATE
        self.driver = build_driver(animate=animate, seed=request.seed, settings=settings)
        self.task = asyncio.create_task(self._run(graph, request.input_data))

    async def _run(self, graph, input_data) -> None:
        try:
            run = await self.driver.run(graph, observer=self.observer(), input_data=input_data)
        except SimulatorException as e:
            await manager.send_event(self.session_id, "error", code="simulation-failed", detail=e.message)
            return
        except Exception as e:
            logger.exception(f"Simulation failed for session {self.session_id}: {e}")
            await manager.send_event(self.session_id, "error", code="simulation-failed", detail=str(e))
            return
        await manager.send_event(self.session_id, "run.completed", run=run.to_dict())

    async def cancel(self) -> None:
        if not self.is_running or self.driver is None:
            await manager.send_event(
                self.session_id, "error", code="not-running", detail="No simulation is running"
            )
            return
        self.driver.cancel("cancelled by client")

    async def close(self) -> None:
        if self.is_running:
            self.driver.cancel("client disconnected")
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass


@router.websocket("/ws/simulations")
async def simulation_websocket(websocket: WebSocket):
    """
    WebSocket endpoint for animated workflow simulations.

    Client messages:
    - {"type": "run", "workflow": {...}, "input_data": [...], "animate": true, "seed": 42}
    - {"type": "cancel"}
    - {"type": "ping"}

    Server pushes events:
    - node.started: {node}
    - node.status_changed: {node, status}
    - node.completed: {node, result}
    - log: {line}
    - run.completed: {run}
    - error: {code, detail}
    - pong
    """
    session_id = await manager.connect(websocket)
    session = SimulationSession(session_id)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_event(session_id, "error", code="malformed-message", detail="Invalid JSON")
                continue
            if not isinstance(msg, dict):
                await manager.send_event(session_id, "error", code="malformed-message", detail="Expected an object")
                continue

            message_type = msg.get("type")
            if message_type == "ping":
                await manager.send_event(session_id, "pong")
            elif message_type == "run":
                await session.start(msg)
            elif message_type == "cancel":
                await session.cancel()
            else:
                await manager.send_event(
                    session_id, "error", code="unknown-message", detail=f"Unknown message type: {message_type}"
                )
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error for session {session_id}: {e}")
    finally:
        await session.close()
        await manager.disconnect(session_id)
