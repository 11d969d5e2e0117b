#!/usr/bin/env python3
"""FastAPI transport for the GravityChat universe."""

import json
import random
from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4

import anyio
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from core.config import GravityChatConfig
from core.connections import ConnectionManager
from core.exceptions import ClusterNotFoundError, MessageValidationError, ParticipantNotFoundError
from core.frames import Frame, FrameType
from core.logging import configure_logging, get_logger
from core.names import generate_display_name
from core.universe import Universe

logger = get_logger(__name__)

# Global universe and socket registry
universe: Optional[Universe] = None
manager: Optional[ConnectionManager] = None
name_rng = random.Random()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    global universe, manager

    config = GravityChatConfig()
    configure_logging(config.log_level, config.json_logs)

    logger.info("Starting GravityChat server...")
    universe = Universe(config=config)
    manager = ConnectionManager()
    logger.info("Universe initialized", universe_id=str(universe.universe_id))

    yield

    logger.info("Shutting down GravityChat server...")
    universe.clear()
    universe = None
    manager = None


app = FastAPI(
    title="GravityChat",
    description="Proximity chat rooms that form by gravity in a shared 2D universe",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Response Models
class UniverseStatus(BaseModel):
    """Universe status response."""

    universe_id: str
    user_count: int
    cluster_count: int
    largest_cluster: int
    visibility_radius: int
    connection_count: int
    group_count: int


class ParticipantModel(BaseModel):
    id: str
    name: str
    x: int
    y: int
    cluster_id: Optional[str] = None


class ClusterModel(BaseModel):
    cluster_id: str
    center_x: int
    center_y: int
    members: list[ParticipantModel]


def _require_universe() -> Universe:
    if not universe:
        raise HTTPException(status_code=503, detail="Universe not initialized")
    return universe


def _cluster_model(current: Universe, cluster_id: str) -> ClusterModel:
    members = current.get_cluster_members(cluster_id)
    cluster = current.get_cluster(cluster_id)
    if not members or cluster is None:
        raise ClusterNotFoundError(cluster_id)

    return ClusterModel(
        cluster_id=cluster.cluster_id,
        center_x=cluster.center_x,
        center_y=cluster.center_y,
        members=[ParticipantModel(**member.to_dict()) for member in members],
    )


# REST Endpoints
@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "name": "GravityChat",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/status", response_model=UniverseStatus)
async def get_status():
    """Get current universe status."""
    current = _require_universe()
    return UniverseStatus(**current.get_status(), **manager.stats())


@app.get("/clusters", response_model=list[ClusterModel])
async def list_clusters():
    """List every cluster with its members."""
    current = _require_universe()

    result = []
    for cluster in current.list_clusters():
        try:
            result.append(_cluster_model(current, cluster.cluster_id))
        except ClusterNotFoundError:
            # Dissolved between listing and lookup
            continue
    return result


@app.get("/clusters/{cluster_id}", response_model=ClusterModel)
async def get_cluster(cluster_id: str):
    """Get one cluster with its members."""
    current = _require_universe()
    try:
        return _cluster_model(current, cluster_id)
    except ClusterNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/users/{participant_id}", response_model=ParticipantModel)
async def get_user(participant_id: str):
    """Get one connected participant."""
    current = _require_universe()
    user = current.get_user(participant_id)
    if user is None:
        raise HTTPException(status_code=404, detail=str(ParticipantNotFoundError(participant_id)))
    return ParticipantModel(**user.to_dict())


# WebSocket hub
async def broadcast_cluster_update(cluster_id: str) -> None:
    """Send the current membership snapshot to every member of a cluster."""
    members = universe.get_cluster_members(cluster_id)
    if not members:
        return

    await manager.broadcast(
        cluster_id,
        Frame(FrameType.CLUSTER_UPDATE, [member.to_dict() for member in members]),
    )


async def relay_cluster_message(connection_id: str, cluster_id: str, message: str) -> None:
    sender = universe.get_user(connection_id)
    if sender is None:
        raise ParticipantNotFoundError(connection_id)

    if universe.get_user_cluster(connection_id) != cluster_id:
        raise MessageValidationError(f"Sender is not a member of cluster {cluster_id}")

    await manager.broadcast(
        cluster_id,
        Frame(
            FrameType.RECEIVE_CLUSTER_MESSAGE,
            {
                "sender_id": sender.participant_id,
                "sender_name": sender.name,
                "message": message,
            },
        ),
    )


async def relay_private_message(connection_id: str, target_id: str, message: str) -> None:
    sender = universe.get_user(connection_id)
    if sender is None:
        raise ParticipantNotFoundError(connection_id)

    payload = {
        "sender_id": sender.participant_id,
        "sender_name": sender.name,
        "message": message,
    }
    await manager.send_to(target_id, Frame(FrameType.RECEIVE_PRIVATE_MESSAGE, payload))

    # Echo lets the sender file the outgoing message under the right conversation
    await manager.send_to(
        connection_id,
        Frame(FrameType.RECEIVE_PRIVATE_MESSAGE, {**payload, "recipient_id": target_id, "echo": True}),
    )

    await manager.send_to(
        target_id,
        Frame(
            FrameType.PRIVATE_NOTIFICATION,
            {
                "sender_id": sender.participant_id,
                "sender_name": sender.name,
                "preview": message,
            },
        ),
    )


async def handle_client_frame(connection_id: str, raw_text: str) -> None:
    """Dispatch one client frame.

    Raises:
        MessageValidationError: If the frame cannot be parsed or targets a foreign cluster
        ParticipantNotFoundError: If the sender is no longer connected
    """
    try:
        raw = json.loads(raw_text)
    except ValueError:
        raise MessageValidationError("Frame is not valid JSON") from None

    frame = Frame.from_dict(raw)

    if frame.frame_type == FrameType.CLUSTER_MESSAGE:
        await relay_cluster_message(connection_id, frame.data["cluster_id"], frame.data["message"])
    elif frame.frame_type == FrameType.PRIVATE_MESSAGE:
        await relay_private_message(connection_id, frame.data["target_id"], frame.data["message"])


async def handle_disconnect(connection_id: str) -> None:
    if universe is None or manager is None:
        # Server already shut down; its state is gone
        return

    user = universe.get_user(connection_id)
    cluster_id = user.cluster_id if user else None

    universe.remove_user(connection_id)
    manager.disconnect(connection_id)

    if cluster_id is not None:
        # Runs while the handler task is being cancelled
        with anyio.CancelScope(shield=True):
            await manager.broadcast(
                cluster_id,
                Frame(
                    FrameType.CLUSTER_NOTIFICATION,
                    {"type": "leave", "id": connection_id, "name": user.name},
                ),
            )
            await broadcast_cluster_update(cluster_id)

    logger.info("connection.closed", connection_id=connection_id, cluster_id=cluster_id)


@app.websocket("/ws")
async def websocket_universe(websocket: WebSocket):
    """Join the universe; the socket lives in its cluster's group until it closes."""
    await websocket.accept()

    if not universe:
        await websocket.close(code=1011, reason="Universe not initialized")
        return

    connection_id = uuid4().hex
    user = universe.add_user(connection_id, generate_display_name(name_rng))

    manager.connect(connection_id, websocket)
    manager.add_to_group(connection_id, user.cluster_id)
    logger.info("connection.opened", connection_id=connection_id, cluster_id=user.cluster_id)

    try:
        await manager.send_to(connection_id, Frame(FrameType.UNIVERSE_INIT, user.to_dict()))
        await broadcast_cluster_update(user.cluster_id)
        await manager.broadcast(
            user.cluster_id,
            Frame(
                FrameType.CLUSTER_NOTIFICATION,
                {"type": "join", "id": user.participant_id, "name": user.name},
            ),
        )

        while True:
            raw_text = await websocket.receive_text()
            try:
                await handle_client_frame(connection_id, raw_text)
            except (MessageValidationError, ParticipantNotFoundError) as e:
                logger.warning("frame.rejected", connection_id=connection_id, error=str(e))
                await manager.send_to(connection_id, Frame(FrameType.ERROR, {"detail": str(e)}))

    except WebSocketDisconnect:
        logger.debug("WebSocket client disconnected", connection_id=connection_id)
    finally:
        await handle_disconnect(connection_id)


if __name__ == "__main__":
    import uvicorn

    config = GravityChatConfig()
    uvicorn.run(
        "api:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )
