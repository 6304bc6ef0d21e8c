"""
Realtime API - WebSocket endpoint for live inventory/reservation/sales events

Server -> client: {"event": "...", "data": {...}}
Client -> server: {"action": "join-room" | "leave-room", "room": "..."}
"""
import asyncio
import json
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.realtime import broadcaster

realtime_router = APIRouter(tags=["Realtime"])
logger = logging.getLogger(__name__)


@realtime_router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    client = await broadcaster.connect(websocket)
    sender = asyncio.create_task(client.pump())
    
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except json.JSONDecodeError:
                continue
            
            if not isinstance(message, dict):
                continue
            
            action = message.get("action")
            room = message.get("room")
            
            if action == "join-room" and room:
                broadcaster.join(client, str(room))
                client.enqueue({"event": "room:joined", "data": {"room": str(room)}})
                logger.info(f"Realtime client joined room: {room}")
            elif action == "leave-room" and room:
                broadcaster.leave(client, str(room))
                client.enqueue({"event": "room:left", "data": {"room": str(room)}})
            elif action == "ping":
                client.enqueue({"event": "pong", "data": None})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(client)
        sender.cancel()
