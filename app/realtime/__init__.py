# Realtime Package - WebSocket fan-out of inventory, reservation and sales events
from .broadcaster import Broadcaster, ClientConnection, broadcaster

__all__ = ["Broadcaster", "ClientConnection", "broadcaster"]
