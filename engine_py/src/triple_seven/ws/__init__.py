"""
WebSocket protocol for Triple Seven: event models, routing and the FastAPI app.

The app lives in ws.server and is imported from there (see main.py).
"""

from .events import EventType, OutboundEventType, parse_inbound_event

__all__ = ["EventType", "OutboundEventType", "parse_inbound_event"]
