"""Canvas LMS access."""
from canvas.client import CanvasAuth, CanvasClient, resolve_canvas_auth

__all__ = ["CanvasAuth", "CanvasClient", "resolve_canvas_auth"]
