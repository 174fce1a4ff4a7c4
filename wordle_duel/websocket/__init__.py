"""WebSocket event handlers."""
