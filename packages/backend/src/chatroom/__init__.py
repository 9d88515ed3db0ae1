"""Chatroom — a single-room real-time group chat server.

Participants connect over Socket.IO (or a plain WebSocket), register a
display name, exchange messages and see who is typing. All state is
in memory and lives only as long as the process.
"""

__version__ = "0.1.0"
