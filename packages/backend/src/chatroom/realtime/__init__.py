"""Real-time infrastructure — registry, coordinator, transports.

Learn: Events flow through three layers:
1. Transport (Socket.IO or plain WebSocket) → coordinator.dispatch()
2. Coordinator → validates, updates the registry, fans out
3. Per-connection outbound queue → writer task → transport

The coordinator never talks to a socket directly. That keeps the fan-out
policy testable without a network and lets both transports share it.
"""
