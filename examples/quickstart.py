"""
Quickstart — two participants chatting through the Socket.IO transport.

Alice and Bob connect, register, Alice types and sends a message, Bob
answers, and Alice leaves mid-typing. Watch which events each side
receives:

  - typing indicators go to everyone except the typist
  - chat messages echo back to the sender too
  - leaving while typing clears the indicator for the others

Usage:
    chatroom serve &
    python examples/quickstart.py
"""

import asyncio

from _common import BASE, check_backend, make_client, room_snapshot


async def main() -> None:
    check_backend()

    alice_inbox: list = []
    bob_inbox: list = []
    alice = make_client("alice", alice_inbox)
    bob = make_client("bob", bob_inbox)

    await alice.connect(BASE)
    await bob.connect(BASE)

    print("\n1. Register display names")
    await alice.emit("register", "alice")
    await bob.emit("register", "bob")
    await asyncio.sleep(0.2)

    snapshot = room_snapshot()
    print(f"  Room: {[p['username'] for p in snapshot['participants']]}")

    print("\n2. Alice types, stops, then sends")
    await alice.emit("typing")
    await asyncio.sleep(0.2)
    await alice.emit("stop typing")
    await alice.emit("chat message", {"username": "alice", "message": "hi bob!"})
    await asyncio.sleep(0.2)

    print("\n3. Bob answers")
    await bob.emit("chat message", {"username": "bob", "message": "hey alice"})
    await asyncio.sleep(0.2)

    print("\n4. Alice starts typing and disconnects")
    await alice.emit("typing")
    await asyncio.sleep(0.2)
    await alice.disconnect()
    await asyncio.sleep(0.5)

    await bob.disconnect()

    print(f"\nAlice received {len(alice_inbox)} event(s), Bob received {len(bob_inbox)}.")
    assert ("user stopped typing", {"username": "alice"}) in bob_inbox


if __name__ == "__main__":
    asyncio.run(main())
