import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, Dict, FrozenSet, Optional, Set

from constants import ROOM_CAPACITY
from events import CREATED, FULL, JOINED, PEER_LEFT, READY, RELAYED_KINDS
from logging_config import get_logger

logger = get_logger(__name__)


class Connection(ABC):
    """One peer endpoint. Subclasses deliver messages over a real transport."""

    def __init__(self, connection_id: str):
        self.connection_id = connection_id
        self.room_key: Optional[str] = None

    @abstractmethod
    async def send(self, message: dict):
        """Deliver one outbound event to the remote peer."""

    def __repr__(self):
        return f"<{type(self).__name__} {self.connection_id} room={self.room_key!r}>"


class RoomRegistry:
    """Room key -> member set, with one lock per room key.

    Rooms exist only while they have members. The lock for a key is dropped as
    soon as nobody holds or waits on it, so idle keys do not accumulate.
    """

    def __init__(self, capacity: int = ROOM_CAPACITY):
        self.capacity = capacity
        self._rooms: Dict[str, Set[Connection]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def locked(self, room_key: str):
        lock = self._locks.get(room_key)
        if lock is None:
            lock = self._locks[room_key] = asyncio.Lock()
        self._lock_users[room_key] = self._lock_users.get(room_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[room_key] -= 1
            if self._lock_users[room_key] == 0:
                del self._lock_users[room_key]
                del self._locks[room_key]

    def members(self, room_key: str) -> FrozenSet[Connection]:
        return frozenset(self._rooms.get(room_key, ()))

    def member_count(self, room_key: str) -> int:
        return len(self._rooms.get(room_key, ()))

    def add(self, room_key: str, connection: Connection):
        members = self._rooms.setdefault(room_key, set())
        if len(members) >= self.capacity:
            raise RuntimeError(f"Room {room_key} is already at capacity ({self.capacity})")
        members.add(connection)

    def discard(self, room_key: str, connection: Connection) -> bool:
        members = self._rooms.get(room_key)
        if not members or connection not in members:
            return False
        members.discard(connection)
        if not members:
            del self._rooms[room_key]
            logger.debug(f"Room {room_key} is empty, removed")
        return True

    def room_counts(self) -> Dict[str, int]:
        return {room_key: len(members) for room_key, members in self._rooms.items()}

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_key: str):
        return room_key in self._rooms


class SignalingRelay:
    """Pairs two connections per room and forwards negotiation messages between them.

    Every outcome is reported to connections as an event; nothing is raised
    back to the transport layer.
    """

    def __init__(self, registry: Optional[RoomRegistry] = None, notify_peer_left: bool = False):
        self.registry = registry if registry is not None else RoomRegistry()
        self.notify_peer_left = notify_peer_left

    async def join(self, connection: Connection, room_key: str):
        if connection.room_key == room_key:
            logger.warning(f"Connection {connection.connection_id} is already in room {room_key}, ignoring join")
            return

        if connection.room_key is not None:
            logger.info(
                f"Connection {connection.connection_id} switching from room {connection.room_key} to {room_key}"
            )
            await self.leave(connection)

        async with self.registry.locked(room_key):
            members = self.registry.members(room_key)

            if not members:
                self.registry.add(room_key, connection)
                connection.room_key = room_key
                logger.info(f"Connection {connection.connection_id} created room {room_key}")
                await self.emit(connection, {"type": CREATED, "room": room_key})

            elif len(members) < self.registry.capacity:
                self.registry.add(room_key, connection)
                connection.room_key = room_key
                logger.info(f"Connection {connection.connection_id} joined room {room_key}")
                await self.emit(connection, {"type": JOINED, "room": room_key})
                for peer in members:
                    await self.emit(peer, {"type": READY})

            else:
                logger.info(f"Connection {connection.connection_id} rejected, room {room_key} is full")
                await self.emit(connection, {"type": FULL, "room": room_key})

    async def relay(self, connection: Connection, room_key: str, kind: str, payload: Any):
        if kind not in RELAYED_KINDS:
            logger.warning(f"Ignoring unrelayable message kind {kind!r} from connection {connection.connection_id}")
            return

        recipients = self.registry.members(room_key) - {connection}
        if not recipients:
            logger.debug(f"No peer in room {room_key} for {kind} from {connection.connection_id}, dropping")
            return

        for peer in recipients:
            await self.emit(peer, {"type": kind, "payload": payload})
        logger.debug(f"Relayed {kind} from {connection.connection_id} to {len(recipients)} peer(s) in room {room_key}")

    async def leave(self, connection: Connection):
        room_key = connection.room_key
        if room_key is None:
            return

        async with self.registry.locked(room_key):
            self.registry.discard(room_key, connection)
            connection.room_key = None
            remaining = self.registry.members(room_key)
            logger.info(
                f"Connection {connection.connection_id} left room {room_key} ({len(remaining)} member(s) remaining)"
            )
            if self.notify_peer_left:
                for peer in remaining:
                    await self.emit(peer, {"type": PEER_LEFT, "room": room_key})

    def member_count(self, room_key: str) -> int:
        return self.registry.member_count(room_key)

    async def emit(self, connection: Connection, message: dict) -> bool:
        try:
            await connection.send(message)
            return True
        except Exception as e:
            logger.warning(f"Error sending {message.get('type')} to connection {connection.connection_id}: {e}")
            return False
