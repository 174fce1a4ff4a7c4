"""
In-Memory Room Store

Thread-safe, in-process implementation of the shared keyed store. Every
mutation notifies the room's subscribers on the writer's thread, after the
store lock is released. Each subscriber gets a deep copy of the room as it is
when that subscriber is called, so a write made from inside a callback never
leaves a later subscriber holding an older document.
"""

import copy
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config.game_settings import MAX_ROUNDS
from ..models.errors import ChannelWriteFailure
from ..models.game import GuessRecord
from .base import (
    GAME_STATUSES, SharedStateChannel, advance_round_pointer, empty_room_document,
    fresh_game_state, player_state_fields
)

RoomSubscriber = Callable[[Dict[str, Any]], None]


class InMemoryRoomStore:
    """Rooms keyed by room code, with push notification on change."""

    def __init__(self, max_rounds: int = MAX_ROUNDS):
        self.max_rounds = max_rounds
        self._lock = threading.RLock()
        self._rooms: Dict[str, Dict[str, Any]] = {}
        self._subscribers: Dict[str, List[RoomSubscriber]] = {}

    def create_room(self, room_code: str, secret: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            self._rooms[room_code] = empty_room_document(room_code, secret)
        self._notify(room_code)
        return self.get_room(room_code)

    def delete_room(self, room_code: str) -> bool:
        with self._lock:
            return self._rooms.pop(room_code, None) is not None

    def get_room(self, room_code: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            room = self._rooms.get(room_code)
            return copy.deepcopy(room) if room is not None else None

    def join(self, room_code: str, player_id: str, name: str) -> None:
        """
        Add a player to a room.

        Raises:
            KeyError: If the room does not exist
            ValueError: If another player in the room already uses the name
        """
        with self._lock:
            room = self._require_room(room_code)
            for other_id, data in room["players"].items():
                if other_id != player_id and data.get("name") == name:
                    raise ValueError("Player name already taken in this room")
            room["players"].setdefault(player_id, {"history": [], "submitted_rounds": []})["name"] = name
        self._notify(room_code)

    def leave(self, room_code: str, player_id: str) -> None:
        with self._lock:
            room = self._rooms.get(room_code)
            if room is None or room["players"].pop(player_id, None) is None:
                return
        self._notify(room_code)

    def update_player(self, room_code: str, player_id: str, fields: Dict[str, Any]) -> None:
        """Last-write-wins update of individual player fields."""
        with self._lock:
            room = self._require_room(room_code)
            room["players"].setdefault(player_id, {}).update(copy.deepcopy(fields))
        self._notify(room_code)

    def mark_round_revealed(self, room_code: str, round_index: int) -> None:
        with self._lock:
            room = self._require_room(room_code)
            advance_round_pointer(room["game_state"], round_index, self.max_rounds)
        self._notify(room_code)

    def reset_room(self, room_code: str, secret: str, keep_player: Optional[str] = None) -> None:
        """New secret and game state; only keep_player stays, with an empty history."""
        with self._lock:
            room = self._require_room(room_code)
            kept = room["players"].get(keep_player) if keep_player is not None else None
            room["secret"] = secret
            room["game_state"] = fresh_game_state()
            room["players"] = {}
            if kept is not None:
                room["players"][keep_player] = {"name": kept.get("name"), "history": [], "submitted_rounds": []}
        self._notify(room_code)

    def set_game_status(self, room_code: str, status: str) -> None:
        if status not in GAME_STATUSES:
            raise ValueError(f"Unknown game status: {status}")
        with self._lock:
            self._require_room(room_code)["game_state"]["status"] = status
        self._notify(room_code)

    def subscribe(self, room_code: str, callback: RoomSubscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.setdefault(room_code, []).append(callback)

        def unsubscribe():
            with self._lock:
                subscribers = self._subscribers.get(room_code, [])
                if callback in subscribers:
                    subscribers.remove(callback)

        return unsubscribe

    def _require_room(self, room_code: str) -> Dict[str, Any]:
        room = self._rooms.get(room_code)
        if room is None:
            raise KeyError(f"Room {room_code} not found")
        return room

    def _notify(self, room_code: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(room_code, []))
        for callback in subscribers:
            room = self.get_room(room_code)
            if room is None:
                return
            callback(room)


class InMemoryChannel(SharedStateChannel):
    """SharedStateChannel over an InMemoryRoomStore room."""

    def __init__(self, store: InMemoryRoomStore, room_code: str, player_id: str):
        super().__init__(room_code, player_id, store.max_rounds)
        self.store = store
        self._unsubscribe = store.subscribe(room_code, self.handle_room_document)

    def join(self, name: str) -> None:
        self.store.join(self.room_code, self.player_id, name)

    def leave(self) -> None:
        self.store.leave(self.room_code, self.player_id)

    def write_player_state(self, history: Sequence[GuessRecord], submitted_rounds: Iterable[int]) -> None:
        try:
            self.store.update_player(self.room_code, self.player_id, player_state_fields(history, submitted_rounds))
        except KeyError as e:
            raise ChannelWriteFailure("write_player_state", e)

    def mark_round_revealed(self, round_index: int) -> None:
        try:
            self.store.mark_round_revealed(self.room_code, round_index)
        except KeyError as e:
            raise ChannelWriteFailure("mark_round_revealed", e)

    def reset_room(self, secret: str) -> None:
        try:
            self.store.reset_room(self.room_code, secret, keep_player=self.player_id)
        except KeyError as e:
            raise ChannelWriteFailure("reset_room", e)

    def set_game_status(self, status: str) -> None:
        try:
            self.store.set_game_status(self.room_code, status)
        except KeyError as e:
            raise ChannelWriteFailure("set_game_status", e)

    def close(self) -> None:
        self._unsubscribe()
        super().close()
