"""
Shared State Channel

Abstract contract for the keyed store both participants of a room write to.
Writes are last-write-wins per field; notifications may be duplicated, stale
or out of order, so consumers must treat every delivery as a full snapshot.

Room document layout shared by every backend:

    {
        "code": "ROOM1",
        "secret": "ALLOY",
        "players": {
            "<player_id>": {"name": ..., "history": [...], "submitted_rounds": [...]}
        },
        "game_state": {"status": "waiting", "current_round": 1, "revealed_rounds": []}
    }

game_state.status moves waiting -> active when a pairing starts, -> finished
when its match ends, and back to waiting when the room is reset.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config.game_settings import MAX_ROUNDS
from ..models.game import GuessRecord, PeerSnapshot

OpponentCallback = Callable[[PeerSnapshot], None]
RosterCallback = Callable[[List[Dict[str, Any]]], None]
GameStateCallback = Callable[[Dict[str, Any]], None]

GAME_STATUSES = ("waiting", "active", "finished")


def fresh_game_state(status: str = "waiting") -> Dict[str, Any]:
    return {"status": status, "current_round": 1, "revealed_rounds": []}


def empty_room_document(room_code: str, secret: Optional[str] = None) -> Dict[str, Any]:
    return {
        "code": room_code,
        "secret": secret,
        "players": {},
        "game_state": fresh_game_state()
    }


def player_state_fields(history: Sequence[GuessRecord], submitted_rounds: Iterable[int]) -> Dict[str, Any]:
    return {
        "history": [record.to_dict() for record in history],
        "submitted_rounds": sorted(set(int(index) for index in submitted_rounds))
    }


def advance_round_pointer(game_state: Dict[str, Any], round_index: int, max_rounds: int = MAX_ROUNDS) -> None:
    """Idempotently record a revealed round and move current_round forward."""
    revealed = game_state.setdefault("revealed_rounds", [])
    if round_index not in revealed:
        revealed.append(round_index)
        revealed.sort()
    if round_index < max_rounds:
        game_state["current_round"] = max(game_state.get("current_round", 1), round_index + 1)


class SharedStateChannel(ABC):
    """
    One participant's handle on a shared room.

    Subclasses deliver room documents to handle_room_document whenever the
    room changes; this class turns them into roster, opponent snapshot and
    game state updates for the registered callbacks, in that order.
    """

    def __init__(self, room_code: str, player_id: str, max_rounds: int = MAX_ROUNDS):
        self.room_code = room_code
        self.player_id = player_id
        self.max_rounds = max_rounds
        self._opponent_callbacks: List[OpponentCallback] = []
        self._roster_callbacks: List[RosterCallback] = []
        self._game_state_callbacks: List[GameStateCallback] = []
        self._seen_opponents: Dict[str, Any] = {}
        self._seen_roster: Optional[List[Dict[str, Any]]] = None
        self._seen_game_state: Optional[Dict[str, Any]] = None
        self._dispatch_lock = threading.Lock()

    @abstractmethod
    def join(self, name: str) -> None:
        """Add this participant to the room roster."""

    @abstractmethod
    def leave(self) -> None:
        """Remove this participant from the room roster."""

    @abstractmethod
    def write_player_state(self, history: Sequence[GuessRecord], submitted_rounds: Iterable[int]) -> None:
        """Upsert this participant's history and submitted-round markers. Raises ChannelWriteFailure."""

    @abstractmethod
    def mark_round_revealed(self, round_index: int) -> None:
        """Idempotent revealed marker; advances the shared current_round below the last round."""

    @abstractmethod
    def reset_room(self, secret: str) -> None:
        """
        Prepare the room for a new pairing.

        Replaces the secret, resets game_state to waiting, removes every other
        player's entry and clears this participant's history and markers (its
        name is kept). Raises ChannelWriteFailure.
        """

    @abstractmethod
    def set_game_status(self, status: str) -> None:
        """Write game_state.status (one of GAME_STATUSES). Raises ChannelWriteFailure."""

    def on_opponent_state_changed(self, callback: OpponentCallback) -> None:
        self._opponent_callbacks.append(callback)

    def on_room_roster_changed(self, callback: RosterCallback) -> None:
        self._roster_callbacks.append(callback)

    def on_game_state_changed(self, callback: GameStateCallback) -> None:
        self._game_state_callbacks.append(callback)

    def close(self) -> None:
        self._opponent_callbacks.clear()
        self._roster_callbacks.clear()
        self._game_state_callbacks.clear()

    def handle_room_document(self, room: Dict[str, Any]) -> None:
        """Fan a room document out to the callbacks that care about a change."""
        room = room or {}
        players = room.get("players") or {}
        game_state = room.get("game_state") or fresh_game_state()
        roster = [
            {"id": player_id, "name": data.get("name"), "has_data": bool(data.get("history"))}
            for player_id, data in sorted(players.items())
        ]

        with self._dispatch_lock:
            roster_changed = roster != self._seen_roster
            self._seen_roster = roster
            # A player who left and comes back must be delivered again
            for player_id in list(self._seen_opponents):
                if player_id not in players:
                    del self._seen_opponents[player_id]
            changed_opponents = []
            for player_id, data in players.items():
                if player_id == self.player_id:
                    continue
                entry = {"history": data.get("history") or [], "submitted_rounds": data.get("submitted_rounds") or []}
                if self._seen_opponents.get(player_id) != entry:
                    self._seen_opponents[player_id] = entry
                    changed_opponents.append(PeerSnapshot.from_player_data(player_id, data))
            game_state_changed = game_state != self._seen_game_state
            self._seen_game_state = game_state

        if roster_changed:
            for callback in list(self._roster_callbacks):
                callback(roster)
        for snapshot in changed_opponents:
            for callback in list(self._opponent_callbacks):
                callback(snapshot)
        if game_state_changed:
            for callback in list(self._game_state_callbacks):
                callback(dict(game_state))
