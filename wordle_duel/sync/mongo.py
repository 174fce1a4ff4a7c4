"""
MongoDB Room Channel

SharedStateChannel backed by one MongoDB document per room. Writes are field
level `$set` updates (last write wins); changes are observed through a change
stream on a daemon thread, which requires a replica set or Atlas cluster.
Room documents outlive their players; the first player into an emptied room
calls reset_room so the next pairing gets a fresh secret.
"""

import threading
from typing import Any, Dict, Iterable, Optional, Sequence

from pymongo.errors import PyMongoError
from pymongo.mongo_client import MongoClient
from pymongo.server_api import ServerApi

from ..config.game_settings import MAX_ROUNDS
from ..models.errors import ChannelWriteFailure
from ..models.game import GuessRecord
from ..utils.game_logger import game_logger
from .base import GAME_STATUSES, SharedStateChannel, empty_room_document, fresh_game_state, player_state_fields


def connect_rooms_collection(mongo_uri: str, db_name: str = "wordle_duel"):
    """
    Open the rooms collection.

    Args:
        mongo_uri: MongoDB connection string
        db_name: Database holding the rooms collection

    Returns:
        pymongo Collection for room documents
    """
    client = MongoClient(mongo_uri, server_api=ServerApi('1'))
    client.admin.command('ping')
    game_logger.logger.info(f"Connected to MongoDB database '{db_name}' for room sync")
    return client[db_name].rooms


class MongoRoomChannel(SharedStateChannel):
    """One participant's view of a room document in MongoDB."""

    POLL_INTERVAL_SECONDS = 0.2

    def __init__(self, collection, room_code: str, player_id: str, max_rounds: int = MAX_ROUNDS):
        super().__init__(room_code, player_id, max_rounds)
        self.collection = collection
        self._stopped = threading.Event()
        self._watcher: Optional[threading.Thread] = None

    def ensure_room(self, secret: Optional[str] = None) -> None:
        """Create the room document if it does not exist yet."""
        document = empty_room_document(self.room_code, secret)
        try:
            self.collection.update_one(
                {"_id": self.room_code},
                {"$setOnInsert": document},
                upsert=True
            )
        except PyMongoError as e:
            raise ChannelWriteFailure("ensure_room", e)

    def get_room(self) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": self.room_code})

    def join(self, name: str) -> None:
        room = self.get_room() or {}
        for other_id, data in (room.get("players") or {}).items():
            if other_id != self.player_id and data.get("name") == name:
                raise ValueError("Player name already taken in this room")
        prefix = f"players.{self.player_id}"
        try:
            self.collection.update_one(
                {"_id": self.room_code},
                {"$set": {f"{prefix}.name": name}},
                upsert=True
            )
        except PyMongoError as e:
            raise ChannelWriteFailure("join", e)

    def leave(self) -> None:
        try:
            self.collection.update_one(
                {"_id": self.room_code},
                {"$unset": {f"players.{self.player_id}": ""}}
            )
        except PyMongoError as e:
            raise ChannelWriteFailure("leave", e)

    def write_player_state(self, history: Sequence[GuessRecord], submitted_rounds: Iterable[int]) -> None:
        prefix = f"players.{self.player_id}"
        fields = player_state_fields(history, submitted_rounds)
        try:
            self.collection.update_one(
                {"_id": self.room_code},
                {"$set": {f"{prefix}.{key}": value for key, value in fields.items()}},
                upsert=True
            )
        except PyMongoError as e:
            raise ChannelWriteFailure("write_player_state", e)

    def mark_round_revealed(self, round_index: int) -> None:
        update: Dict[str, Any] = {"$addToSet": {"game_state.revealed_rounds": round_index}}
        if round_index < self.max_rounds:
            update["$max"] = {"game_state.current_round": round_index + 1}
        try:
            self.collection.update_one({"_id": self.room_code}, update, upsert=True)
        except PyMongoError as e:
            raise ChannelWriteFailure("mark_round_revealed", e)

    def reset_room(self, secret: str) -> None:
        try:
            room = self.get_room() or {}
        except PyMongoError as e:
            raise ChannelWriteFailure("reset_room", e)
        players = room.get("players") or {}
        update: Dict[str, Any] = {"$set": {"code": self.room_code, "secret": secret, "game_state": fresh_game_state()}}
        if self.player_id in players:
            update["$set"][f"players.{self.player_id}.history"] = []
            update["$set"][f"players.{self.player_id}.submitted_rounds"] = []
        others = {f"players.{player_id}": "" for player_id in players if player_id != self.player_id}
        if others:
            update["$unset"] = others
        try:
            self.collection.update_one({"_id": self.room_code}, update, upsert=True)
        except PyMongoError as e:
            raise ChannelWriteFailure("reset_room", e)

    def set_game_status(self, status: str) -> None:
        if status not in GAME_STATUSES:
            raise ValueError(f"Unknown game status: {status}")
        try:
            self.collection.update_one({"_id": self.room_code}, {"$set": {"game_state.status": status}}, upsert=True)
        except PyMongoError as e:
            raise ChannelWriteFailure("set_game_status", e)

    def start(self) -> None:
        """
        Open the change stream, then deliver the current document and start
        watching. A write that lands between the read and the watch is still
        reported by the stream, and a repeated delivery is filtered out by
        handle_room_document.
        """
        if self._watcher is not None:
            return
        pipeline = [{"$match": {"documentKey._id": self.room_code}}]
        try:
            stream = self.collection.watch(pipeline, full_document="updateLookup")
        except PyMongoError as e:
            raise ChannelWriteFailure("watch", e)
        try:
            room = self.get_room()
        except PyMongoError as e:
            stream.close()
            raise ChannelWriteFailure("start", e)
        if room is not None:
            self.handle_room_document(room)
        self._watcher = threading.Thread(target=self._watch, args=(stream,),
                                         name=f"room-watch-{self.room_code}", daemon=True)
        self._watcher.start()

    def _watch(self, stream) -> None:
        try:
            with stream:
                while not self._stopped.is_set() and stream.alive:
                    change = stream.try_next()
                    if change is None:
                        self._stopped.wait(self.POLL_INTERVAL_SECONDS)
                        continue
                    document = change.get("fullDocument")
                    if document is not None:
                        self.handle_room_document(document)
        except PyMongoError as e:
            game_logger.log_error(e, 'room_change_stream', player_id=self.player_id)

    def close(self) -> None:
        self._stopped.set()
        if self._watcher is not None and self._watcher is not threading.current_thread():
            self._watcher.join(timeout=2)
        super().close()
