"""
Duel Service

Session registry for the server: one DuelCoordinator per connected participant,
either paired with a local AI opponent or connected to a room through a shared
state channel.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pymongo.errors import PyMongoError

from ..config import Config
from ..models.errors import ChannelWriteFailure
from ..models.game import DuelEvent, EventType, RejectReason, SubmitResult
from ..sync.base import SharedStateChannel
from ..sync.memory import InMemoryChannel, InMemoryRoomStore
from ..sync.mongo import MongoRoomChannel, connect_rooms_collection
from ..utils.game_logger import game_logger
from ..utils.scheduler import Scheduler
from .ai_service import AIOpponent
from .dictionary_service import WordDictionary
from .duel_coordinator import DuelCoordinator
from .lobby_service import LobbyService

Emitter = Callable[[str, Dict[str, Any]], None]


@dataclass
class DuelSession:
    """One participant's live duel."""
    player_id: str
    coordinator: DuelCoordinator
    mode: str
    ai: Optional[AIOpponent] = None
    channel: Optional[SharedStateChannel] = None
    room_id: Optional[int] = None

    @property
    def match_id(self) -> str:
        return self.coordinator.match_id


class DuelService:
    """
    Creates, looks up and tears down duel sessions.

    Sessions are keyed by player id (the socket session id in the server).
    """
    
    def __init__(self,
                 dictionary: WordDictionary,
                 lobby: LobbyService,
                 store: Optional[InMemoryRoomStore] = None,
                 rooms_collection=None,
                 scheduler: Optional[Scheduler] = None,
                 ai_min_delay: float = None,
                 ai_max_delay: float = None):
        self.dictionary = dictionary
        self.lobby = lobby
        self.store = store if store is not None else InMemoryRoomStore()
        self.rooms_collection = rooms_collection
        self.scheduler = scheduler
        self.ai_min_delay = Config.AI_MIN_DELAY_SECONDS if ai_min_delay is None else ai_min_delay
        self.ai_max_delay = Config.AI_MAX_DELAY_SECONDS if ai_max_delay is None else ai_max_delay
        self.sessions: Dict[str, DuelSession] = {}
        self._lock = threading.RLock()
    
    def start_ai_duel(self, player_id: str, emit: Emitter) -> DuelSession:
        """Start a duel against the AI; both sides guess the same secret."""
        self.end_session(player_id)
        
        coordinator = DuelCoordinator(self.dictionary, player_id=player_id)
        ai = AIOpponent(coordinator, self.dictionary.answers, scheduler=self.scheduler,
                        min_delay=self.ai_min_delay, max_delay=self.ai_max_delay)
        coordinator.add_listener(self._forward(emit))
        session = DuelSession(player_id=player_id, coordinator=coordinator, mode='ai', ai=ai)
        
        with self._lock:
            self.sessions[player_id] = session
        
        secret = self.dictionary.pick_random_secret()
        coordinator.start_match(secret, secret)
        game_logger.log_user_action('start_ai_duel', coordinator.match_id, player_id)
        return session
    
    def join_room_duel(self, player_id: str, username: str, room_id: int, emit: Emitter) -> Dict[str, Any]:
        """
        Join a lobby room; a duel starts on both sides whenever the roster pairs two players.
        
        When the paired opponent leaves, the remaining player's match ends with
        OPPONENT_LEFT and the room is reset with a new secret, so the next
        player to join starts a fresh pairing.
        
        Returns:
            Lobby join result dictionary with success or error
        """
        self.end_session(player_id)
        
        result = self.lobby.join_room(player_id, username, room_id)
        if not result['success']:
            return result
        
        room_code = result['room_code']
        first_in_room = len(result['players']) == 1
        try:
            channel = self._open_channel(room_code, player_id, result['secret'], first_in_room)
        except ChannelWriteFailure as e:
            game_logger.log_error(e, 'open_room_channel', room_code, player_id)
            self.lobby.leave_room(player_id)
            return {'success': False, 'error': str(e)}
        
        coordinator = DuelCoordinator(self.dictionary, channel=channel, match_id=room_code, player_id=player_id)
        coordinator.add_listener(self._forward(emit))
        coordinator.add_listener(self._status_writer(channel))
        session = DuelSession(player_id=player_id, coordinator=coordinator, mode='room',
                              channel=channel, room_id=room_id)
        pairing = {'peer_id': None}
        pairing_lock = threading.RLock()
        
        def on_roster(roster):
            emit('room_roster', {'room_id': room_id, 'players': roster})
            ids = [player['id'] for player in roster]
            others = [pid for pid in ids if pid != player_id]
            with pairing_lock:
                peer_id = pairing['peer_id']
                if peer_id is not None and peer_id not in others:
                    pairing['peer_id'] = None
                    action = 'left'
                elif peer_id is None and player_id in ids and others:
                    peer_id = pairing['peer_id'] = others[0]
                    action = 'paired'
                else:
                    return
            # Channel writes notify synchronously, so they run outside the pairing lock
            if action == 'left':
                self._opponent_left(session, peer_id)
            else:
                self._start_pairing(session, peer_id, result['secret'])
        
        channel.on_room_roster_changed(on_roster)
        channel.on_game_state_changed(
            lambda game_state: emit('room_state', {'room_id': room_id, 'game_state': game_state})
        )
        
        with self._lock:
            self.sessions[player_id] = session
        
        try:
            channel.join(username)
            if isinstance(channel, MongoRoomChannel):
                channel.start()
        except (ValueError, ChannelWriteFailure) as e:
            self.end_session(player_id)
            return {'success': False, 'error': str(e)}
        
        game_logger.log_user_action('join_room_duel', room_code, player_id, room_id=room_id, username=username)
        result = dict(result)
        result.pop('secret', None)
        result['match_id'] = room_code
        return result
    
    def get_session(self, player_id: str) -> Optional[DuelSession]:
        with self._lock:
            return self.sessions.get(player_id)
    
    def submit_guess(self, player_id: str, guess: str) -> SubmitResult:
        session = self.get_session(player_id)
        if session is None:
            return SubmitResult.rejected(RejectReason.MATCH_NOT_ACTIVE, "No active duel")
        
        game_logger.log_user_action('submit_guess', session.match_id, player_id, guess=guess)
        return session.coordinator.submit_guess(guess)
    
    def get_state(self, player_id: str) -> Optional[Dict[str, Any]]:
        session = self.get_session(player_id)
        return session.coordinator.snapshot() if session else None
    
    def find_by_match(self, match_id: str) -> Optional[DuelSession]:
        with self._lock:
            for session in self.sessions.values():
                if session.match_id == match_id:
                    return session
        return None
    
    def end_session(self, player_id: str) -> bool:
        """Tear down a session: cancel the AI, leave the room and close the channel."""
        with self._lock:
            session = self.sessions.pop(player_id, None)
        if session is None:
            return False
        
        if session.ai is not None:
            session.ai.cancel()
        if session.channel is not None:
            try:
                session.channel.leave()
            except ChannelWriteFailure as e:
                game_logger.log_error(e, 'leave_room', session.match_id, player_id)
            session.channel.close()
            left = self.lobby.leave_room(player_id)
            if left.get('room_empty') and self.rooms_collection is None:
                self.store.delete_room(left['room_code'])
        
        game_logger.log_user_action('end_session', session.match_id, player_id, mode=session.mode)
        return True
    
    def _open_channel(self, room_code: str, player_id: str, secret: str,
                      first_in_room: bool) -> SharedStateChannel:
        """Open this player's channel; the first player into an emptied room resets it with the lobby's secret."""
        if self.rooms_collection is not None:
            channel = MongoRoomChannel(self.rooms_collection, room_code, player_id)
            if first_in_room:
                channel.reset_room(secret)
            else:
                channel.ensure_room(secret)
            return channel
        
        if self.store.get_room(room_code) is None:
            self.store.create_room(room_code, secret)
            return InMemoryChannel(self.store, room_code, player_id)
        channel = InMemoryChannel(self.store, room_code, player_id)
        if first_in_room:
            channel.reset_room(secret)
        return channel
    
    def _start_pairing(self, session: DuelSession, peer_id: str, fallback_secret: str) -> None:
        """(Re)start a room match against a newly paired opponent."""
        secret = self._room_secret(session.channel, fallback_secret)
        session.coordinator.start_match(secret, peer_id=peer_id)
        try:
            session.channel.set_game_status('active')
        except ChannelWriteFailure as e:
            game_logger.log_error(e, 'set_game_status', session.match_id, session.player_id)
        game_logger.log_game_event(session.match_id, 'pairing_started', session.player_id, peer_id=peer_id)
    
    def _opponent_left(self, session: DuelSession, peer_id: str) -> None:
        """
        End the remaining player's match and reset the room for the next pairing.
        
        Similar to a forfeit on disconnect: the match ends for the player who stayed,
        and the room's shared state is cleared with a new secret.
        """
        ended = session.coordinator.opponent_left()
        game_logger.log_game_event(session.match_id, 'opponent_left', session.player_id,
                                   peer_id=peer_id, match_ended=ended)
        secret = self.lobby.refresh_secret(session.room_id) or self.dictionary.pick_random_secret()
        try:
            session.channel.reset_room(secret)
        except ChannelWriteFailure as e:
            game_logger.log_error(e, 'reset_room', session.match_id, session.player_id)
    
    def _room_secret(self, channel: SharedStateChannel, fallback: str) -> str:
        """The secret stored with the room wins over the local pick."""
        if isinstance(channel, MongoRoomChannel):
            try:
                room = channel.get_room() or {}
            except PyMongoError as e:
                game_logger.log_error(e, 'read_room_secret', channel.room_code, channel.player_id)
                room = {}
        else:
            room = self.store.get_room(channel.room_code) or {}
        return room.get('secret') or fallback
    
    @staticmethod
    def _status_writer(channel: SharedStateChannel) -> Callable[[DuelEvent], None]:
        def listener(event: DuelEvent):
            if event.event_type != EventType.GAME_OVER:
                return
            try:
                channel.set_game_status('finished')
            except ChannelWriteFailure as e:
                game_logger.log_error(e, 'set_game_status', event.match_id, channel.player_id)
        return listener
    
    @staticmethod
    def _forward(emit: Emitter) -> Callable[[DuelEvent], None]:
        def listener(event: DuelEvent):
            emit('duel_event', event.to_dict())
        return listener


# Global service instance
_duel_service = None


def get_duel_service() -> Optional[DuelService]:
    """Get the global duel service instance."""
    return _duel_service


def initialize_duel_service(app_config=Config, scheduler: Optional[Scheduler] = None) -> DuelService:
    """Initialize the global duel service instance from configuration."""
    global _duel_service
    dictionary = WordDictionary()
    rooms_collection = None
    if app_config.SYNC_BACKEND == 'mongo':
        rooms_collection = connect_rooms_collection(app_config.MONGO_URI, app_config.MONGO_DB)
    _duel_service = DuelService(
        dictionary,
        LobbyService(dictionary),
        rooms_collection=rooms_collection,
        scheduler=scheduler,
        ai_min_delay=app_config.AI_MIN_DELAY_SECONDS,
        ai_max_delay=app_config.AI_MAX_DELAY_SECONDS
    )
    return _duel_service
