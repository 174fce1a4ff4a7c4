"""
WebSocket Event Handlers

Handles all WebSocket events for real-time duels. Each socket session is one
participant; coordinator events are pushed back to it as 'duel_event', room
roster and status changes as 'room_roster' and 'room_state'.
"""

from flask import request
from flask_socketio import emit, join_room, leave_room
from ..services.duel_service import get_duel_service
from ..utils.game_logger import game_logger


def _emitter(socketio, sid):
    def emit_to_player(event_name, data):
        socketio.emit(event_name, data, room=sid)
    return emit_to_player


def register_websocket_handlers(socketio):
    """Register all WebSocket event handlers."""
    
    @socketio.on('connect')
    def handle_connect():
        """Handle WebSocket connection."""
        pass

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        """Handle WebSocket disconnection."""
        duel_service = get_duel_service()
        if duel_service and duel_service.end_session(request.sid):
            socketio.emit('lobby_state_update', duel_service.lobby.get_lobby_state(), room="lobby")

    @socketio.on('join_lobby')
    def handle_join_lobby(data=None):
        """Join the lobby for real-time room updates."""
        duel_service = get_duel_service()
        if not duel_service:
            emit('error', {'error': 'Duel service unavailable'})
            return
        
        join_room("lobby")
        emit('lobby_state_update', duel_service.lobby.get_lobby_state())

    @socketio.on('leave_lobby')
    def handle_leave_lobby(data=None):
        """Leave the lobby."""
        leave_room("lobby")

    @socketio.on('start_ai_duel')
    def handle_start_ai_duel(data=None):
        """Start a duel against the AI opponent."""
        try:
            duel_service = get_duel_service()
            if not duel_service:
                emit('error', {'error': 'Duel service unavailable'})
                return
            
            session = duel_service.start_ai_duel(request.sid, _emitter(socketio, request.sid))
            emit('duel_started', {
                'success': True,
                'match_id': session.match_id,
                'mode': session.mode,
                'state': session.coordinator.snapshot()
            })
        except Exception as e:
            game_logger.log_error(e, 'start_ai_duel', player_id=request.sid)
            emit('error', {'error': str(e)})

    @socketio.on('join_duel_room')
    def handle_join_duel_room(data):
        """Join a duel room; the duel starts when the second player arrives."""
        try:
            duel_service = get_duel_service()
            if not duel_service:
                emit('error', {'error': 'Duel service unavailable'})
                return
            
            room_id = data.get('room_id')
            username = (data.get('username') or '').strip()
            if not room_id or not username:
                emit('error', {'error': 'Room ID and username required'})
                return
            
            result = duel_service.join_room_duel(request.sid, username, int(room_id),
                                                 _emitter(socketio, request.sid))
            emit('room_join_result', result)
            socketio.emit('lobby_state_update', duel_service.lobby.get_lobby_state(), room="lobby")
        except Exception as e:
            game_logger.log_error(e, 'join_duel_room', player_id=request.sid)
            emit('error', {'error': str(e)})

    @socketio.on('submit_guess')
    def handle_submit_guess(data):
        """Submit a guess for the current round."""
        duel_service = get_duel_service()
        if not duel_service:
            emit('error', {'error': 'Duel service unavailable'})
            return
        
        guess = (data or {}).get('guess')
        if not guess:
            emit('guess_result', {'success': False, 'error': 'Guess required'})
            return
        
        try:
            result = duel_service.submit_guess(request.sid, guess)
        except Exception as e:
            game_logger.log_error(e, 'submit_guess', player_id=request.sid)
            emit('guess_result', {'success': False, 'error': str(e)})
            return
        
        if result.accepted:
            emit('guess_result', {'success': True, 'result': result.to_dict()})
        else:
            emit('guess_result', {'success': False, 'error': result.message, 'result': result.to_dict()})

    @socketio.on('get_duel_state')
    def handle_get_duel_state(data=None):
        """Send the participant's current duel state."""
        duel_service = get_duel_service()
        state = duel_service.get_state(request.sid) if duel_service else None
        if state is None:
            emit('error', {'error': 'No active duel'})
            return
        emit('duel_state', {'success': True, 'state': state})

    @socketio.on('leave_duel')
    def handle_leave_duel(data=None):
        """End the participant's duel session."""
        duel_service = get_duel_service()
        if not duel_service:
            return
        
        ended = duel_service.end_session(request.sid)
        emit('duel_left', {'success': ended})
        socketio.emit('lobby_state_update', duel_service.lobby.get_lobby_state(), room="lobby")
