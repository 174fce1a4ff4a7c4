"""
Game Controller

Handles duel-related HTTP endpoints.
"""

from flask import Blueprint, jsonify
from ..services.duel_service import get_duel_service
from ..utils.game_logger import game_logger

game_bp = Blueprint('game', __name__)


@game_bp.route('/duel/<match_id>/state', methods=['GET'])
def get_state(match_id):
    """Get the current state of a duel (opponent rows only for revealed rounds)."""
    try:
        duel_service = get_duel_service()
        if not duel_service:
            return jsonify({
                'success': False,
                'error': 'Duel service unavailable'
            }), 500
        
        game_logger.log_user_action('get_state', match_id)
        
        session = duel_service.find_by_match(match_id)
        if session is None:
            return jsonify({
                'success': False,
                'error': 'Duel not found'
            }), 404
        
        return jsonify({
            'success': True,
            'state': session.coordinator.snapshot()
        })
        
    except Exception as e:
        game_logger.log_error(e, 'get_state', match_id)
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@game_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    try:
        duel_service = get_duel_service()
        
        response_data = {
            'status': 'healthy',
            'active_duels': len(duel_service.sessions) if duel_service else 0,
            'lobby': duel_service.lobby.get_lobby_state()['rooms'] if duel_service else [],
            'log_stats': game_logger.get_log_stats()
        }
        return jsonify(response_data)
        
    except Exception as e:
        game_logger.log_error(e, 'health_check')
        return jsonify({
            'status': 'error',
            'error': str(e)
        }), 500
