"""
Services Package

Contains all business logic and service classes.
"""

from .evaluation import evaluate_guess, KeyboardTracker
from .dictionary_service import WordDictionary
from .round_state import RoundState, RoundTracker, RoundPhase, Side
from .duel_coordinator import DuelCoordinator, MatchState, round_outcome
from .ai_service import ConstraintFilter, AIOpponent
from .lobby_service import LobbyService
from .duel_service import DuelService, get_duel_service, initialize_duel_service

__all__ = [
    'evaluate_guess', 'KeyboardTracker', 'WordDictionary',
    'RoundState', 'RoundTracker', 'RoundPhase', 'Side',
    'DuelCoordinator', 'MatchState', 'round_outcome',
    'ConstraintFilter', 'AIOpponent', 'LobbyService',
    'DuelService', 'get_duel_service', 'initialize_duel_service'
]
