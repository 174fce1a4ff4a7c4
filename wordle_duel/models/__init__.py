"""
Data Models Package

Contains all data models and schemas used throughout the application.
"""

from .game import (
    LetterStatus, Verdict, GuessRecord, MatchOutcome, PeerSnapshot,
    RejectReason, SubmitResult, EventType, DuelEvent
)
from .errors import DuelError, InvalidGuessLength, ChannelWriteFailure, RoundOrderError

__all__ = [
    'LetterStatus', 'Verdict', 'GuessRecord', 'MatchOutcome', 'PeerSnapshot',
    'RejectReason', 'SubmitResult', 'EventType', 'DuelEvent',
    'DuelError', 'InvalidGuessLength', 'ChannelWriteFailure', 'RoundOrderError'
]
