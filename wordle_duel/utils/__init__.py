"""
Utilities Package

Contains utility helpers: structured game logging and cancellable scheduling.
"""

from .game_logger import game_logger, GameLogger
from .scheduler import Scheduler, ScheduledTask, ThreadingScheduler

__all__ = ['game_logger', 'GameLogger', 'Scheduler', 'ScheduledTask', 'ThreadingScheduler']
