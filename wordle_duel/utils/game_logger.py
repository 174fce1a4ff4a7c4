"""
Game Logger Module for Wordle Duel

This module provides structured logging for user actions, game events,
shared-state sync events and errors.
"""

import logging
import json
from datetime import datetime
from typing import Dict, Any, Optional
from pathlib import Path

from ..config import Config


class GameLogger:
    """
    Centralized logging system for the duel server.
    
    Features:
    - User action tracking keyed by match and player
    - Game event logging (reveals, outcomes)
    - Sync event logging for the shared state channel
    - JSON structured logs for easy parsing
    """
    
    def __init__(self, log_dir: str = "logs", level: str = "INFO"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.level = getattr(logging, str(level).upper(), logging.INFO)
        
        # Setup main game logger
        self.logger = self._setup_logger()
        
    def _log_file(self) -> Path:
        return self.log_dir / f"duel_log_{datetime.now().strftime('%Y-%m-%d')}.log"
        
    def _setup_logger(self) -> logging.Logger:
        """Setup the main game logger with file handler."""
        logger = logging.getLogger('wordle_duel')
        logger.setLevel(self.level)
        
        # Prevent duplicate handlers
        if logger.handlers:
            logger.handlers.clear()
        
        # File handler for detailed logs
        file_handler = logging.FileHandler(self._log_file(), encoding='utf-8')
        file_handler.setLevel(self.level)
        
        # Console handler for only important messages (WARNING and above)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        
        file_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_formatter = logging.Formatter(
            '%(levelname)s: %(message)s'
        )
        
        file_handler.setFormatter(file_formatter)
        console_handler.setFormatter(console_formatter)
        
        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        
        return logger
    
    def _create_log_entry(self, 
                         event_type: str, 
                         action: str, 
                         player_id: Optional[str],
                         details: Dict[str, Any]) -> str:
        """Create a structured log entry."""
        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'event_type': event_type,
            'action': action,
            'player_id': player_id,
            'details': details
        }
        return json.dumps(log_entry, ensure_ascii=False, default=str)
    
    def log_user_action(self, 
                       action: str, 
                       match_id: Optional[str] = None,
                       player_id: Optional[str] = None,
                       **kwargs):
        """
        Log user actions with full context.
        
        Args:
            action: Type of action (e.g., 'start_ai_duel', 'submit_guess')
            match_id: Match identifier if applicable
            player_id: Acting participant if known
            **kwargs: Additional details to log
        """
        details = {'match_id': match_id, **kwargs}
        self.logger.info(self._create_log_entry('USER_ACTION', action, player_id, details))
    
    def log_game_event(self, 
                      match_id: Optional[str],
                      event: str,
                      player_id: Optional[str] = None,
                      **kwargs):
        """
        Log game-specific events (reveals, wins, collisions, etc.).
        
        Args:
            match_id: Match identifier
            event: Type of game event (e.g., 'round_revealed', 'game_over')
            player_id: Participant whose coordinator produced the event
            **kwargs: Additional game details
        """
        details = {'match_id': match_id, **kwargs}
        self.logger.info(self._create_log_entry('GAME_EVENT', event, player_id, details))
    
    def log_sync_event(self,
                      match_id: Optional[str],
                      event: str,
                      player_id: Optional[str] = None,
                      success: bool = True,
                      **kwargs):
        """
        Log shared state channel activity. Failures are logged at WARNING.
        """
        details = {'match_id': match_id, 'success': success, **kwargs}
        log_message = self._create_log_entry('SYNC_EVENT', event, player_id, details)
        
        if success:
            self.logger.info(log_message)
        else:
            self.logger.warning(log_message)
    
    def log_error(self, 
                 error: Exception,
                 action: str,
                 match_id: Optional[str] = None,
                 player_id: Optional[str] = None):
        """
        Log errors with full context.
        
        Args:
            error: Exception that occurred
            action: Action that was being performed
            match_id: Match identifier if applicable
            player_id: Participant if known
        """
        details = {
            'match_id': match_id,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'action': action
        }
        self.logger.error(self._create_log_entry('ERROR', action, player_id, details))
    
    def get_log_stats(self) -> Dict[str, Any]:
        """Get statistics about logged events (useful for monitoring)."""
        try:
            log_file = self._log_file()
            if not log_file.exists():
                return {'error': 'No log file found for today'}
            
            stats = {
                'log_file': str(log_file),
                'file_size_mb': round(log_file.stat().st_size / (1024 * 1024), 2),
                'total_entries': 0,
                'user_actions': 0,
                'game_events': 0,
                'sync_events': 0,
                'errors': 0
            }
            
            with open(log_file, 'r', encoding='utf-8') as f:
                for line in f:
                    if line.strip():
                        stats['total_entries'] += 1
                        if 'USER_ACTION' in line:
                            stats['user_actions'] += 1
                        elif 'GAME_EVENT' in line:
                            stats['game_events'] += 1
                        elif 'SYNC_EVENT' in line:
                            stats['sync_events'] += 1
                        elif 'ERROR' in line:
                            stats['errors'] += 1
            
            return stats
            
        except OSError as e:
            return {'error': f'Failed to get stats: {str(e)}'}


# Global logger instance
game_logger = GameLogger(log_dir=Config.LOG_DIR, level=Config.LOG_LEVEL)
