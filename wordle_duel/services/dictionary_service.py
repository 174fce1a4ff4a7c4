"""
Dictionary Service

Word membership checks and secret selection for duels.
"""

import random
from typing import Iterable, List, Optional

from ..config.game_settings import ANSWER_WORDS, VALID_GUESSES


class WordDictionary:
    """
    Answer list plus accepted-guess list.
    
    The accepted set always includes every answer, so a secret can always be
    guessed.
    """
    
    def __init__(self,
                 answers: Optional[Iterable[str]] = None,
                 valid_guesses: Optional[Iterable[str]] = None,
                 rng: Optional[random.Random] = None):
        source_answers = ANSWER_WORDS if answers is None else answers
        source_guesses = VALID_GUESSES if valid_guesses is None else valid_guesses
        self.answers: List[str] = list(dict.fromkeys(word.upper() for word in source_answers))
        if not self.answers:
            raise ValueError("Answer list cannot be empty")
        self._accepted = set(self.answers) | {word.upper() for word in source_guesses}
        self._rng = rng or random.Random()
    
    def is_accepted_guess(self, word: str) -> bool:
        return (word or "").strip().upper() in self._accepted
    
    def pick_random_secret(self) -> str:
        return self._rng.choice(self.answers)
    
    def __len__(self) -> int:
        return len(self._accepted)
