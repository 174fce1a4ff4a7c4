"""
Guess Evaluation

Scores a guess against a secret word and tracks the best known status of every
keyboard letter for one participant.
"""

from typing import Dict, Iterable, List, Optional

from ..config.game_settings import WORD_LENGTH
from ..models.errors import InvalidGuessLength
from ..models.game import GuessRecord, LetterStatus, Verdict

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def normalize_word(word: str) -> str:
    """Case-normalize a word for comparison and storage."""
    return (word or "").strip().upper()


def evaluate_guess(secret: str, guess: str) -> Verdict:
    """
    Implements the two-pass Wordle letter evaluation.
    
    Exact matches are marked first and consumed from both working copies, so a
    repeated guess letter is only credited as many times as it occurs in the
    secret.
    
    Args:
        secret: The word being guessed
        guess: The submitted word
        
    Returns:
        Verdict tuple with one LetterStatus per position
        
    Raises:
        InvalidGuessLength: If either word is not WORD_LENGTH letters
    """
    secret = normalize_word(secret)
    guess = normalize_word(guess)
    for word in (secret, guess):
        if len(word) != WORD_LENGTH:
            raise InvalidGuessLength(word, WORD_LENGTH)
    
    result: List[Optional[LetterStatus]] = [None] * WORD_LENGTH
    secret_chars: List[Optional[str]] = list(secret)
    guess_chars: List[Optional[str]] = list(guess)
    
    # First pass: exact position matches
    for i in range(WORD_LENGTH):
        if guess_chars[i] == secret_chars[i]:
            result[i] = LetterStatus.CORRECT
            secret_chars[i] = None
            guess_chars[i] = None
    
    # Second pass: present letters consume one remaining occurrence each
    for i in range(WORD_LENGTH):
        if guess_chars[i] is None:
            continue
        letter = guess_chars[i]
        if letter in secret_chars:
            result[i] = LetterStatus.PRESENT
            secret_chars[secret_chars.index(letter)] = None
        else:
            result[i] = LetterStatus.ABSENT
    
    return tuple(result)


# Upgrade order for keyboard letters; a status never moves to a lower rank
_STATUS_RANK = {
    LetterStatus.UNUSED: 0,
    LetterStatus.ABSENT: 1,
    LetterStatus.PRESENT: 2,
    LetterStatus.CORRECT: 3,
}


class KeyboardTracker:
    """
    Cumulative best-known status per letter for one participant's own guesses.
    """
    
    def __init__(self, history: Iterable[GuessRecord] = ()):
        self.letter_status: Dict[str, LetterStatus] = {letter: LetterStatus.UNUSED for letter in ALPHABET}
        for record in history:
            self.record(record.guess, record.verdict)
    
    def record(self, guess: str, verdict: Verdict) -> None:
        """Fold one verdict into the tracked state."""
        for letter, new_status in zip(normalize_word(guess), verdict):
            current_status = self.letter_status.get(letter, LetterStatus.UNUSED)
            if _STATUS_RANK[new_status] > _STATUS_RANK[current_status]:
                self.letter_status[letter] = new_status
    
    def status_of(self, letter: str) -> LetterStatus:
        return self.letter_status.get(normalize_word(letter), LetterStatus.UNUSED)
    
    def to_dict(self) -> Dict[str, str]:
        return {letter: status.value for letter, status in self.letter_status.items()}
