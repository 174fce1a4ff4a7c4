"""
Game Configuration Constants Module

This module defines all game configuration constants for the duel. Word lists are
loaded from JSON files that live next to this module:

- answers.json: words that may be picked as a secret
- valid_guesses.json: additional words accepted as guesses

The accepted-guess list is always a superset of the answer list.
"""

import json
import os
from typing import List, Final

# Core Game Configuration Constants
WORD_LENGTH: Final[int] = 5
"""Number of letters in every secret and guess."""

MAX_ROUNDS: Final[int] = 6
"""
Maximum number of rounds in a duel.
Type: Final[int] - Immutable to prevent accidental modification
"""


def _load_word_file(file_name: str) -> List[str]:
    """
    Load a word list from a JSON file in the config directory.
    
    Args:
        file_name: Name of the JSON file holding an array of words
        
    Returns:
        List[str]: List of uppercase 5-letter words
        
    Raises:
        FileNotFoundError: If the file is not found
        ValueError: If the list is empty or contains invalid words
    """
    config_dir = os.path.dirname(os.path.abspath(__file__))
    json_file_path = os.path.join(config_dir, file_name)
    
    try:
        with open(json_file_path, 'r', encoding='utf-8') as f:
            word_list = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Word list file not found: {json_file_path}")
    
    if not isinstance(word_list, list):
        raise ValueError(f"{file_name} must contain an array of words")
        
    if not word_list:
        raise ValueError(f"{file_name} cannot be empty")
    
    uppercase_words = [word.upper() for word in word_list]
    
    for word in uppercase_words:
        if len(word) != WORD_LENGTH:
            raise ValueError(f"Word '{word}' is not {WORD_LENGTH} characters long")
        if not word.isalpha():
            raise ValueError(f"Word '{word}' contains non-alphabetic characters")
            
    return uppercase_words


# Secret candidates
ANSWER_WORDS: Final[List[str]] = _load_word_file('answers.json')

# Accepted guesses (answers plus the extra guess-only words, order preserved)
VALID_GUESSES: Final[List[str]] = list(dict.fromkeys(ANSWER_WORDS + _load_word_file('valid_guesses.json')))


def validate_word_list_integrity() -> bool:
    """
    Validates the integrity and consistency of the word database.
    
    Ensures every answer is uppercase, alphabetic, exactly WORD_LENGTH letters,
    unique, and also an accepted guess.
    
    Returns:
        bool: True if word lists pass all validation checks
        
    Raises:
        ValueError: If any validation check fails with detailed error message
    """
    if not ANSWER_WORDS:
        raise ValueError("Answer list cannot be empty")
    
    for index, word in enumerate(ANSWER_WORDS):
        if len(word) != WORD_LENGTH:
            raise ValueError(f"Word at index {index} '{word}' is not {WORD_LENGTH} characters long")
        
        if not word.isalpha():
            raise ValueError(f"Word at index {index} '{word}' contains non-alphabetic characters")
        
        if not word.isupper():
            raise ValueError(f"Word at index {index} '{word}' is not in uppercase format")
    
    if len(ANSWER_WORDS) != len(set(ANSWER_WORDS)):
        duplicates = sorted({word for word in ANSWER_WORDS if ANSWER_WORDS.count(word) > 1})
        raise ValueError(f"Duplicate words found in answer list: {duplicates}")
    
    missing = set(ANSWER_WORDS) - set(VALID_GUESSES)
    if missing:
        raise ValueError(f"Answers missing from accepted guesses: {sorted(missing)}")
    
    return True


def get_word_statistics() -> dict:
    """
    Analyzes the answer list and returns statistical information.
    
    Returns:
        dict: total_words, total_guesses, avg_vowel_count, letter_frequency,
        most_common_letters
    """
    if not ANSWER_WORDS:
        return {"error": "Word list is empty"}
    
    vowels = set('AEIOU')
    total_vowels = sum(len([char for char in word if char in vowels]) for word in ANSWER_WORDS)
    
    letter_frequency = {}
    for word in ANSWER_WORDS:
        for char in word:
            letter_frequency[char] = letter_frequency.get(char, 0) + 1
    
    return {
        "total_words": len(ANSWER_WORDS),
        "total_guesses": len(VALID_GUESSES),
        "avg_vowel_count": round(total_vowels / len(ANSWER_WORDS), 2),
        "letter_frequency": letter_frequency,
        "most_common_letters": sorted(letter_frequency.items(), key=lambda x: x[1], reverse=True)[:5]
    }


if __name__ == "__main__":

    try:
        validate_word_list_integrity()
        print(" Word list validation passed")
        
        stats = get_word_statistics()
        print(f" Game statistics: {stats}")
    except ValueError as config_error:
        print(f" Configuration validation failed: {config_error}")
        exit(1)
