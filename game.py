"""
Termalink Game Rules

Word catalog, round building and scoring.
Nothing in here touches sockets; randomness
is always passed in by the caller.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO, Tuple, Union
import random


class LoadError(Exception):
    """The word list could not be read."""
    pass


class InsufficientCandidatesError(Exception):
    """Not enough distinct words to fill a round."""
    def __init__(self, required: int, available: int, length: Optional[int] = None):
        self.required = required
        self.available = available
        self.length = length
        detail = f" of length {length}" if length is not None else ""
        super().__init__(
            f"Need {required} distinct words{detail} but only {available} available"
        )


###
# Word Catalog
###

def load_words(source: Union[str, Path, TextIO]) -> List[str]:
    """
    Read a newline separated word list.
    Surrounding whitespace is stripped and
    blank lines are dropped.
    """
    try:
        if hasattr(source, "read"):
            contents = source.read()
        else:
            with open(source, "r", encoding="utf-8") as file:
                contents = file.read()
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Unable to read word list {source}: {e}") from e

    words = [line.strip() for line in contents.splitlines()]
    return [w for w in words if w]


def filter_by_length(words: Iterable[str], length: int) -> List[str]:
    return [w for w in words if len(w) == length]


def sample_distinct(words: Sequence[str], count: int, rng: random.Random) -> List[str]:
    """
    Draw count distinct entries from words
    uniformly at random without replacement.
    """
    if count < 0:
        raise ValueError("count must not be negative")

    # dict keeps first-seen order so the draw is reproducible for a seed
    pool = list(dict.fromkeys(words))
    if count > len(pool):
        raise InsufficientCandidatesError(count, len(pool))

    return rng.sample(pool, count)


class WordCatalog:
    """
    Read-only word list shared by every session.
    """
    def __init__(self, words: Iterable[str]):
        self.words: Tuple[str, ...] = tuple(words)

    @classmethod
    def from_file(cls, source):
        return cls(load_words(source))

    def __len__(self):
        return len(self.words)

    def __iter__(self):
        return iter(self.words)

    def of_length(self, length: int) -> List[str]:
        return filter_by_length(self.words, length)

    def distinct_count(self, length: int) -> int:
        """Distinct passwords of a given length, ignoring case."""
        return len({w.upper() for w in self.of_length(length)})


###
# Round Builder
###

@dataclass(frozen=True)
class Round:
    attempts: int
    candidates: Tuple[str, ...]
    correct_word: str

    def __post_init__(self):
        assert self.correct_word in self.candidates
        assert len(set(self.candidates)) == len(self.candidates)
        assert all(len(c) == len(self.correct_word) for c in self.candidates)

    @property
    def word_length(self):
        return len(self.correct_word)


def build_round(attempts: int, word_length: int, candidate_count: int,
                words: Iterable[str], rng: random.Random) -> Round:
    """
    Pick candidate_count passwords of word_length
    characters and secretly mark one of them correct.
    """
    if attempts < 0:
        raise ValueError("attempts must not be negative")
    if word_length < 1:
        raise ValueError("word_length must be at least 1")
    if candidate_count < 1:
        raise ValueError("candidate_count must be at least 1")

    # Uppercase before sampling so that "Carpool" and "carpool"
    # can't both end up on screen as the same password
    pool = [w.upper() for w in filter_by_length(words, word_length)]
    try:
        candidates = sample_distinct(pool, candidate_count, rng)
    except InsufficientCandidatesError as e:
        raise InsufficientCandidatesError(e.required, e.available, word_length) from None

    correct_word = sample_distinct(candidates, 1, rng)[0]
    return Round(attempts, tuple(candidates), correct_word)


###
# Scoring
###

class Outcome(Enum):
    GRANTED = "granted"
    DENIED = "denied"
    INVALID = "invalid"


@dataclass(frozen=True)
class Evaluation:
    outcome: Outcome
    matches: int
    length: int

    @property
    def granted(self):
        return self.outcome is Outcome.GRANTED


def normalize(text: str) -> str:
    return text.strip().upper()


def is_valid_guess(guess: str, candidates: Iterable[str]) -> bool:
    """
    A guess only counts if it is one of the
    passwords on screen.
    """
    guess = normalize(guess)
    return any(guess == normalize(c) for c in candidates)


def positional_matches(a: str, b: str) -> int:
    """
    Number of letters in the same position.
    Ex: ("HELLO", "HEYHO") -> 3

    Both words are expected to be the same length;
    only the common prefix is compared otherwise.
    """
    return sum(1 for x, y in zip(a, b) if x == y)


def evaluate(guess: str, current_round: Round) -> Evaluation:
    guess = normalize(guess)
    length = current_round.word_length

    if not is_valid_guess(guess, current_round.candidates):
        return Evaluation(Outcome.INVALID, 0, length)

    if guess == current_round.correct_word:
        return Evaluation(Outcome.GRANTED, length, length)

    return Evaluation(Outcome.DENIED, positional_matches(guess, current_round.correct_word), length)
