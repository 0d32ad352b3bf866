#!/usr/bin/env python
"""
Fibble assistant.

Wordle, plus Fibble: the variant in which exactly one tile per row of feedback
is a lie.

- https://www.nytimes.com/games/wordle/index.html
- https://fibble.xyz/

The core is an inference engine that:

- scores a guess against a secret (with duplicate-letter accounting);
- filters the secret words down to those consistent with the feedback so far,
  either truthfully (Wordle) or allowing exactly one lie per row (Fibble);
- ranks possible next guesses by expected information (the Shannon entropy of
  the feedback patterns a guess would produce across the candidates);
- for Fibble, works out which tiles must have been (or cannot have been) the
  lie in each row.

Run self-tests with:

.. code-block:: bash

    pip install pytest
    pytest fibble.py

Play, or use the notebook to analyse a game you are playing elsewhere:

.. code-block:: bash

    ./fibble.py play --mode fibble
    ./fibble.py notebook --mode wordle
    ./fibble.py analyze_guess CRANE
    ./fibble.py test_performance --mode wordle --nwords 100

Word lists are plain text, one word per line. Wordle uses a long list of
allowed guesses (~13k words) and a short list of possible secrets (~2.3k
words); the secrets must all be allowed guesses. Suggestions are drawn from
the secrets only, which keeps the ranking fast enough to be interactive.

"""  # noqa

# =============================================================================
# Imports
# =============================================================================

import argparse
from collections import Counter
from contextlib import contextmanager
import csv
from enum import Enum
import logging
import math
from multiprocessing import cpu_count
import os
import random
import re
from statistics import median, mean
import sys
import tempfile
from timeit import default_timer as timer
from typing import (
    Any, Dict, Generator, Iterable, List, Optional, Pattern, Sequence, Set,
    Tuple
)
import unittest
from unittest import mock

from colors import color  # pip install ansicolors
from cardinal_pythonlib.lists import chunks
from cardinal_pythonlib.logs import (
    configure_logger_for_colour,
    main_only_quicksetup_rootlogger,
)
from cardinal_pythonlib.maths_py import round_sf
import numpy as np
import ray

rootlog = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Paths
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_OS_DICT = "/usr/share/dict/words"
DEFAULT_ALLOWED_WORDLIST = os.path.join(THIS_DIR, "wordle_allowed.txt")
DEFAULT_SECRET_WORDLIST = os.path.join(THIS_DIR, "wordle_secrets.txt")

# Defining the game
WORDLEN = 5
WORDLE_MAX_ATTEMPTS = 6
FIBBLE_MAX_ATTEMPTS = 9

# Characters for feedback typed by the user. The pattern codes ("0", "1",
# "2") are accepted too.
CHAR_ABSENT = "_"
CHAR_PRESENT = "-"
CHAR_CORRECT = "="
QUIT_WORD = "QUIT"

# Colours and styles for displaying guesses, via the ansicolors package
COLOUR_ABSENT = dict(fg="white", bg="black", style="bold")
COLOUR_PRESENT = dict(fg="white", bg="yellow", style="bold")
COLOUR_CORRECT = dict(fg="white", bg="green", style="bold")
STYLE_ALWAYS_LIE = "bold+underline"

# Lie hint markers, shown underneath a row
HINT_ALWAYS_LIE = "!"
HINT_NEVER_LIE = "."
HINT_UNKNOWN = "?"

# Defaults
DEFAULT_SUGGESTION_LIMIT = 10
DEFAULT_OPENER_RETRIES = 10
DEFAULT_BEST_GUESS_MAX_CANDIDATES = 200
DEFAULT_NPROC = cpu_count()
DEFAULT_SIG_FIGURES = 3

# Messages for an empty candidate set
MSG_NO_CANDIDATES_WORDLE = "No words match the given clues."
MSG_NO_CANDIDATES_FIBBLE = "Fibble lies make suggestions unreliable."


def word_regex(word_length: int = WORDLEN) -> Pattern:
    """
    Regular expression matching a word of the given length, for reading words
    from files or the user.
    """
    return re.compile(rf"^[A-Z]{{{word_length}}}$", re.IGNORECASE)


def feedback_regex(word_length: int = WORDLEN) -> Pattern:
    """
    Regular expression matching a feedback string typed by the user.
    """
    chars = re.escape(CHAR_ABSENT + CHAR_PRESENT + CHAR_CORRECT)
    return re.compile(rf"^[{chars}012]{{{word_length}}}$")


# =============================================================================
# Enums
# =============================================================================

class GameMode(Enum):
    """
    Rules for the feedback: truthful, or one lie per row.
    """
    WORDLE = "wordle"
    FIBBLE = "fibble"


class PlayStyle(Enum):
    """
    Either we are playing against a hidden secret, or we are annotating a
    game played elsewhere ("notebook"), with feedback entered by hand.
    """
    PLAY = "play"
    NOTEBOOK = "notebook"


class TileState(Enum):
    """
    Possible types of feedback about each character. The value is the code
    used in pattern strings.
    """
    ABSENT = "0"
    PRESENT = "1"
    CORRECT = "2"

    @property
    def plain_str(self) -> str:
        """
        Plain string representation.
        """
        if self == TileState.ABSENT:
            return CHAR_ABSENT
        elif self == TileState.PRESENT:
            return CHAR_PRESENT
        elif self == TileState.CORRECT:
            return CHAR_CORRECT
        else:
            raise AssertionError("bug")

    @property
    def colour_params(self) -> Dict[str, str]:
        if self == TileState.ABSENT:
            return COLOUR_ABSENT
        elif self == TileState.PRESENT:
            return COLOUR_PRESENT
        elif self == TileState.CORRECT:
            return COLOUR_CORRECT
        else:
            raise AssertionError("bug")

    def next_notebook_state(self) -> "TileState":
        """
        Notebook tiles cycle absent -> present -> correct -> absent.
        """
        cycle = NOTEBOOK_TILE_STATES
        return cycle[(cycle.index(self) + 1) % len(cycle)]

    @classmethod
    def from_char(cls, c: str) -> "TileState":
        """
        From a user-entered feedback character, or a pattern code.
        """
        if c in (CHAR_ABSENT, TileState.ABSENT.value):
            return cls.ABSENT
        elif c in (CHAR_PRESENT, TileState.PRESENT.value):
            return cls.PRESENT
        elif c in (CHAR_CORRECT, TileState.CORRECT.value):
            return cls.CORRECT
        raise ValueError(f"Bad feedback character: {c!r}")


NOTEBOOK_TILE_STATES = (
    TileState.ABSENT,
    TileState.PRESENT,
    TileState.CORRECT,
)
# The order in which a lie's replacement state is picked.
LIE_STATE_ORDER = (
    TileState.CORRECT,
    TileState.PRESENT,
    TileState.ABSENT,
)


# =============================================================================
# Exceptions
# =============================================================================

class FibbleError(Exception):
    """
    Base class for problems the user (or a calling program) can fix.
    """
    pass


class InvalidGuess(FibbleError, ValueError):
    """
    The guess is the wrong length or not an allowed word.
    """
    pass


class InvalidSecret(FibbleError, ValueError):
    """
    A requested secret is not one of the possible secrets.
    """
    pass


class GameOver(FibbleError, RuntimeError):
    """
    A guess was submitted to a game that has finished.
    """
    pass


class NotEditable(FibbleError, RuntimeError):
    """
    Feedback can only be edited by hand in notebook style.
    """
    pass


# =============================================================================
# Configuration
# =============================================================================

class GameConfig:
    """
    Parameters of a game, passed when a session is created.
    """
    def __init__(self,
                 word_length: int = WORDLEN,
                 max_attempts: Dict[GameMode, int] = None,
                 suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
                 opener_retries: int = DEFAULT_OPENER_RETRIES,
                 best_guess_max_candidates: int =
                 DEFAULT_BEST_GUESS_MAX_CANDIDATES,
                 nproc: int = 1) -> None:
        """
        Args:
            word_length:
                number of letters in every word
            max_attempts:
                attempt budget per game mode; modes not given use the
                defaults (6 for Wordle, 9 for Fibble)
            suggestion_limit:
                number of ranked suggestions to return
            opener_retries:
                how many times to re-draw the automatic Fibble opener if it
                happens to be the secret
            best_guess_max_candidates:
                advice only searches the whole allowed list for the most
                informative guess once this few candidates remain
            nproc:
                number of parallel processes used to rank suggestions
        """
        self.word_length = word_length
        self.max_attempts = {
            GameMode.WORDLE: WORDLE_MAX_ATTEMPTS,
            GameMode.FIBBLE: FIBBLE_MAX_ATTEMPTS,
        }  # type: Dict[GameMode, int]
        self.max_attempts.update(max_attempts or {})
        self.suggestion_limit = suggestion_limit
        self.opener_retries = opener_retries
        self.best_guess_max_candidates = best_guess_max_candidates
        self.nproc = nproc

    def max_attempts_for(self, mode: GameMode) -> int:
        return self.max_attempts[mode]


# =============================================================================
# Helper functions
# =============================================================================

# -----------------------------------------------------------------------------
# Formatting
# -----------------------------------------------------------------------------

def colourful_char(x: str, state: TileState, always_lie: bool = False) -> str:
    """
    Returns a string with ANSI codes to colour the character according to the
    feedback (and then reset afterwards). Tiles known to be the lie are
    underlined.
    """
    colour_params = dict(state.colour_params)
    if always_lie:
        colour_params["style"] = STYLE_ALWAYS_LIE
    return color(f" {x} ", **colour_params)


def prettylist(words: Iterable[Any]) -> str:
    """
    Formats a wordlist.
    """
    return ", ".join(str(x) for x in words)


def convert_sf(x: Optional[float],
               sig_fig: int = DEFAULT_SIG_FIGURES) -> Optional[float]:
    """
    Rounds to a certain number of significant figures.
    """
    if x is None or x == 0:
        return x
    return round_sf(x, sig_fig)


def flatten(x: Iterable[Any]) -> Iterable[Any]:
    """
    Flatten, for example, a list of lists to an iterable of the items.
    """
    for y in x:
        if isinstance(y, list):
            for item in y:
                yield item
        else:
            yield y


# -----------------------------------------------------------------------------
# Reading word lists
# -----------------------------------------------------------------------------

def make_wordlist(from_filename: str,
                  to_filename: str,
                  word_length: int = WORDLEN) -> None:
    """
    Reads a dictionary file and creates a list of words of the right length,
    in upper case.
    """
    rootlog.info(f"Reading from {from_filename}")
    rootlog.info(f"Writing to {to_filename}")
    regex = word_regex(word_length)
    n_read = 0
    words = set()  # type: Set[str]
    with open(from_filename, "rt") as f:
        for line in f:
            n_read += 1
            word = line.strip()
            if regex.match(word):
                words.add(word.upper())
    with open(to_filename, "wt") as t:
        for word in sorted(words):
            t.write(word + "\n")
    rootlog.info(f"Read {n_read} words from {from_filename}")
    rootlog.info(f"Wrote {len(words)} ({word_length}-letter) words to "
                 f"{to_filename}")


def make_np_array_words(words: Iterable[str],
                        word_length: int = WORDLEN) -> np.ndarray:
    """
    Converts to an appropriate Numpy array type.
    """
    return np.array(list(words), dtype=f"U{word_length}")


def read_words(wordlist_filename: str,
               word_length: int = WORDLEN,
               max_n: int = None) -> np.ndarray:
    """
    Read words from a newline-delimited file, upper-casing them. Lines that
    are not words of the right length are skipped, as are duplicates.
    """
    regex = word_regex(word_length)
    words = set()  # type: Set[str]
    n_skipped = 0
    with open(wordlist_filename) as f:
        for line in f:
            word = line.strip()
            if not regex.match(word):
                n_skipped += 1
                continue
            words.add(word.upper())
            if max_n is not None and len(words) >= max_n:
                rootlog.warning(f"Reading only {len(words)} words")
                break
    rootlog.debug(f"Read {len(words)} words from {wordlist_filename}; "
                  f"skipped {n_skipped} lines")
    return make_np_array_words(sorted(words), word_length)


class WordLists:
    """
    The two word collections a game needs: allowed guesses, and the (smaller)
    set of possible secrets. Read-only once created.
    """
    def __init__(self,
                 allowed: Iterable[str],
                 secrets: Iterable[str],
                 word_length: int = WORDLEN) -> None:
        allowed = [w.upper() for w in allowed]
        secrets = [w.upper() for w in secrets]
        regex = word_regex(word_length)
        bad = [w for w in allowed + secrets if not regex.match(w)]
        if bad:
            raise ValueError(
                f"Words that are not {word_length} letters: {bad[:5]}"
            )
        allowed_set = set(allowed)
        not_allowed = [w for w in secrets if w not in allowed_set]
        if not_allowed:
            raise ValueError(
                f"Secret words missing from the allowed list: "
                f"{not_allowed[:5]}"
            )
        self.word_length = word_length
        self.allowed = make_np_array_words(allowed, word_length)
        self.secrets = make_np_array_words(secrets, word_length)
        self.allowed_set = frozenset(allowed)
        self.secret_set = frozenset(secrets)

    def __str__(self) -> str:
        return (
            f"{len(self.allowed)} allowed words, "
            f"{len(self.secrets)} possible secrets"
        )

    @classmethod
    def from_files(cls,
                   allowed_filename: str,
                   secrets_filename: str,
                   word_length: int = WORDLEN) -> "WordLists":
        return cls(
            allowed=read_words(allowed_filename, word_length),
            secrets=read_words(secrets_filename, word_length),
            word_length=word_length,
        )

    def is_allowed(self, word: str) -> bool:
        return word in self.allowed_set


# -----------------------------------------------------------------------------
# Timing
# -----------------------------------------------------------------------------

@contextmanager
def time_section(name: str,
                 loglevel: int = logging.DEBUG) -> Generator[None, None, None]:
    start = timer()
    try:
        yield
    finally:
        end = timer()
        rootlog.log(loglevel, f"{name} took {end - start} s")


# =============================================================================
# Scoring
# =============================================================================

def score(secret: str, guess: str) -> Tuple[TileState, ...]:
    """
    The feedback Wordle gives for a guess, when the target is ``secret``.

    Duplicate letters: a guessed letter only earns "present" while there are
    copies of it in the secret not already accounted for. So we first mark
    exact matches, counting the secret's unmatched ("leftover") letters; then,
    left to right, each other guessed letter is "present" if a leftover copy
    remains (using it up), and "absent" otherwise. For example, if the secret
    has one E and the guess has two Es in the wrong places, only the first is
    "present"; and if one E in the guess is in the right place, the other is
    "absent".
    """
    assert len(secret) == len(guess), (
        f"Cannot score {guess!r} against {secret!r}: lengths differ"
    )
    feedback = [TileState.ABSENT] * len(guess)  # type: List[TileState]
    leftovers = Counter()  # type: Counter
    for pos, (s_char, g_char) in enumerate(zip(secret, guess)):
        if g_char == s_char:
            feedback[pos] = TileState.CORRECT
        else:
            leftovers[s_char] += 1
    for pos, g_char in enumerate(guess):
        if feedback[pos] == TileState.CORRECT:
            continue
        if leftovers[g_char] > 0:
            feedback[pos] = TileState.PRESENT
            leftovers[g_char] -= 1
    return tuple(feedback)


def pattern_from_states(states: Iterable[TileState]) -> str:
    """
    The pattern string (e.g. "02212") for some feedback. Two secrets give the
    same pattern for a guess if and only if the guess cannot tell them apart.
    """
    return "".join(s.value for s in states)


def calculate_pattern(secret: str, guess: str) -> str:
    return pattern_from_states(score(secret, guess))


def states_from_str(feedback_str: str) -> List[TileState]:
    """
    Create coded feedback from a string, in either our user format
    (``_-=``) or pattern codes (``012``).
    """
    return [TileState.from_char(c) for c in feedback_str]


# -----------------------------------------------------------------------------
# Tiles and guess records
# -----------------------------------------------------------------------------

class Tile:
    """
    One letter of a guess, and the feedback reported for it.
    """
    def __init__(self, letter: str, state: TileState) -> None:
        self.letter = letter
        self.state = state

    def __repr__(self) -> str:
        return f"Tile({self.letter!r}, {self.state})"

    def __eq__(self, other: "Tile") -> bool:
        if not isinstance(other, Tile):
            return NotImplemented
        return self.letter == other.letter and self.state == other.state


class GuessRecord:
    """
    A guessed word and the feedback reported for it (which, in Fibble, is not
    entirely truthful).
    """
    def __init__(self,
                 word: str,
                 states: Sequence[TileState],
                 auto: bool = False) -> None:
        """
        Args:
            word: the word guessed
            states: the feedback reported, character by character
            auto: was this the automatic Fibble opener?
        """
        assert len(word) == len(states)
        self.word = word.upper()
        self.tiles = [
            Tile(letter, state) for letter, state in zip(self.word, states)
        ]
        self.auto = auto

    @classmethod
    def get_from_known_word(cls, guess: str, secret: str,
                            auto: bool = False) -> "GuessRecord":
        """
        The truthful record for a guess, given the secret (or a hypothesised
        secret).
        """
        return cls(guess, score(secret, guess), auto=auto)

    @classmethod
    def get_from_strings(cls, guess: str, feedback_str: str) -> "GuessRecord":
        """
        Use our string formats to create a record.
        """
        return cls(guess, states_from_str(feedback_str))

    @property
    def states(self) -> Tuple[TileState, ...]:
        return tuple(t.state for t in self.tiles)

    @property
    def pattern(self) -> str:
        return pattern_from_states(self.states)

    def correct(self) -> bool:
        """
        Does the feedback (as reported) say the guess was correct?
        """
        return all(t.state == TileState.CORRECT for t in self.tiles)

    def __eq__(self, other: "GuessRecord") -> bool:
        if not isinstance(other, GuessRecord):
            return NotImplemented
        return self.word == other.word and self.states == other.states

    def colourful_str(self, hints: Sequence["LieHint"] = None) -> str:
        """
        Colourful string representation, underlining tiles known to be lies.
        """
        hints = hints or [None] * len(self.tiles)
        return "".join(
            colourful_char(t.letter, t.state,
                           always_lie=bool(h and h.always_lie))
            for t, h in zip(self.tiles, hints)
        )

    @property
    def plain_str(self) -> str:
        feedback = "".join(t.state.plain_str for t in self.tiles)
        return f"{self.word}/{feedback}"

    def __str__(self) -> str:
        return self.plain_str

    def __repr__(self) -> str:
        return (
            f"GuessRecord({self.word!r}, {self.pattern!r}, auto={self.auto})"
        )


# =============================================================================
# Lies
# =============================================================================

def random_lie_state(state: TileState, rng: random.Random) -> TileState:
    """
    A false state for a tile: one of the two other states, with equal
    probability.
    """
    return rng.choice([s for s in LIE_STATE_ORDER if s != state])


def apply_lie(tiles: Sequence[Tile], rng: random.Random) -> List[Tile]:
    """
    Returns a copy of the tiles in which exactly one, chosen at random, has
    had its state falsified.
    """
    lied = [Tile(t.letter, t.state) for t in tiles]
    if not lied:
        return lied
    lie_index = rng.randrange(len(lied))
    original = lied[lie_index]
    lied[lie_index] = Tile(original.letter,
                           random_lie_state(original.state, rng))
    return lied


def find_lie_index(actual: Sequence[TileState],
                   reported: Sequence[TileState]) -> Optional[int]:
    """
    If the reported feedback differs from the true feedback in exactly one
    position, returns that position. Otherwise (no lie, or more than one)
    returns None.
    """
    if len(actual) != len(reported):
        return None
    lie_index = None  # type: Optional[int]
    for pos, (a, r) in enumerate(zip(actual, reported)):
        if a != r:
            if lie_index is not None:
                return None
            lie_index = pos
    return lie_index


def guess_matches_secret(secret: str, record: GuessRecord) -> bool:
    """
    Fibble rule: is this row consistent with ``secret``, i.e. does it contain
    exactly one lie?
    """
    truth = score(secret, record.word)
    lies = 0
    for actual, tile in zip(truth, record.tiles):
        if actual != tile.state:
            lies += 1
            if lies > 1:
                return False
    return lies == 1


# =============================================================================
# Filtering
# =============================================================================

def wordle_guess_matches(secret: str, record: GuessRecord) -> bool:
    """
    Wordle rule: the row must be exactly the feedback ``secret`` would give.
    """
    return calculate_pattern(secret, record.word) == record.pattern


def secret_matches_history(secret: str,
                           history: Sequence[GuessRecord],
                           mode: GameMode) -> bool:
    if mode == GameMode.WORDLE:
        return all(wordle_guess_matches(secret, r) for r in history)
    elif mode == GameMode.FIBBLE:
        return all(guess_matches_secret(secret, r) for r in history)
    else:
        raise AssertionError("bug")


def possible_secrets(secrets: Iterable[str],
                     history: Sequence[GuessRecord],
                     mode: GameMode) -> List[str]:
    """
    The secrets consistent with every row of the history, under the rules of
    the game mode. With no history, that is all of them.
    """
    if not history:
        return [str(w) for w in secrets]
    return [
        str(w) for w in secrets
        if secret_matches_history(w, history, mode)
    ]


# =============================================================================
# Lie hints
# =============================================================================

class LieHint:
    """
    What we know about whether one tile was the lie in its row.
    """
    def __init__(self, always_lie: bool = False,
                 never_lie: bool = False) -> None:
        assert not (always_lie and never_lie)
        self.always_lie = always_lie
        self.never_lie = never_lie

    def __eq__(self, other: "LieHint") -> bool:
        if not isinstance(other, LieHint):
            return NotImplemented
        return (
            self.always_lie == other.always_lie
            and self.never_lie == other.never_lie
        )

    def __repr__(self) -> str:
        return (
            f"LieHint(always_lie={self.always_lie}, "
            f"never_lie={self.never_lie})"
        )

    @property
    def plain_str(self) -> str:
        if self.always_lie:
            return HINT_ALWAYS_LIE
        if self.never_lie:
            return HINT_NEVER_LIE
        return HINT_UNKNOWN


def compute_lie_hints(candidates: Sequence[str],
                      history: Sequence[GuessRecord]) \
        -> List[List[LieHint]]:
    """
    For each row of a Fibble history and each tile, is that tile the lie
    under every remaining hypothesis (``always_lie``), or under none
    (``never_lie``)?

    Each candidate secret is a hypothesis about the whole history: it is
    counted only if it implies exactly one lie in every row. Returns an empty
    list if there are no candidates or no history.
    """
    if not candidates or not history:
        return []
    n_rows = len(history)
    word_length = len(history[0].tiles)
    lie_counts = np.zeros((n_rows, word_length), dtype=int)
    n_hypotheses = 0
    for secret in candidates:
        lie_indexes = []  # type: List[int]
        for record in history:
            lie_index = find_lie_index(score(secret, record.word),
                                       record.states)
            if lie_index is None:
                break
            lie_indexes.append(lie_index)
        else:
            for row, lie_index in enumerate(lie_indexes):
                lie_counts[row, lie_index] += 1
            n_hypotheses += 1
    rootlog.debug(f"Lie hints from {n_hypotheses} of {len(candidates)} "
                  f"candidates")
    return [
        [
            LieHint(
                always_lie=n_hypotheses > 0 and count == n_hypotheses,
                never_lie=n_hypotheses > 0 and count == 0,
            )
            for count in lie_counts[row]
        ]
        for row in range(n_rows)
    ]


# =============================================================================
# Information: entropy of guesses
# =============================================================================

class GuessEntropy:
    """
    How a guess splits a set of possible secrets by feedback pattern.
    """
    def __init__(self, guess: str, counts: Counter) -> None:
        self.guess = guess
        self.counts = counts

    @property
    def total_secrets(self) -> int:
        return sum(self.counts.values())

    @property
    def distinct_patterns(self) -> int:
        return len(self.counts)

    def pattern_counts(self) -> List[Tuple[str, int]]:
        """
        Each pattern and how many secrets yield it, in pattern order.
        """
        return sorted(self.counts.items())

    @property
    def entropy_bits(self) -> float:
        """
        Shannon entropy (in bits) of the pattern distribution, assuming all
        secrets are equiprobable. Summed in a fixed order, so that guesses
        that split the secrets equally well get identical values.
        """
        total = self.total_secrets
        entropy = 0.0
        if not total:
            return entropy
        for count in sorted(self.counts.values()):
            p = count / total
            entropy -= p * math.log2(p)
        return entropy


def analyze_guess_against(guess: str,
                          secrets: Iterable[str]) -> GuessEntropy:
    """
    Partitions the secrets by the (truthful) pattern the guess would produce.
    """
    return GuessEntropy(
        guess=str(guess),
        counts=Counter(calculate_pattern(s, guess) for s in secrets),
    )


def analyze_guess(word_lists: WordLists, guess: str) -> GuessEntropy:
    """
    Analyses an allowed guess against every possible secret.
    """
    guess = normalize_word(guess, word_lists)
    return analyze_guess_against(guess, word_lists.secrets)


class Suggestion:
    """
    A possible next guess and its expected information.
    """
    def __init__(self, word: str, entropy: float,
                 is_candidate: bool) -> None:
        self.word = word
        self.entropy = entropy
        self.is_candidate = is_candidate

    def __str__(self) -> str:
        star = "*" if self.is_candidate else ""
        return f"{self.word}{star} ({convert_sf(self.entropy)} bits)"

    def __repr__(self) -> str:
        return (
            f"Suggestion({self.word!r}, {self.entropy!r}, "
            f"is_candidate={self.is_candidate})"
        )

    def __eq__(self, other: "Suggestion") -> bool:
        if not isinstance(other, Suggestion):
            return NotImplemented
        return self.rank_key == other.rank_key

    def __hash__(self) -> int:
        return hash(self.rank_key)

    @property
    def rank_key(self) -> Tuple[float, bool, str]:
        """
        Best first: most information, then words that might be the answer,
        then alphabetical.
        """
        return -self.entropy, not self.is_candidate, self.word


def score_guesses(guesses: Iterable[str],
                  candidates: Sequence[str],
                  candidate_set: Set[str]) -> List[Suggestion]:
    return [
        Suggestion(
            word=str(g),
            entropy=analyze_guess_against(g, candidates).entropy_bits,
            is_candidate=g in candidate_set,
        )
        for g in guesses
    ]


@ray.remote
def score_guesses_ray(guesses: List[str],
                      candidates: List[str],
                      candidate_set: Set[str]) -> List[Suggestion]:
    """
    Worker task for the parallel version: scores a subset of the guesses.
    """
    return score_guesses(guesses, candidates, candidate_set)


def rank_guesses(guess_universe: Iterable[str],
                 candidates: Sequence[str],
                 limit: int = DEFAULT_SUGGESTION_LIMIT,
                 nproc: int = 1) -> List[Suggestion]:
    """
    Ranks every word in ``guess_universe`` by the entropy of the partition it
    induces over ``candidates``, and returns the best ``limit`` of them.
    Feedback is assumed truthful, even in Fibble. No candidates, no
    suggestions.
    """
    if not candidates:
        return []
    candidates = [str(w) for w in candidates]
    candidate_set = set(candidates)
    guesses = [str(w) for w in guess_universe]
    with time_section(f"Ranking {len(guesses)} guesses against "
                      f"{len(candidates)} candidates"):
        if nproc > 1:
            words_per_chunk = max(1, math.ceil(len(guesses) / nproc))
            scored = list(flatten(ray.get([
                score_guesses_ray.remote(chunk, candidates, candidate_set)
                for chunk in chunks(guesses, words_per_chunk)
            ])))
        else:
            scored = score_guesses(guesses, candidates, candidate_set)
    scored.sort(key=lambda s: s.rank_key)
    return scored[:limit]


def best_information_guess(word_lists: WordLists,
                           candidates: Sequence[str],
                           nproc: int = 1) -> Optional[GuessEntropy]:
    """
    The guess from the whole allowed list (not just the secrets) that tells
    us most about the candidates. It may be a word that cannot be the answer.
    Returns None if there are no candidates.
    """
    if not candidates:
        return None
    best = rank_guesses(word_lists.allowed, candidates, limit=1,
                        nproc=nproc)[0]
    return analyze_guess_against(best.word, candidates)


class EntropyCache:
    """
    Remembers the last ranked suggestions and the key (game mode, play style,
    and the words/patterns of the history) they were computed for. Looking up
    a different key discards them.
    """
    def __init__(self) -> None:
        self.key = None  # type: Optional[Tuple]
        self.results = []  # type: List[Suggestion]

    def get(self, key: Tuple) -> Optional[List[Suggestion]]:
        if self.key == key and self.results:
            return self.results
        self.clear()
        return None

    def store(self, key: Tuple, results: List[Suggestion]) -> None:
        self.key = key
        self.results = results

    def clear(self) -> None:
        self.key = None
        self.results = []


# =============================================================================
# Sessions
# =============================================================================

def normalize_word(word: str, word_lists: WordLists) -> str:
    """
    Upper-cases a guess and checks that it is allowed.
    """
    normalized = word.strip().upper()
    n = word_lists.word_length
    if len(normalized) != n:
        raise InvalidGuess(
            f"Guesses must be exactly {n} letters; "
            f"{normalized!r} has {len(normalized)}."
        )
    if not word_lists.is_allowed(normalized):
        raise InvalidGuess(f"{normalized} is not on the allowed list.")
    return normalized


class Session:
    """
    One game (or notebook), and the only owner of its history. All the
    inference is recomputed from the history on demand.
    """
    def __init__(self,
                 word_lists: WordLists,
                 mode: GameMode,
                 style: PlayStyle,
                 config: GameConfig = None,
                 rng: random.Random = None) -> None:
        """
        Args:
            word_lists: allowed guesses and possible secrets
            mode: Wordle or Fibble
            style: playing against a secret, or notebook
            config: game parameters
            rng: source of randomness (secret, opener, lies)

        Call :meth:`new_game` before use (or use :func:`start_session`).
        """
        self.word_lists = word_lists
        self.mode = mode
        self.style = style
        self.config = config or GameConfig(word_length=word_lists.word_length)
        if self.config.word_length != word_lists.word_length:
            raise ValueError(
                f"Config is for {self.config.word_length}-letter words, but "
                f"the word lists have {word_lists.word_length}-letter words"
            )
        self.rng = rng or random.Random()
        self.secret = None  # type: Optional[str]
        self.solved = False
        self._history = []  # type: List[GuessRecord]
        self._entropy_cache = EntropyCache()

    # -------------------------------------------------------------------------
    # Starting
    # -------------------------------------------------------------------------

    def new_game(self, secret: str = None) -> None:
        """
        Discards the history and starts again, in the same mode and style.
        In play style, uses ``secret`` or picks one at random; Fibble then
        makes an automatic opening guess.
        """
        self._history = []
        self._entropy_cache.clear()
        self.solved = False
        self.secret = None
        if self.style == PlayStyle.NOTEBOOK:
            if secret is not None:
                raise InvalidSecret("Notebook sessions have no secret.")
            return
        if secret is not None:
            secret = secret.strip().upper()
            if secret not in self.word_lists.secret_set:
                raise InvalidSecret(
                    f"{secret} is not one of the possible secrets."
                )
            self.secret = secret
        else:
            self.secret = str(self.rng.choice(self.word_lists.secrets))
        rootlog.debug(f"New {self.mode.value} game")
        if self.mode == GameMode.FIBBLE:
            self._make_automatic_opener()

    def _make_automatic_opener(self) -> None:
        secrets = self.word_lists.secrets
        opener = str(self.rng.choice(secrets))
        if len(secrets) > 1:
            for _ in range(self.config.opener_retries):
                if opener != self.secret:
                    break
                opener = str(self.rng.choice(secrets))
        self._record_guess(opener, auto=True)

    # -------------------------------------------------------------------------
    # Guessing
    # -------------------------------------------------------------------------

    def submit_guess(self, word: str) -> GuessRecord:
        """
        Records a guess. In play style, the feedback is generated (with a lie,
        in Fibble); in notebook style, every tile starts absent, to be edited.

        Raises:
            InvalidGuess: the word is the wrong length or not allowed; the
                history is unchanged
            GameOver: the game has already finished
        """
        if self.complete:
            raise GameOver(
                f"Game over. The word was {self.secret}. "
                f"Start a new one to keep playing!"
            )
        guess = normalize_word(word, self.word_lists)
        return self._record_guess(guess, auto=False)

    def _record_guess(self, guess: str, auto: bool) -> GuessRecord:
        if self.style == PlayStyle.NOTEBOOK:
            record = GuessRecord(guess, [TileState.ABSENT] * len(guess))
        else:
            record = GuessRecord.get_from_known_word(guess, self.secret,
                                                     auto=auto)
            if self.mode == GameMode.FIBBLE:
                record.tiles = apply_lie(record.tiles, self.rng)
            self.solved = guess == self.secret
        self._history.append(record)
        return record

    # -------------------------------------------------------------------------
    # Editing feedback (notebook style)
    # -------------------------------------------------------------------------

    def _editable_row(self, row_index: int) -> GuessRecord:
        if self.style != PlayStyle.NOTEBOOK:
            raise NotEditable("Tiles can only be edited in notebook style.")
        if not 0 <= row_index < len(self._history):
            raise IndexError(f"No guess in row {row_index}")
        return self._history[row_index]

    def cycle_tile_state(self, row_index: int, column_index: int) -> None:
        """
        Advances one tile: absent -> present -> correct -> absent.
        """
        record = self._editable_row(row_index)
        if not 0 <= column_index < len(record.tiles):
            raise IndexError(f"No tile in column {column_index}")
        tile = record.tiles[column_index]
        tile.state = tile.state.next_notebook_state()

    def set_row_states(self, row_index: int,
                       states: Sequence[TileState]) -> None:
        """
        Sets all the feedback for one row.
        """
        record = self._editable_row(row_index)
        if len(states) != len(record.tiles):
            raise ValueError(
                f"Need {len(record.tiles)} tile states; got {len(states)}"
            )
        for tile, state in zip(record.tiles, states):
            tile.state = state

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def history(self) -> List[GuessRecord]:
        """
        Copies of the guesses so far; changing them does not change the game.
        """
        return [
            GuessRecord(r.word, r.states, auto=r.auto) for r in self._history
        ]

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts_for(self.mode)

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - len(self._history), 0)

    @property
    def complete(self) -> bool:
        """
        Has the game finished? (Notebooks never do.)
        """
        if self.style == PlayStyle.NOTEBOOK:
            return False
        return self.solved or len(self._history) >= self.max_attempts

    def get_candidates(self) -> List[str]:
        with time_section("Filtering secrets"):
            return possible_secrets(self.word_lists.secrets, self._history,
                                    self.mode)

    def get_candidate_count(self) -> int:
        return len(self.get_candidates())

    def _entropy_cache_key(self) -> Tuple:
        return (
            self.mode,
            self.style,
            tuple((r.word, r.pattern) for r in self._history),
        )

    def get_suggestions(self) -> List[Suggestion]:
        """
        The best next guesses, drawn from the possible secrets. Empty if no
        secret is consistent with the history.
        """
        key = self._entropy_cache_key()
        cached = self._entropy_cache.get(key)
        if cached is not None:
            return list(cached)
        candidates = self.get_candidates()
        if not candidates:
            return []
        ranked = rank_guesses(self.word_lists.secrets, candidates,
                              limit=self.config.suggestion_limit,
                              nproc=self.config.nproc)
        self._entropy_cache.store(key, ranked)
        return list(ranked)

    def get_lie_hints(self) -> List[List[LieHint]]:
        """
        Per row, per tile: must that tile have been the lie, or can it not
        have been? Fibble only; empty otherwise.
        """
        if self.mode != GameMode.FIBBLE:
            return []
        return compute_lie_hints(self.get_candidates(), self._history)

    @property
    def no_candidates_message(self) -> str:
        if self.mode == GameMode.FIBBLE:
            return MSG_NO_CANDIDATES_FIBBLE
        return MSG_NO_CANDIDATES_WORDLE

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def board_str(self) -> str:
        """
        The guesses so far, one per line, with lie hints underneath each row
        in Fibble.
        """
        hints = self.get_lie_hints()
        lines = []  # type: List[str]
        for row, record in enumerate(self._history):
            row_hints = hints[row] if hints else None
            line = record.colourful_str(row_hints)
            if record.auto:
                line += " (automatic opener)"
            lines.append(line)
            if row_hints:
                lines.append(
                    "".join(f" {h.plain_str} " for h in row_hints)
                )
        return "\n".join(lines)


def start_session(word_lists: WordLists,
                  mode: GameMode,
                  style: PlayStyle,
                  secret: str = None,
                  config: GameConfig = None,
                  rng: random.Random = None) -> Session:
    """
    Creates a session and starts its first game.
    """
    session = Session(word_lists, mode, style, config=config, rng=rng)
    session.new_game(secret)
    return session


# =============================================================================
# Interactive use
# =============================================================================

def show_advice(session: Session,
                log: logging.Logger = None) -> None:
    """
    Tells the user how many words remain and what to guess next.
    """
    log = log or rootlog
    candidates = session.get_candidates()
    if not candidates:
        log.info(session.no_candidates_message)
        return
    suggestions = session.get_suggestions()
    possibilities = (
        f": {prettylist(candidates)}" if len(candidates) <= 10 else ""
    )
    log.info(
        f"- Number of possible words: {len(candidates)}{possibilities}\n"
        f"- Top {len(suggestions)} suggestions (* = possible answer): "
        f"{prettylist(suggestions)}"
    )
    if len(candidates) <= session.config.best_guess_max_candidates:
        best = best_information_guess(session.word_lists, candidates,
                                      nproc=session.config.nproc)
        log.info(
            f"- Most informative allowed guess: {best.guess} "
            f"({best.distinct_patterns} patterns across "
            f"{best.total_secrets} possible words; "
            f"{convert_sf(best.entropy_bits)} bits)"
        )


def play_interactive(word_lists: WordLists,
                     mode: GameMode,
                     secret: str = None,
                     seed: int = None,
                     advice_top_n: int = DEFAULT_SUGGESTION_LIMIT,
                     nproc: int = 1) -> None:
    """
    Play against a hidden secret, with advice.
    """
    config = GameConfig(word_length=word_lists.word_length,
                        suggestion_limit=advice_top_n,
                        nproc=nproc)
    session = start_session(word_lists, mode, PlayStyle.PLAY, secret=secret,
                            config=config, rng=random.Random(seed))
    wordlen = word_lists.word_length
    rootlog.info(
        f"Try to guess the {wordlen}-letter word in "
        f"{session.max_attempts} attempts. Type '{QUIT_WORD.lower()}' to exit."
    )
    if mode == GameMode.FIBBLE:
        rootlog.info("Fibble: one tile in every row is a lie. "
                     "Here is an automatic opener.")
    while not session.complete:
        if session.history:
            print(session.board_str())
        show_advice(session)
        attempt = len(session.history) + 1
        try:
            guess = input(
                f"Guess {attempt}/{session.max_attempts}: "
            ).strip().upper()
        except EOFError:
            rootlog.info("No input detected, exiting.")
            return
        if guess == QUIT_WORD:
            rootlog.info("Come back soon!")
            return
        try:
            session.submit_guess(guess)
        except InvalidGuess as e:
            rootlog.info(str(e))
    print(session.board_str())
    n = len(session.history)
    if session.solved:
        rootlog.info(f"Nice! You solved it in {n} guess"
                     f"{'' if n == 1 else 'es'}.")
    else:
        rootlog.info(f"Out of guesses! The word was {session.secret}.")


def read_guess_from_user(session: Session) -> Optional[Tuple[str, str]]:
    """
    Reads a word and its feedback (as shown by the real game) from the user.
    Returns None if the user wants to stop.
    """
    wordlen = session.word_lists.word_length
    fb_regex = feedback_regex(wordlen)
    while True:
        word = input(f"> Enter the {wordlen}-letter word "
                     f"('{QUIT_WORD.lower()}' to stop): ").strip().upper()
        if word == QUIT_WORD:
            return None
        try:
            word = normalize_word(word, session.word_lists)
        except InvalidGuess as e:
            rootlog.info(str(e))
            continue
        feedback_str = ""
        while not fb_regex.match(feedback_str):
            feedback_str = input(
                f"Enter the feedback ({CHAR_ABSENT!r} absent, "
                f"{CHAR_PRESENT!r} present but wrong location, "
                f"{CHAR_CORRECT!r} correct location): "
            ).strip()
        return word, feedback_str


def notebook_interactive(word_lists: WordLists,
                         mode: GameMode,
                         advice_top_n: int = DEFAULT_SUGGESTION_LIMIT,
                         nproc: int = 1) -> None:
    """
    Analyse a game being played elsewhere: the user enters each guess and the
    feedback it got, and we advise.
    """
    config = GameConfig(word_length=word_lists.word_length,
                        suggestion_limit=advice_top_n,
                        nproc=nproc)
    session = start_session(word_lists, mode, PlayStyle.NOTEBOOK,
                            config=config)
    if mode == GameMode.FIBBLE:
        rootlog.info("Fibble notebook: enter the feedback exactly as shown, "
                     "lie included.")
    else:
        rootlog.info("Wordle notebook: enter your real guesses and their "
                     "feedback.")
    while True:
        show_advice(session)
        try:
            entry = read_guess_from_user(session)
        except EOFError:
            rootlog.info("No input detected, exiting.")
            return
        if entry is None:
            return
        word, feedback_str = entry
        try:
            record = session.submit_guess(word)
        except InvalidGuess as e:
            rootlog.info(str(e))
            continue
        session.set_row_states(len(session.history) - 1,
                               states_from_str(feedback_str))
        print(session.board_str())
        if mode == GameMode.WORDLE and record.correct():
            rootlog.info(f"Solved in {len(session.history)} guesses.")
            return


# =============================================================================
# Autosolver and performance testing
# =============================================================================

def autosolve(target: str,
              word_lists: WordLists,
              mode: GameMode,
              first_guess: str = None,
              seed: int = None,
              log: logging.Logger = None) -> Session:
    """
    Plays a game automatically, always making the top suggestion (or the only
    possibility, once there is just one). Returns the finished session.
    """
    log = log or rootlog
    session = start_session(word_lists, mode, PlayStyle.PLAY, secret=target,
                            rng=random.Random(seed))
    while not session.complete:
        candidates = session.get_candidates()
        if len(candidates) == 1:
            guess = candidates[0]
        elif first_guess and not session.history:
            guess = first_guess
        else:
            suggestions = session.get_suggestions()
            if not suggestions:
                log.warning(f"Abandoning word {target}: "
                            f"{session.no_candidates_message}")
                break
            guess = suggestions[0].word
        session.submit_guess(guess)
    log.debug(f"Word {target}: guesses "
              f"{prettylist(r.plain_str for r in session.history)}")
    return session


def autosolve_batch(targets: Iterable[str],
                    word_lists: WordLists,
                    mode: GameMode,
                    first_guess: str = None,
                    seed: int = None,
                    log: logging.Logger = None) \
        -> List[Tuple[str, int, bool]]:
    """
    Autosolves several words; returns tuples: word, n_guesses, solved.
    """
    results = []  # type: List[Tuple[str, int, bool]]
    for target in targets:
        with time_section("Word"):
            session = autosolve(str(target), word_lists, mode,
                                first_guess=first_guess, seed=seed, log=log)
        results.append((str(target), len(session.history), session.solved))
    return results


@ray.remote
def autosolve_ray(targets: List[str],
                  word_lists: WordLists,
                  mode: GameMode,
                  first_guess: str = None,
                  seed: int = None,
                  loglevel: int = logging.INFO) \
        -> List[Tuple[str, int, bool]]:
    """
    Ray version! Batched.
    """
    raylog = logging.getLogger(__name__)
    configure_logger_for_colour(raylog, level=loglevel)
    return autosolve_batch(targets, word_lists, mode,
                           first_guess=first_guess, seed=seed, log=raylog)


def measure_algorithm_performance(
        word_lists: WordLists,
        output_filename: str,
        mode: GameMode = GameMode.WORDLE,
        nwords: int = None,
        nproc: int = DEFAULT_NPROC,
        seed: int = None,
        chunks_per_worker: int = 5,
        loglevel: int = logging.INFO) -> None:
    """
    Autosolves every secret (or the first ``nwords``) and reports how many
    guesses it took.
    """
    test_words = [str(w) for w in word_lists.secrets[:nwords]]
    n_words = len(test_words)
    if nproc > 1:
        rootlog.info("Starting Ray")
        ray.init(num_cpus=nproc)
    first_guess = None  # type: Optional[str]
    if mode == GameMode.WORDLE:
        # The first suggestion is the same for every word; work it out once.
        first_guess = rank_guesses(word_lists.secrets, word_lists.secrets,
                                   limit=1, nproc=nproc)[0].word
        rootlog.info(f"First guess: {first_guess}")
    guess_counts = []  # type: List[int]
    n_solved = 0
    with open(output_filename, "wt") as f:
        writer = csv.writer(f)
        writer.writerow(["mode", "word", "n_guesses", "solved"])

        def record(results: List[Tuple[str, int, bool]]) -> None:
            nonlocal n_solved
            for word, n_guesses, solved in results:
                writer.writerow([mode.value, word, n_guesses, int(solved)])
                f.flush()  # nice to be able to follow the output live
                guess_counts.append(n_guesses)
                n_solved += int(solved)

        if nproc > 1:
            words_per_chunk = max(1, n_words // (nproc * chunks_per_worker))
            pending_jobs = [
                autosolve_ray.remote(targets, word_lists, mode,
                                     first_guess=first_guess, seed=seed,
                                     loglevel=loglevel)
                for targets in chunks(test_words, words_per_chunk)
            ]
            rootlog.info(f"Submitted {len(pending_jobs)} jobs, aiming for "
                         f"{words_per_chunk} words per job")
            while len(pending_jobs):
                done_jobs, pending_jobs = ray.wait(pending_jobs)
                for done_job in done_jobs:
                    record(ray.get(done_job))
        else:
            record(autosolve_batch(test_words, word_lists, mode,
                                   first_guess=first_guess, seed=seed))

    n_tests = len(guess_counts)
    assert n_tests > 0, "No words!"
    tested = (
        f"all {n_tests} known" if nwords is None
        else f"the first {n_tests}"
    )
    rootlog.info(
        f"Across {tested} words, {mode.value} took: "
        f"min {min(guess_counts)}, "
        f"median {median(guess_counts)}, "
        f"mean {convert_sf(mean(guess_counts))}, "
        f"max {max(guess_counts)} guesses; "
        f"solved {n_solved} ({convert_sf(100 * n_solved / n_tests)}%)"
    )


# =============================================================================
# Self-testing
# =============================================================================

class ScriptedRandom(random.Random):
    """
    Random source that returns pre-arranged values, for tests.
    """
    def __init__(self, choices: Sequence[Any] = (),
                 indexes: Sequence[int] = ()) -> None:
        super().__init__(0)
        self.choices = list(choices)
        self.indexes = list(indexes)

    def choice(self, seq: Sequence[Any]) -> Any:
        value = self.choices.pop(0)
        assert value in seq, f"{value!r} not available"
        return value

    def randrange(self, *args: Any, **kwargs: Any) -> int:
        return self.indexes.pop(0)


def _word_lists(secrets: List[str], extra: List[str] = None) -> WordLists:
    return WordLists(allowed=secrets + (extra or []), secrets=secrets)


class TestScoring(unittest.TestCase):
    def test_exact_match(self) -> None:
        for word in ["CRANE", "LEVEL", "EERIE", "AAAAA"]:
            self.assertEqual(score(word, word),
                             (TileState.CORRECT, ) * WORDLEN)
            self.assertEqual(calculate_pattern(word, word), "22222")

    def test_duplicate_letters(self) -> None:
        # E, V, L each present once; I and S absent.
        self.assertEqual(
            score("LEVEL", "EVILS"),
            (TileState.PRESENT, TileState.PRESENT, TileState.ABSENT,
             TileState.PRESENT, TileState.ABSENT)
        )
        # The first O is absent, not present: the other O is correct.
        self.assertEqual(calculate_pattern("HUMOR", "HONOR"), "20022")
        # Three Es; only the one in the right place counts.
        self.assertEqual(calculate_pattern("PAUSE", "EERIE"), "00002")
        # Two Es in the wrong place; only the first is present.
        self.assertEqual(calculate_pattern("PAUSE", "LEPER"), "01100")
        self.assertEqual(calculate_pattern("APPLE", "ALLOT"), "21000")

    def test_scenario(self) -> None:
        self.assertEqual(calculate_pattern("CRANE", "TRACE"), "02212")

    def test_other_lengths(self) -> None:
        self.assertEqual(calculate_pattern("CAT", "ACT"), "112")

    def test_feedback_strings(self) -> None:
        record = GuessRecord.get_from_strings("HONOR", "=__==")
        self.assertEqual(record, GuessRecord.get_from_known_word("HONOR",
                                                                 "HUMOR"))
        self.assertEqual(record.pattern, "20022")
        self.assertEqual(record.plain_str, "HONOR/=__==")
        self.assertEqual(states_from_str("012"), [
            TileState.ABSENT, TileState.PRESENT, TileState.CORRECT
        ])
        self.assertFalse(feedback_regex().match("=_x=="))
        self.assertTrue(feedback_regex().match("=_1=="))


class TestLies(unittest.TestCase):
    def test_random_lie_state_never_truthful(self) -> None:
        rng = random.Random(1234)
        for state in TileState:
            seen = set(random_lie_state(state, rng) for _ in range(200))
            self.assertEqual(seen, set(TileState) - {state})

    def test_apply_lie_changes_exactly_one_tile(self) -> None:
        rng = random.Random(42)
        record = GuessRecord.get_from_known_word("TRACE", "CRANE")
        for _ in range(100):
            lied = apply_lie(record.tiles, rng)
            lie_index = find_lie_index(record.states,
                                       [t.state for t in lied])
            self.assertIsNotNone(lie_index)
            self.assertEqual([t.letter for t in lied], list("TRACE"))
        # Original untouched
        self.assertEqual(record.pattern, "02212")

    def test_apply_lie_scripted(self) -> None:
        record = GuessRecord.get_from_known_word("CRANE", "CRANE")
        rng = ScriptedRandom(choices=[TileState.ABSENT], indexes=[4])
        lied = apply_lie(record.tiles, rng)
        self.assertEqual(pattern_from_states(t.state for t in lied), "22220")

    def test_find_lie_index(self) -> None:
        truth = score("CRANE", "CRANE")
        self.assertEqual(find_lie_index(truth, states_from_str("22220")), 4)
        self.assertIsNone(find_lie_index(truth, truth))
        self.assertIsNone(find_lie_index(truth, states_from_str("22200")))
        self.assertIsNone(find_lie_index(truth, states_from_str("2222")))

    def test_guess_matches_secret_needs_exactly_one_lie(self) -> None:
        secret = "SLATE"
        guess = "TRACE"
        truth = score(secret, guess)
        for n_changes in range(len(truth) + 1):
            reported = list(truth)
            for pos in range(n_changes):
                reported[pos] = random_lie_state(reported[pos],
                                                 random.Random(pos))
            record = GuessRecord(guess, reported)
            self.assertEqual(guess_matches_secret(secret, record),
                             n_changes == 1)

    def test_single_lie_scenario(self) -> None:
        record = GuessRecord.get_from_strings("CRANE", "22220")
        self.assertEqual(find_lie_index(score("CRANE", "CRANE"),
                                        record.states), 4)
        # CRANK: no lie. CRATE, CRONE: two lies.
        self.assertEqual(
            possible_secrets(["CRANE", "CRANK", "CRATE", "CRONE"],
                             [record], GameMode.FIBBLE),
            ["CRANE"]
        )


class TestFiltering(unittest.TestCase):
    def test_empty_history(self) -> None:
        secrets = ["CRANE", "SLATE", "TRACE"]
        for mode in GameMode:
            self.assertEqual(possible_secrets(secrets, [], mode), secrets)

    def test_scenario(self) -> None:
        record = GuessRecord.get_from_known_word("TRACE", "CRANE")
        self.assertEqual(
            possible_secrets(["CRANE", "SLATE", "TRACE"], [record],
                             GameMode.WORDLE),
            ["CRANE"]
        )

    def test_known_games(self) -> None:
        self.assertEqual(
            possible_secrets(
                ["COINS", "SCION", "PAPER"],
                [GuessRecord.get_from_strings("COINS", "--=--")],
                GameMode.WORDLE),
            ["SCION"]
        )
        self.assertIn(
            "TACIT",
            possible_secrets(
                ["TACIT"],
                [GuessRecord.get_from_strings("RATES", "_=-__"),
                 GuessRecord.get_from_strings("TYING", "=_-__")],
                GameMode.WORDLE)
        )

    def test_truthful_history_keeps_secret_and_narrows(self) -> None:
        secrets = ["CRANE", "SLATE", "TRACE", "CRATE", "PLANE", "SHINE",
                   "BRINE", "GRACE", "LEVEL", "HUMOR"]
        guesses = ["SLATE", "PLANE", "BRINE", "GRACE"]
        for secret in secrets:
            history = []  # type: List[GuessRecord]
            previous = possible_secrets(secrets, history, GameMode.WORDLE)
            for guess in guesses:
                history.append(GuessRecord.get_from_known_word(guess, secret))
                now = possible_secrets(secrets, history, GameMode.WORDLE)
                self.assertIn(secret, now)
                self.assertTrue(set(now) <= set(previous))
                previous = now

    def test_fibble_never_keeps_a_contradicted_secret(self) -> None:
        secrets = ["CRANE", "SLATE", "TRACE", "CRATE", "PLANE", "SHINE"]
        rng = random.Random(7)
        for secret in secrets:
            history = [
                GuessRecord(g, [t.state for t in apply_lie(
                    GuessRecord.get_from_known_word(g, secret).tiles, rng)])
                for g in ["SLATE", "SHINE", "PLANE"]
            ]
            now = possible_secrets(secrets, history, GameMode.FIBBLE)
            self.assertIn(secret, now)
            for candidate in now:
                for record in history:
                    self.assertTrue(guess_matches_secret(candidate, record))


class TestLieHints(unittest.TestCase):
    def test_no_hints_without_data(self) -> None:
        record = GuessRecord.get_from_strings("CRANE", "22220")
        self.assertEqual(compute_lie_hints([], [record]), [])
        self.assertEqual(compute_lie_hints(["CRANE"], []), [])

    def test_determined_lie(self) -> None:
        record = GuessRecord.get_from_strings("CRANE", "22220")
        hints = compute_lie_hints(["CRANE"], [record])
        self.assertEqual(len(hints), 1)
        self.assertEqual(hints[0][:4], [LieHint(never_lie=True)] * 4)
        self.assertEqual(hints[0][4], LieHint(always_lie=True))

    def test_ambiguous_lie(self) -> None:
        # CRANE: the E was the lie. CRABS: the N was.
        record = GuessRecord.get_from_strings("CRANE", "22220")
        hints = compute_lie_hints(["CRANE", "CRABS"], [record])
        self.assertEqual([h.plain_str for h in hints[0]], list("...??"))

    def test_invalid_hypotheses_ignored(self) -> None:
        record = GuessRecord.get_from_strings("CRANE", "22220")
        # CRANK implies no lie at all, so tells us nothing.
        hints = compute_lie_hints(["CRANE", "CRANK"], [record])
        self.assertEqual(hints[0][4], LieHint(always_lie=True))
        hints = compute_lie_hints(["CRANK"], [record])
        self.assertEqual(hints[0], [LieHint()] * 5)


class TestEntropy(unittest.TestCase):
    def test_bounds(self) -> None:
        candidates = ["CRANE", "SLATE"]
        self.assertEqual(
            analyze_guess_against("CRANE", candidates).entropy_bits, 1.0)
        self.assertEqual(
            analyze_guess_against("PUDGY", candidates).entropy_bits, 0.0)
        single = analyze_guess_against("CRANE", ["CRANE"])
        self.assertEqual(single.total_secrets, 1)
        self.assertEqual(single.distinct_patterns, 1)
        self.assertEqual(single.entropy_bits, 0.0)

    def test_pattern_counts(self) -> None:
        analysis = analyze_guess_against("CRANE",
                                         ["CRANE", "SLATE", "PLANE"])
        self.assertEqual(analysis.pattern_counts(),
                         [("00202", 1), ("00222", 1), ("22222", 1)])
        self.assertAlmostEqual(analysis.entropy_bits, math.log2(3))

    def test_ranking_tie_breaks(self) -> None:
        ranked = rank_guesses(["SLATE", "TRACE", "CRANE"],
                              ["CRANE", "TRACE"])
        self.assertEqual([s.word for s in ranked],
                         ["CRANE", "TRACE", "SLATE"])
        self.assertEqual([s.is_candidate for s in ranked],
                         [True, True, False])
        self.assertTrue(all(s.entropy == 1.0 for s in ranked))

    def test_ranking_order_and_limit(self) -> None:
        universe = ["CRANE", "SLATE", "TRACE", "CRATE", "PLANE", "SHINE",
                    "BRINE", "GRACE", "LEVEL", "HUMOR", "PUDGY", "EERIE"]
        ranked = rank_guesses(universe, universe, limit=5)
        self.assertEqual(len(ranked), 5)
        entropies = [s.entropy for s in ranked]
        self.assertEqual(entropies, sorted(entropies, reverse=True))
        self.assertEqual(rank_guesses(universe, []), [])

    def test_cache(self) -> None:
        cache = EntropyCache()
        results = [Suggestion("CRANE", 1.0, True)]
        self.assertIsNone(cache.get(("a", )))
        cache.store(("a", ), results)
        self.assertIs(cache.get(("a", )), results)
        self.assertIsNone(cache.get(("b", )))
        self.assertIsNone(cache.get(("a", )))


class TestSession(unittest.TestCase):
    SECRETS = ["CRANE", "SLATE", "TRACE"]
    EXTRA = ["PUDGY", "ZZZZZ"]

    def setUp(self) -> None:
        self.word_lists = _word_lists(self.SECRETS, self.EXTRA)

    def test_word_lists(self) -> None:
        self.assertEqual(list(self.word_lists.secrets), self.SECRETS)
        self.assertTrue(self.word_lists.is_allowed("PUDGY"))
        with self.assertRaises(ValueError):
            WordLists(allowed=["CRANE"], secrets=["SLATE"])
        with self.assertRaises(ValueError):
            WordLists(allowed=["CRANES"], secrets=[])

    def test_read_words(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            filename = os.path.join(tmpdir, "words.txt")
            with open(filename, "wt") as f:
                f.write("crane\ntoolong\nab1de\n  slate \nCRANE\n\n")
            self.assertEqual(list(read_words(filename)), ["CRANE", "SLATE"])

    def test_wordle_play(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.PLAY, secret="crane")
        self.assertEqual(session.secret, "CRANE")
        self.assertEqual(session.history, [])
        self.assertEqual(session.get_candidate_count(), 3)
        record = session.submit_guess(" trace ")
        self.assertEqual(record.pattern, "02212")
        self.assertEqual(session.get_candidates(), ["CRANE"])
        self.assertFalse(session.complete)
        session.submit_guess("CRANE")
        self.assertTrue(session.solved)
        self.assertTrue(session.complete)
        with self.assertRaises(GameOver):
            session.submit_guess("SLATE")

    def test_invalid_guess_leaves_history(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.PLAY, secret="CRANE")
        for bad in ["CRAN", "CRANES", "QUERY"]:
            with self.assertRaises(InvalidGuess):
                session.submit_guess(bad)
        self.assertEqual(session.history, [])

    def test_invalid_secret(self) -> None:
        with self.assertRaises(InvalidSecret):
            start_session(self.word_lists, GameMode.WORDLE, PlayStyle.PLAY,
                          secret="PUDGY")
        with self.assertRaises(InvalidSecret):
            start_session(self.word_lists, GameMode.WORDLE,
                          PlayStyle.NOTEBOOK, secret="CRANE")

    def test_attempt_budget(self) -> None:
        config = GameConfig(max_attempts={GameMode.WORDLE: 2})
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.PLAY, secret="CRANE",
                                config=config)
        self.assertEqual(session.max_attempts, 2)
        session.submit_guess("SLATE")
        session.submit_guess("PUDGY")
        self.assertTrue(session.complete)
        self.assertFalse(session.solved)
        self.assertEqual(session.attempts_remaining, 0)
        self.assertEqual(GameConfig().max_attempts_for(GameMode.FIBBLE), 9)

    def test_random_secret(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.PLAY, rng=random.Random(3))
        self.assertIn(session.secret, self.SECRETS)

    def test_fibble_opener(self) -> None:
        # Secret CRANE; the first opener drawn is the secret, so is re-drawn.
        # SLATE v CRANE is truthfully 00202; the A (index 2) becomes absent.
        rng = ScriptedRandom(
            choices=["CRANE", "CRANE", "SLATE", TileState.ABSENT],
            indexes=[2],
        )
        session = start_session(self.word_lists, GameMode.FIBBLE,
                                PlayStyle.PLAY, rng=rng)
        self.assertEqual(session.secret, "CRANE")
        self.assertEqual(len(session.history), 1)
        opener = session.history[0]
        self.assertTrue(opener.auto)
        self.assertEqual(opener.word, "SLATE")
        self.assertEqual(opener.pattern, "00002")
        self.assertEqual(session.max_attempts, 9)
        self.assertIn("CRANE", session.get_candidates())
        hints = session.get_lie_hints()
        self.assertEqual(len(hints), 1)

    def test_fibble_play_keeps_secret(self) -> None:
        session = start_session(self.word_lists, GameMode.FIBBLE,
                                PlayStyle.PLAY, secret="TRACE",
                                rng=random.Random(99))
        session.submit_guess("CRANE")
        session.submit_guess("PUDGY")
        for record in session.history:
            self.assertTrue(guess_matches_secret("TRACE", record))
        self.assertIn("TRACE", session.get_candidates())

    def test_notebook(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.NOTEBOOK)
        self.assertIsNone(session.secret)
        record = session.submit_guess("TRACE")
        self.assertEqual(record.pattern, "00000")
        session.cycle_tile_state(0, 0)
        self.assertEqual(session.history[0].pattern, "10000")
        session.cycle_tile_state(0, 0)
        self.assertEqual(session.history[0].pattern, "20000")
        session.cycle_tile_state(0, 0)
        self.assertEqual(session.history[0].pattern, "00000")
        with self.assertRaises(IndexError):
            session.cycle_tile_state(1, 0)
        with self.assertRaises(IndexError):
            session.cycle_tile_state(0, 5)
        session.set_row_states(0, states_from_str("02212"))
        self.assertEqual(session.get_candidates(), ["CRANE"])
        self.assertFalse(session.complete)

    def test_notebook_contradiction_is_not_an_error(self) -> None:
        session = start_session(self.word_lists, GameMode.FIBBLE,
                                PlayStyle.NOTEBOOK)
        session.submit_guess("PUDGY")
        # All absent is the truth for every secret: no lie, so no candidates.
        self.assertEqual(session.get_candidates(), [])
        self.assertEqual(session.get_suggestions(), [])
        self.assertEqual(session.get_lie_hints(), [])
        self.assertEqual(session.no_candidates_message,
                         MSG_NO_CANDIDATES_FIBBLE)

    def test_cycling_only_in_notebook(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.PLAY, secret="CRANE")
        session.submit_guess("SLATE")
        with self.assertRaises(NotEditable):
            session.cycle_tile_state(0, 0)
        with self.assertRaises(NotEditable):
            session.set_row_states(0, states_from_str("22222"))

    def test_suggestions_cached_by_history(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.NOTEBOOK)
        first = session.get_suggestions()
        self.assertEqual(len(first), 3)
        cached = session._entropy_cache.results
        self.assertEqual(session.get_suggestions(), first)
        self.assertIs(session._entropy_cache.results, cached)
        session.submit_guess("TRACE")
        session.set_row_states(0, states_from_str("02212"))
        after = session.get_suggestions()
        self.assertIsNot(session._entropy_cache.results, cached)
        self.assertEqual(after[0].word, "CRANE")
        self.assertTrue(after[0].is_candidate)
        self.assertEqual(after[0].entropy, 0.0)
        self.assertEqual(session.get_suggestions(), after)
        session.cycle_tile_state(0, 0)
        # 12212 fits none of the secrets.
        self.assertEqual(session.get_suggestions(), [])

    def test_changing_suggestions_leaves_cache_alone(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.NOTEBOOK)
        first = session.get_suggestions()
        words = [s.word for s in first]
        first.pop(0)
        first.clear()
        self.assertEqual([s.word for s in session.get_suggestions()], words)

    def test_changing_history_leaves_game_alone(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.PLAY, secret="CRANE")
        session.submit_guess("SLATE")
        row = session.history[0]
        row.tiles[0].state = TileState.CORRECT
        row.word = "PUDGY"
        self.assertEqual(session.history[0].word, "SLATE")
        self.assertEqual(session.history[0].pattern, "00202")
        self.assertEqual(session.get_candidates(), ["CRANE"])

    def test_new_game_resets(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.PLAY, secret="CRANE")
        session.submit_guess("CRANE")
        session.new_game("SLATE")
        self.assertEqual(session.history, [])
        self.assertFalse(session.solved)
        self.assertEqual(session.secret, "SLATE")

    def test_autosolve(self) -> None:
        for target in self.SECRETS:
            session = autosolve(target, self.word_lists, GameMode.WORDLE)
            self.assertTrue(session.solved)
            self.assertLessEqual(len(session.history), 3)

    def test_analyze_guess(self) -> None:
        analysis = analyze_guess(self.word_lists, "crane")
        self.assertEqual(analysis.guess, "CRANE")
        self.assertEqual(analysis.total_secrets, 3)
        with self.assertRaises(InvalidGuess):
            analyze_guess(self.word_lists, "QUERY")

    def test_best_information_guess(self) -> None:
        # Any secret only separates itself from the other two; ZANTE, which
        # cannot be the answer, separates all three.
        secrets = ["CRANE", "CRATE", "CRAZE"]
        word_lists = _word_lists(secrets, ["ZANTE", "PUDGY"])
        best = best_information_guess(word_lists, secrets)
        self.assertEqual(best.guess, "ZANTE")
        self.assertEqual(best.total_secrets, 3)
        self.assertEqual(best.distinct_patterns, 3)
        self.assertAlmostEqual(best.entropy_bits, math.log2(3))
        self.assertIsNone(best_information_guess(word_lists, []))

    def test_best_information_guess_in_advice(self) -> None:
        word_lists = _word_lists(["CRANE", "CRATE", "CRAZE"], ["ZANTE"])
        session = start_session(word_lists, GameMode.WORDLE,
                                PlayStyle.NOTEBOOK)
        with self.assertLogs(rootlog, level=logging.INFO) as logs:
            show_advice(session)
        self.assertTrue(any("Most informative allowed guess: ZANTE" in line
                            for line in logs.output))

    def test_read_guess_checks_word_first(self) -> None:
        session = start_session(self.word_lists, GameMode.WORDLE,
                                PlayStyle.NOTEBOOK)
        replies = ["query", "trace", "=_-__"]
        with mock.patch("builtins.input", side_effect=replies) as fake_input:
            entry = read_guess_from_user(session)
        self.assertEqual(entry, ("TRACE", "=_-__"))
        self.assertEqual(fake_input.call_count, 3)
        with mock.patch("builtins.input", side_effect=["quit"]):
            self.assertIsNone(read_guess_from_user(session))

    def test_equality_with_other_types(self) -> None:
        record = GuessRecord.get_from_strings("CRANE", "22220")
        self.assertNotEqual(record, None)
        self.assertNotEqual(record.tiles[0], "C")
        self.assertNotEqual(LieHint(), None)
        suggestion = Suggestion("CRANE", 1.0, True)
        self.assertNotEqual(suggestion, "CRANE")
        self.assertEqual(
            len({suggestion, Suggestion("CRANE", 1.0, True)}), 1
        )


class TestParallel(unittest.TestCase):
    UNIVERSE = ["CRANE", "SLATE", "TRACE", "CRATE", "PLANE", "SHINE",
                "BRINE", "GRACE", "LEVEL", "HUMOR", "PUDGY", "EERIE"]

    def tearDown(self) -> None:
        ray.shutdown()

    def test_rank_guesses_parallel_matches_serial(self) -> None:
        ray.init(num_cpus=3)
        candidates = self.UNIVERSE[:8]
        serial = rank_guesses(self.UNIVERSE, candidates, nproc=1)
        parallel = rank_guesses(self.UNIVERSE, candidates, nproc=3)
        self.assertEqual(
            [(s.word, s.entropy, s.is_candidate) for s in parallel],
            [(s.word, s.entropy, s.is_candidate) for s in serial]
        )

    def test_measure_performance(self) -> None:
        word_lists = _word_lists(["CRANE", "SLATE", "TRACE"])
        for nproc in (1, 2):
            with tempfile.TemporaryDirectory() as tmpdir:
                filename = os.path.join(tmpdir, "out.csv")
                measure_algorithm_performance(word_lists, filename,
                                              mode=GameMode.WORDLE,
                                              nproc=nproc, seed=1)
                with open(filename) as f:
                    rows = list(csv.DictReader(f))
            self.assertEqual(sorted(r["word"] for r in rows),
                             ["CRANE", "SLATE", "TRACE"])
            self.assertTrue(all(r["solved"] == "1" for r in rows))
            self.assertTrue(all(r["mode"] == "wordle" for r in rows))
            ray.shutdown()


# =============================================================================
# Command-line entry point
# =============================================================================

def main() -> None:
    # -------------------------------------------------------------------------
    # Arguments
    # -------------------------------------------------------------------------
    parser = argparse.ArgumentParser(
        "Wordle/Fibble assistant.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--allowed_filename", default=DEFAULT_ALLOWED_WORDLIST,
        help=f"File containing all allowed {WORDLEN}-letter guesses"
    )
    parser.add_argument(
        "--secrets_filename", default=DEFAULT_SECRET_WORDLIST,
        help=f"File containing all possible {WORDLEN}-letter secrets (each "
             f"must also be an allowed guess)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Be verbose"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    mode_choices = [m.value for m in GameMode]

    cmd_make = "make_wordlist"
    parser_make = subparsers.add_parser(
        cmd_make,
        help="Make the allowed-guess list from a dictionary",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser_make.add_argument(
        "--source_dict", default=DEFAULT_OS_DICT,
        help="File of all dictionary words."
    )

    cmd_play = "play"
    parser_play = subparsers.add_parser(
        cmd_play,
        help="Play a game, with advice",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser_play.add_argument(
        "--secret", type=str, default=None,
        help="Secret word (if unspecified, one is picked at random)"
    )
    parser_play.add_argument(
        "--seed", type=int, default=None,
        help="Random number seed (secret, opener, lies)"
    )

    cmd_notebook = "notebook"
    parser_notebook = subparsers.add_parser(
        cmd_notebook,
        help="Get advice on a game you are playing elsewhere",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    for p in (parser_play, parser_notebook):
        p.add_argument(
            "--mode", type=str, choices=mode_choices,
            default=GameMode.WORDLE.value,
            help="Game: truthful feedback (wordle) or one lie per row "
                 "(fibble)"
        )
        p.add_argument(
            "--advice_top_n", type=int, default=DEFAULT_SUGGESTION_LIMIT,
            help="When showing advice, show this many top candidates"
        )
        p.add_argument(
            "--nproc", type=int, default=1,
            help="Number of parallel processes for ranking suggestions"
        )

    cmd_analyze = "analyze_guess"
    parser_analyze = subparsers.add_parser(
        cmd_analyze,
        help="Show how much information a first guess gives",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser_analyze.add_argument(
        "guess", type=str,
        help="Word to analyse"
    )

    cmd_test_performance = "test_performance"
    parser_test_performance = subparsers.add_parser(
        cmd_test_performance,
        help="Autosolve many words and report the number of guesses needed",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser_test_performance.add_argument(
        "--mode", type=str, choices=mode_choices,
        default=GameMode.WORDLE.value,
        help="Game"
    )
    parser_test_performance.add_argument(
        "--output", type=str, default=None,
        help="File for CSV-format output (if unspecified, a sensible default "
             "will be created based on the mode chosen)"
    )
    parser_test_performance.add_argument(
        "--nwords", type=int,
        help="Number of words to test (if unspecified, will test all)"
    )
    parser_test_performance.add_argument(
        "--nproc", type=int, default=DEFAULT_NPROC,
        help="Number of parallel processes"
    )
    parser_test_performance.add_argument(
        "--seed", type=int, default=None,
        help="Random number seed (Fibble lies)"
    )

    args = parser.parse_args()

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    loglevel = logging.DEBUG if args.verbose else logging.INFO
    main_only_quicksetup_rootlogger(level=loglevel)

    # -------------------------------------------------------------------------
    # Act
    # -------------------------------------------------------------------------
    if args.command == cmd_make:
        make_wordlist(args.source_dict, args.allowed_filename)
        return

    word_lists = WordLists.from_files(args.allowed_filename,
                                      args.secrets_filename)
    rootlog.info(f"Word lists: {word_lists}")
    try:
        if args.command == cmd_play:
            play_interactive(
                word_lists=word_lists,
                mode=GameMode(args.mode),
                secret=args.secret,
                seed=args.seed,
                advice_top_n=args.advice_top_n,
                nproc=args.nproc,
            )
        elif args.command == cmd_notebook:
            notebook_interactive(
                word_lists=word_lists,
                mode=GameMode(args.mode),
                advice_top_n=args.advice_top_n,
                nproc=args.nproc,
            )
        elif args.command == cmd_analyze:
            analysis = analyze_guess(word_lists, args.guess)
            rootlog.info(
                f"Guess: {analysis.guess}\n"
                f"Total secrets: {analysis.total_secrets}\n"
                f"Distinct patterns: {analysis.distinct_patterns}\n"
                f"Entropy: {analysis.entropy_bits:.4f} bits"
            )
        elif args.command == cmd_test_performance:
            output_filename = args.output or f"out_{args.mode}.csv"
            measure_algorithm_performance(
                word_lists=word_lists,
                output_filename=output_filename,
                mode=GameMode(args.mode),
                nwords=args.nwords,
                nproc=args.nproc,
                seed=args.seed,
                loglevel=loglevel,
            )
        else:
            raise AssertionError("argument-parsing bug")
    except FibbleError as e:
        rootlog.critical(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
