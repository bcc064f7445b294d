"""
Text Adapter - rewrites vocabulary and sentence structure for a level.

All functions are pure: they take text and a LearningProfile and return new
text. The ``history`` argument is accepted for interface parity with the
profile lookup; the rewrite depends only on the profile.

Pipeline (adapt_text):
    phrases/metaphors -> vocabulary -> sentence structure -> tone -> encouragement

Phrases run first so multi-word entries match before their words are
rewritten one by one.

Each step reports an AdaptationFactor only when it changed the text.
"""

from __future__ import annotations

import math
import re
import zlib
from functools import lru_cache
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

try:
    from ..models.adaptive_response import AdaptationFactor, AdaptationStrategy
    from ..models.development_level import (
        SUPPORTIVE_OPENERS,
        PerformanceLevel,
        SentenceLength,
    )
    from ..models.learning_profile import LearningProfile, coerce_profile
except ImportError:
    from src.models.adaptive_response import AdaptationFactor, AdaptationStrategy
    from src.models.development_level import (
        SUPPORTIVE_OPENERS,
        PerformanceLevel,
        SentenceLength,
    )
    from src.models.learning_profile import LearningProfile, coerce_profile


# Words that open a new clause; a split is preferred right before them
CLAUSE_CONJUNCTIONS = frozenset(
    {"and", "but", "or", "so", "yet", "then", "because", "although", "while", "when"}
)
# Conjunctions dropped when they end up starting a new sentence
DROPPED_LEADING_CONJUNCTIONS = frozenset({"and"})
CLAUSE_PUNCTUATION = (",", ";", ":")

POSITIVE_MARKERS = ("great", "excellent")

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_TERMINATOR = re.compile(r"^(.*?)([.!?]+)?([\"\u201d\u2019')\]]*)$", re.S)
_WORD_CHAR = re.compile(r"\w")


# ==================== Helpers ====================


@lru_cache(maxsize=64)
def _compile_terms(terms: Tuple[str, ...]) -> Optional[re.Pattern]:
    """Whole-word, case-insensitive alternation; longest terms first."""
    if not terms:
        return None
    alternation = "|".join(
        r"\s+".join(re.escape(word) for word in term.split())
        for term in sorted(terms, key=len, reverse=True)
    )
    return re.compile(rf"\b({alternation})\b", re.IGNORECASE)


def _match_case(source: str, replacement: str) -> str:
    """Carry the casing of the matched text over to its replacement."""
    letters = [c for c in source if c.isalpha()]
    if len(letters) > 1 and all(c.isupper() for c in letters):
        return replacement.upper()
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _substitute(text: str, table: Mapping[str, str]) -> Tuple[str, int]:
    """Apply a substitution table; returns (new_text, replacements made)."""
    pattern = _compile_terms(tuple(table.keys()))
    if pattern is None or not text:
        return text, 0

    lookup = {" ".join(key.lower().split()): value for key, value in table.items()}

    def replace(match: re.Match) -> str:
        found = match.group(0)
        return _match_case(found, lookup[" ".join(found.lower().split())])

    return pattern.subn(replace, text)


def _pick(options: Sequence[str], seed: str) -> str:
    """Deterministic choice so the same text always adapts the same way."""
    return options[zlib.crc32(seed.encode("utf-8")) % len(options)]


def _is_positive(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in POSITIVE_MARKERS)


def split_sentences(text: str) -> List[str]:
    """
    Split text into sentences on terminal punctuation.

    Fragments without any word characters (stray punctuation, blank lines)
    are discarded. Each sentence keeps its own terminator.
    """
    if not text:
        return []
    return [
        chunk.strip()
        for chunk in _SENTENCE_BOUNDARY.split(text.strip())
        if _WORD_CHAR.search(chunk)
    ]


def word_count(sentence: str) -> int:
    return len(sentence.split())


def average_sentence_length(text: str) -> float:
    """Mean words per sentence (0.0 for empty text)."""
    sentences = split_sentences(text)
    if not sentences:
        return 0.0
    return sum(word_count(s) for s in sentences) / len(sentences)


def _bare(word: str) -> str:
    return word.strip(".,;:!?\"'()").lower()


def _inside_quote(words: List[str], cut: int) -> bool:
    """True when a cut before words[cut] would fall inside an open quotation."""
    head = " ".join(words[:cut])
    return head.count('"') % 2 == 1 or head.count("\u201c") > head.count("\u201d")


def _find_break(words: List[str], bounds: SentenceLength) -> Optional[int]:
    """
    Number of words to keep in the next piece of an over-long sentence.

    Prefers the latest clause boundary (after a comma/semicolon, or before a
    conjunction) that leaves between min and max words. Without
    one, chunks evenly by word count. Quotations are never cut; None means
    no cut outside a quotation exists.
    """
    limit = bounds.max
    lower = max(1, min(bounds.min, limit))

    for cut in range(limit, lower - 1, -1):
        if cut >= len(words) or _inside_quote(words, cut):
            continue
        if words[cut - 1].endswith(CLAUSE_PUNCTUATION):
            return cut
        if (
            _bare(words[cut]) in CLAUSE_CONJUNCTIONS
            and _bare(words[cut - 1]) not in CLAUSE_CONJUNCTIONS
        ):
            return cut

    pieces = math.ceil(len(words) / limit)
    even = max(lower, min(limit, math.ceil(len(words) / pieces)))
    candidates = [even, *range(even - 1, lower - 1, -1), *range(even + 1, len(words))]
    for cut in candidates:
        if not _inside_quote(words, cut):
            return cut
    return None


def _finish_piece(words: List[str], terminator: str) -> str:
    """Capitalize, strip dangling clause punctuation and terminate a piece."""
    text = " ".join(words).rstrip(",;: ")
    first = _WORD_CHAR.search(text)
    if first:
        i = first.start()
        text = text[:i] + text[i].upper() + text[i + 1:]
    return f"{text}{terminator}"


def _split_sentence(sentence: str, bounds: SentenceLength) -> List[str]:
    """Break one sentence into pieces of at most bounds.max words."""
    body, terminator, closers = _TERMINATOR.match(sentence).groups()
    if not terminator:
        body, closers, terminator = body + closers, "", "."
    words = body.split()

    pieces: List[List[str]] = []
    while len(words) > bounds.max:
        cut = _find_break(words, bounds)
        if cut is None:
            break
        pieces.append(words[:cut])
        words = words[cut:]
        while words and _bare(words[0]) in DROPPED_LEADING_CONJUNCTIONS and len(words) > 1:
            words = words[1:]
    if words:
        pieces.append(words)

    if len(pieces) == 1:
        return [sentence]
    return [
        _finish_piece(piece, terminator + closers if i == len(pieces) - 1 else ".")
        for i, piece in enumerate(pieces)
    ]


# ==================== Step functions ====================


def _vocabulary_step(text: str, profile: LearningProfile) -> Tuple[str, int]:
    return _substitute(text, profile.vocabulary_level.substitutions)


def _sentence_step(text: str, profile: LearningProfile) -> Tuple[str, int]:
    bounds = profile.vocabulary_level.sentence_length
    if not bounds.bounded or not text:
        return text, 0

    sentences = split_sentences(text)
    rewritten: List[str] = []
    modified = 0
    for sentence in sentences:
        pieces = [sentence]
        if word_count(sentence) > bounds.max:
            pieces = _split_sentence(sentence, bounds)
        if len(pieces) > 1:
            modified += 1
        rewritten.extend(pieces)

    if modified == 0:
        return text, 0
    return " ".join(rewritten), modified


def _phrase_step(text: str, profile: LearningProfile) -> Tuple[str, int]:
    return _substitute(text, profile.vocabulary_level.phrase_substitutions)


def _tone_step(text: str, profile: LearningProfile) -> Tuple[str, int]:
    emotional = profile.emotional_profile
    modified = 0

    if emotional.needs_support and text and not _is_positive(text):
        text = f"{_pick(SUPPORTIVE_OPENERS, text)} {text}"
        modified += 1

    if emotional.showing_positivity and profile.performance_level is PerformanceLevel.ADVANCED:
        challenged = text.replace("Let's try", "Let's explore").replace(
            "This might be", "This could be"
        )
        if challenged != text:
            text = challenged
            modified += 1

    return text, modified


def _encouragement_step(text: str, profile: LearningProfile) -> Tuple[str, int]:
    strategy = profile.adaptation_strategy
    if strategy.encouragement != "frequent" or not text or _is_positive(text):
        return text, 0
    closing = _pick(profile.encouragements, text)
    return f"{text} {closing}", 1


# ==================== Public API ====================


def adapt_vocabulary(
    text: str,
    profile: LearningProfile,
    history: Optional[Iterable] = None,
) -> str:
    """
    Replace complex terms with simpler equivalents for the profile's level.

    Matching is whole-word and case-insensitive; the casing of each match is
    carried over to its replacement. HIGH_SCHOOL has an empty table, so its
    text passes through unchanged. Idempotent for a fixed level.

    Args:
        text: Text to adapt
        profile: LearningProfile (or mapping with development_level)
        history: Recent interactions (unused by the rewrite)

    Returns:
        Adapted text
    """
    adapted, _ = _vocabulary_step(text, coerce_profile(profile))
    return adapted


def adapt_sentence_structure(
    text: str,
    profile: LearningProfile,
    history: Optional[Iterable] = None,
) -> str:
    """
    Split sentences longer than the level's maximum word count.

    Clause boundaries (commas, coordinating conjunctions) are preferred
    break points; otherwise sentences are chunked evenly. Text without
    over-long sentences is returned unchanged.
    """
    adapted, _ = _sentence_step(text, coerce_profile(profile))
    return adapted


def adapt_phrases(text: str, profile: LearningProfile) -> str:
    """Swap multi-word phrases and metaphors for level-appropriate ones."""
    adapted, _ = _phrase_step(text, coerce_profile(profile))
    return adapted


def adapt_emotional_tone(text: str, profile: LearningProfile) -> str:
    """Add a supportive opener or challenge-oriented wording."""
    adapted, _ = _tone_step(text, coerce_profile(profile))
    return adapted


def add_encouragement(text: str, profile: LearningProfile) -> str:
    """Append a level-appropriate closing line for students who need it."""
    adapted, _ = _encouragement_step(text, coerce_profile(profile))
    return adapted


def adapt_text(
    text: str,
    profile: LearningProfile,
    history: Optional[Iterable] = None,
) -> Tuple[str, List[AdaptationFactor]]:
    """
    Run the full adaptation pipeline.

    Returns:
        Tuple of (adapted text, factors for every step that changed the text)
    """
    profile = coerce_profile(profile)
    level = profile.development_level.value
    factors: List[AdaptationFactor] = []

    text, count = _phrase_step(text, profile)
    if count:
        factors.append(
            AdaptationFactor(
                AdaptationStrategy.PHRASE_SUBSTITUTION,
                f"Adapted {count} examples/metaphors for {level}",
                count,
            )
        )

    text, count = _vocabulary_step(text, profile)
    if count:
        factors.append(
            AdaptationFactor(
                AdaptationStrategy.VOCABULARY_SUBSTITUTION,
                f"Simplified {count} vocabulary terms for {level}",
                count,
            )
        )

    text, count = _sentence_step(text, profile)
    if count:
        factors.append(
            AdaptationFactor(
                AdaptationStrategy.SENTENCE_SPLITTING,
                f"Simplified {count} complex sentences for readability",
                count,
            )
        )

    text, count = _tone_step(text, profile)
    if count:
        factors.append(
            AdaptationFactor(
                AdaptationStrategy.EMOTIONAL_TONE,
                "Adapted emotional tone for student's emotional state",
                count,
            )
        )

    text, count = _encouragement_step(text, profile)
    if count:
        factors.append(
            AdaptationFactor(
                AdaptationStrategy.ENCOURAGEMENT,
                "Added developmental-appropriate encouragement",
            )
        )

    return text, factors
