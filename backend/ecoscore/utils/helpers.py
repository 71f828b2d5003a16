"""
Common utility helper functions.

This module provides reusable utility functions for ingredient text
normalization, numeric rounding, hashing, shuffling and
bounded retries used throughout the application.
"""

import math
import random
import re
import time
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

# Configure logging
logger = logging.getLogger(__name__)

T = TypeVar("T")

# Leading "c(" / trailing ")" of R-style list literals found in the catalog
_LIST_WRAPPER_START = re.compile(r"^\s*c\s*\(", re.IGNORECASE)
_LIST_WRAPPER_END = re.compile(r"\)\s*$")
_QUOTES = re.compile(r"[\"']")
# \w is unicode aware, so accented letters survive
_INGREDIENT_JUNK = re.compile(r"[^\w\s,;]")
_QUERY_JUNK = re.compile(r"[^\w\s]")
_INGREDIENT_SEPARATORS = re.compile(r"[,;]+")
_QUERY_SEPARATORS = re.compile(r"[,;+&\s]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_ingredients(raw: Any, min_length: int = 2) -> List[str]:
    """
    Split raw ingredient text into clean lowercase tokens.

    Performs the following normalization:
    1. Strip an R-style list wrapper (c( ... ))
    2. Remove quote characters and punctuation
    3. Split on commas and semicolons
    4. Lowercase, trim and collapse inner whitespace
    5. Drop tokens shorter than min_length

    Source order and duplicates are preserved.

    Args:
        raw: Ingredient text (anything else yields an empty list)
        min_length: Shortest token kept

    Returns:
        List[str]: Normalized ingredient tokens

    Example:
        >>> normalize_ingredients('c("Marhahús", "hagyma", "só")')
        ['marhahús', 'hagyma', 'só']
    """
    if not raw or not isinstance(raw, str):
        return []

    text = raw.lower()
    text = _LIST_WRAPPER_START.sub("", text)
    text = _LIST_WRAPPER_END.sub("", text)
    text = _QUOTES.sub("", text)
    text = _INGREDIENT_JUNK.sub(" ", text)

    tokens = []
    for part in _INGREDIENT_SEPARATORS.split(text):
        token = _WHITESPACE.sub(" ", part).strip()
        if len(token) >= min_length:
            tokens.append(token)
    return tokens


def preprocess_query(query: Any, min_length: int = 2) -> List[str]:
    """
    Turn a free-text search query into unique search terms.

    Splits on commas, semicolons, plus, ampersand and whitespace, drops
    short terms and removes duplicates while keeping first-occurrence order.

    Args:
        query: Raw query text
        min_length: Shortest term kept

    Returns:
        List[str]: Search terms

    Example:
        >>> preprocess_query("Marha, hagyma & marha")
        ['marha', 'hagyma']
    """
    if not query or not isinstance(query, str):
        return []

    text = _QUERY_JUNK.sub(" ", query.lower().strip())

    terms: List[str] = []
    for term in _QUERY_SEPARATORS.split(text):
        term = term.strip()
        if len(term) >= min_length and term not in terms:
            terms.append(term)
    return terms


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values, like Math.round."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp value into [low, high]; NaN becomes low."""
    if value is None or math.isnan(value):
        return low
    return max(low, min(high, value))


def to_float(value: Any) -> Optional[float]:
    """
    Parse a numeric field from a raw record.

    Returns:
        Optional[float]: The finite float value, or None when missing or unparsable
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def simple_hash(text: str) -> int:
    """
    Deterministic 32-bit string hash (hash * 31 + char).

    Produces the same value on every run, unlike the built-in hash().

    Example:
        >>> simple_hash("abc")
        96354
    """
    value = 0
    for char in text:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def shuffled(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a uniformly shuffled copy of items using the given random source."""
    result = list(items)
    rng.shuffle(result)
    return result


def count_common_elements(first: Iterable[str], second: Iterable[str]) -> int:
    """Count items of second that also occur in first (case-insensitive)."""
    seen = {item.lower() for item in first}
    return sum(1 for item in second if item.lower() in seen)


def contains_any(tokens: Iterable[str], keywords: Iterable[str]) -> bool:
    """True when any token contains any keyword as a substring."""
    keywords = list(keywords)
    return any(keyword in token for token in tokens for keyword in keywords)


def retry_with_backoff(
    func: Callable[[], T],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    multiplier: float = 2.0,
    deadline: Optional[float] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """
    Call func until it succeeds, with bounded exponential backoff.

    The delay before attempt n+1 is base_delay * multiplier ** (n - 1).
    When a deadline (seconds, measured from the first call) would be
    exceeded by the next wait, no further attempt is made.

    Args:
        func: Zero-argument callable to invoke
        max_attempts: Maximum number of calls
        base_delay: Delay after the first failure in seconds
        multiplier: Growth factor of the delay
        deadline: Optional overall time budget in seconds
        retry_on: Exception types that trigger a retry
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        The first successful result of func

    Raises:
        The last exception raised by func once attempts or time run out
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    started = clock()
    attempt = 1
    while True:
        try:
            return func()
        except retry_on as e:
            if attempt >= max_attempts:
                logger.error(f"Giving up after {attempt} attempt(s): {e}")
                raise

            wait_time = base_delay * (multiplier ** (attempt - 1))
            if deadline is not None and clock() - started + wait_time >= deadline:
                logger.error(f"Giving up after {attempt} attempt(s): deadline of {deadline}s reached")
                raise

            logger.info(
                f"Retrying (attempt {attempt + 1}/{max_attempts}) "
                f"after {wait_time:.2f}s due to {type(e).__name__}"
            )
            sleep(wait_time)
            attempt += 1
