"""Short human-typed code generation.

Codes are drawn uniformly from small, unambiguous alphabets. Uniqueness is
not a property of the generator: callers hand in a ``claim`` callable that
tries to take the candidate in its namespace (a SET NX) and the loop retries
within a fixed budget.
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable

from clipcode.core.errors import CodeGenerationExhaustedAppError

logger = logging.getLogger(__name__)

# Uppercase letters and digits without O, I, 0, 1
SHARE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
NUMERIC_ALPHABET = "0123456789"


def generate_code(alphabet: str, length: int) -> str:
    """Draw a random code.

    Args:
        alphabet: Characters to draw from.
        length: Number of characters.

    Returns:
        str: Code of exactly ``length`` characters.

    Raises:
        ValueError: If the alphabet is empty or length is not positive.
    """
    if not alphabet:
        raise ValueError("alphabet must be non-empty")
    if length < 1:
        raise ValueError("length must be >= 1")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def claim_unique_code(
    alphabet: str,
    length: int,
    *,
    attempts: int,
    claim: Callable[[str], bool],
    namespace: str,
) -> str:
    """Generate codes until one can be claimed.

    Args:
        alphabet: Characters to draw from.
        length: Code length.
        attempts: Maximum number of candidates to try.
        claim: Called with each candidate; returns True once the candidate
            is owned by the caller (False when it is already live).
        namespace: Name of the target namespace, used for logs and errors.

    Returns:
        str: The claimed code.

    Raises:
        CodeGenerationExhaustedAppError: If every candidate collided.
    """
    for attempt in range(1, attempts + 1):
        candidate = generate_code(alphabet, length)
        if claim(candidate):
            if attempt > 1:
                logger.info(
                    "code.claimed_after_collisions",
                    extra={"namespace": namespace, "attempt": attempt},
                )
            return candidate

    logger.error(
        "code.generation_exhausted",
        extra={"namespace": namespace, "attempts": attempts, "length": length},
    )
    raise CodeGenerationExhaustedAppError(
        code="code_generation_exhausted",
        message="Could not generate a unique code. Please try again.",
        details={"attempts": attempts},
    )
