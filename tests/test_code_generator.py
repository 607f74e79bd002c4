"""Tests for code generation and the bounded claim loop."""

from unittest.mock import Mock

import pytest

from clipcode.core.errors import CodeGenerationExhaustedAppError
from clipcode.utils.code_generator import (
    NUMERIC_ALPHABET,
    SHARE_CODE_ALPHABET,
    claim_unique_code,
    generate_code,
)


def test_share_alphabet_has_no_ambiguous_characters():
    for ambiguous in "OI01":
        assert ambiguous not in SHARE_CODE_ALPHABET
    assert len(set(SHARE_CODE_ALPHABET)) == 32


def test_generate_code_uses_only_alphabet():
    for _ in range(200):
        code = generate_code(SHARE_CODE_ALPHABET, 4)
        assert len(code) == 4
        assert set(code) <= set(SHARE_CODE_ALPHABET)


def test_numeric_codes_are_digits():
    code = generate_code(NUMERIC_ALPHABET, 6)
    assert code.isdigit()
    assert len(code) == 6


@pytest.mark.parametrize("alphabet, length", [("", 4), ("AB", 0)])
def test_generate_code_rejects_bad_arguments(alphabet, length):
    with pytest.raises(ValueError):
        generate_code(alphabet, length)


def test_claim_returns_first_free_candidate():
    claim = Mock(side_effect=[False, False, True])

    code = claim_unique_code(SHARE_CODE_ALPHABET, 4, attempts=5, claim=claim, namespace="clip")

    assert claim.call_count == 3
    assert claim.call_args.args[0] == code


def test_claim_exhaustion_raises_typed_error():
    claim = Mock(return_value=False)

    with pytest.raises(CodeGenerationExhaustedAppError) as exc_info:
        claim_unique_code(NUMERIC_ALPHABET, 6, attempts=5, claim=claim, namespace="room")

    assert claim.call_count == 5
    assert exc_info.value.code == "code_generation_exhausted"
    assert exc_info.value.details == {"attempts": 5}
