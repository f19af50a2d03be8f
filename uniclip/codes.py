# -*- coding: utf-8 -*-
"""
codes.py - Pairing code generation
Short human-typed room codes drawn from an alphabet without look-alike glyphs
"""

import secrets
from typing import Callable, Optional

# No 0/O or 1/I: codes are read off one screen and typed on another
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 5


def generate_code(length: int = CODE_LENGTH, choice: Optional[Callable[[str], str]] = None) -> str:
    """
    Generate a pairing code.

    Each character is picked independently and uniformly from CODE_ALPHABET.
    Uniqueness is not checked here; the registry owns that concern.

    Args:
        length: Number of characters in the code
        choice: Random source picking one character from a string
            (defaults to secrets.choice)

    Returns:
        The generated code
    """
    if length <= 0:
        raise ValueError(f"code length must be positive, got {length}")
    pick = choice or secrets.choice
    return ''.join(pick(CODE_ALPHABET) for _ in range(length))


def is_valid_code(code: str, length: int = CODE_LENGTH) -> bool:
    """Check that a string has the shape of a generated code"""
    return len(code) == length and all(c in CODE_ALPHABET for c in code)
