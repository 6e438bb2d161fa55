"""
Study Material Generators Package.

This module contains generators for each kind of AI-generated material:
- flash_cards: Term/definition cards for revision
- mcq: Four-option multiple choice tests
- subjective: Open-ended analytical questions
"""
from typing import Literal

# Supported content types
ContentType = Literal[
    "flash_cards",
    "mcq",
    "subjective",
]
