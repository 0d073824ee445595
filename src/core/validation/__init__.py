"""
Validation Package

Exposes `InputValidator`, the stateless validation primitives applied to
caller input before any store access.

Design Notes
------------
- Re-exports are explicit via __all__ to keep the public API intentional.
- Business rule enforcement stays in the services.
"""

from src.core.validation.input_validator import InputValidator

__all__ = [
    "InputValidator",
]
