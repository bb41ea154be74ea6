"""Transaction classification utilities.

Rule-based helpers used by sync, review and categorization: sign-based type
inference, amount normalization, description-driven type correction and
category presentation defaults.
"""

from .rules import infer_type, normalize_amount, suggest_type

__all__ = ["infer_type", "normalize_amount", "suggest_type"]
