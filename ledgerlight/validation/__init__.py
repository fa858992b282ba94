"""Form validation package."""

from ledgerlight.validation.validator import EntityFormValidator, FormValidationError

__all__ = ["EntityFormValidator", "FormValidationError"]
