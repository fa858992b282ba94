"""
Ledger and Tag Form Validation

DESIGN DECISION: Validation happens in two stages:

STAGE 1 - FORMAT:
- Name present and within length
- Colour is #RRGGBB
- Icon identifier present

STAGE 2 - CONSISTENCY:
- Name not already used by another ledger/tag (warning only)
- Needs the store, so it is skipped when none is configured

Validation NEVER fixes input. It reports issues so the form can
show them; only errors block saving.
"""

import re
from typing import Optional
from uuid import UUID

from ledgerlight.models.ledger import (
    Ledger,
    Tag,
    ValidationIssue,
    ValidationResult,
)
from ledgerlight.services.storage import LedgerStoreInterface

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

NAME_LIMITS = {
    Ledger: 50,
    Tag: 30,
}


class FormValidationError(ValueError):
    """Raised by flows when a form fails validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(messages or "Form is invalid")


class EntityFormValidator:
    """Validates create/edit forms for ledgers and tags."""

    def __init__(self, store: Optional[LedgerStoreInterface] = None):
        """
        Args:
            store: Used for duplicate-name checks.
                   If None, duplicate checking is skipped.
        """
        self._store = store

    def _validate_format(
        self,
        entity_type: type,
        name: str,
        color_hex: str,
        icon: str,
    ) -> list[ValidationIssue]:
        issues = []
        trimmed = (name or "").strip()
        max_length = NAME_LIMITS[entity_type]

        if not trimmed:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="error",
            ))
        elif len(trimmed) > max_length:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Name must be at most {max_length} characters",
                severity="error",
            ))

        if not color_hex or not HEX_COLOR.fullmatch(color_hex):
            issues.append(ValidationIssue(
                field="color_hex",
                issue_type="invalid_format",
                message=f"Colour must look like #RRGGBB, got {color_hex!r}",
                severity="error",
            ))

        if not (icon or "").strip():
            issues.append(ValidationIssue(
                field="icon",
                issue_type="missing",
                message="An icon must be selected",
                severity="error",
            ))

        return issues

    def _validate_consistency(
        self,
        entity_type: type,
        name: str,
        exclude_id: Optional[UUID],
    ) -> list[ValidationIssue]:
        if self._store is None:
            return []

        wanted = name.strip().casefold()
        clashes = self._store.query(
            entity_type,
            lambda entity: entity.id != exclude_id and entity.name.casefold() == wanted,
        )
        if not clashes:
            return []

        kind = entity_type.__name__.lower()
        return [ValidationIssue(
            field="name",
            issue_type="duplicate",
            message=f"Another {kind} is already named '{name.strip()}'",
            severity="warning",
        )]

    def validate(
        self,
        entity_type: type,
        name: str,
        color_hex: str,
        icon: str,
        exclude_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Run both stages for a ledger or tag form.

        Args:
            exclude_id: The entity being edited, so it doesn't clash with itself
        """
        if entity_type not in NAME_LIMITS:
            raise TypeError(f"No form for {entity_type.__name__}")

        issues = self._validate_format(entity_type, name, color_hex, icon)
        if not any(issue.severity == "error" for issue in issues):
            issues.extend(self._validate_consistency(entity_type, name, exclude_id))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def validate_ledger_form(self, name: str, color_hex: str, icon: str,
                             exclude_id: Optional[UUID] = None) -> ValidationResult:
        return self.validate(Ledger, name, color_hex, icon, exclude_id)

    def validate_tag_form(self, name: str, color_hex: str, icon: str,
                          exclude_id: Optional[UUID] = None) -> ValidationResult:
        return self.validate(Tag, name, color_hex, icon, exclude_id)
