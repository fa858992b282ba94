"""Audit logging package."""

from ledgerlight.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
