"""Audit trail of handled requests."""

from .audit import AUDIT_FILE_NAME, AuditEvent, JsonlAuditLogger, sanitize_arguments

__all__ = ["AUDIT_FILE_NAME", "AuditEvent", "JsonlAuditLogger", "sanitize_arguments"]
