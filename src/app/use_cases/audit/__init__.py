"""Tenant audit trail."""

from .dtos import AuditEventItem, AuditEventPage
from .get_audit_events_use_case import GetAuditEventsUseCase

__all__ = ["GetAuditEventsUseCase", "AuditEventItem", "AuditEventPage"]
