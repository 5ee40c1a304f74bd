"""Audit trail of mutations on application tables.

The integration point for domain code is ``AuditService.with_audit``; history
and retention live in ``HistoryQueryService`` and ``RetentionService``.
"""
