"""
Logging module for lotkeeper.

Provides append-only audit logging and stdlib logging setup.
"""

from lotkeeper.logging.audit_log import (
    AuditLogger,
    DecimalEncoder,
    configure_logging,
)

__all__ = [
    "AuditLogger",
    "DecimalEncoder",
    "configure_logging",
]
