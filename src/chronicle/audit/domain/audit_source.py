from enum import Enum


class AuditSource(str, Enum):
    """Channel through which the audited change entered the system"""

    WEB = "web"
    API = "api"
    SYSTEM = "system"
    MIGRATION = "migration"
