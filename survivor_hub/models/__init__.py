"""
SQLModel table models.

For modifications:
1. Edit the appropriate model file in survivor_hub/models/
2. Create an Alembic migration to reflect the changes
"""

from survivor_hub.models.directory import Resources, Services
from survivor_hub.models.evidence_file import EvidenceFiles
from survivor_hub.models.report import Reports
from survivor_hub.models.report_status_change import ReportStatusChanges
from survivor_hub.models.translation import Translations
from survivor_hub.models.user import Profiles, UserPreferences, UserRoles, Users

__all__ = [
    # Reporting
    "Reports",
    "EvidenceFiles",
    "ReportStatusChanges",
    # Accounts
    "Users",
    "Profiles",
    "UserPreferences",
    "UserRoles",
    # Content
    "Resources",
    "Services",
    "Translations",
]
