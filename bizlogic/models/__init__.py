"""
Package initialization file for backend models.

Re-exports the feed record schemas and enumerations so other modules can import
them from bizlogic.models directly.
"""

from bizlogic.models.enums import (
    BusinessSegment,
    DataType,
    OpportunityStatus,
    Position,
)
from bizlogic.models.schemas import (
    AccountRecord,
    EmployeeRecord,
    FeedRecord,
    IdentitySnapshotEntry,
    OpportunityRecord,
)

__all__ = [
    # Enums
    'BusinessSegment',
    'DataType',
    'OpportunityStatus',
    'Position',
    # Feed records
    'AccountRecord',
    'EmployeeRecord',
    'FeedRecord',
    'IdentitySnapshotEntry',
    'OpportunityRecord',
]
