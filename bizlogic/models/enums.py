"""
Enumeration definitions for the Business Logic Helper backend.

All enums inherit from both `str` and `Enum` so they compare equal to the raw
query-string values and serialize cleanly in JSON responses.
"""

from enum import Enum


class Position(str, Enum):
    """
    Position of a chunk within a multi-request reference data upload.

    - FIRST: create or truncate the chunk file, then write
    - MIDDLE: append to an existing chunk file
    - LAST: append, then trigger the loader for the data type
    - REPROCESS: no write; trigger the loader on whatever is on disk
    """
    FIRST = "first"
    MIDDLE = "middle"
    LAST = "last"
    REPROCESS = "reprocess"

    @property
    def appends(self) -> bool:
        return self in (Position.MIDDLE, Position.LAST)

    @property
    def triggers_load(self) -> bool:
        return self in (Position.LAST, Position.REPROCESS)


class DataType(str, Enum):
    """
    Reference data feed kinds accepted by postReferenceData.

    Each value is also the stem of its chunk file (<value>.json).
    """
    IDENTITY = "identity"
    OPPORTUNITY = "opportunity"
    ACCOUNT = "account"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"


class BusinessSegment(str, Enum):
    """
    Canonical business segment an account collapses to.

    PAYGO marks NAC HQ accounts, which are excluded from the account load.
    """
    KEY_ACCOUNT = "Key Account"
    ENTERPRISE = "Enterprise"
    MID_MARKET = "Mid-Market"
    SMB = "SMB"
    ISV = "ISV"
    PUBLIC_SECTOR = "Public Sector"
    PAYGO = "PAYGO"


class OpportunityStatus(str, Enum):
    """Opportunity statuses eligible for the LookupOpportunity staging table."""
    OPEN = "Open"
    WON = "Won"
