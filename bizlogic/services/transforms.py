"""
Record Transform Rules

Pure functions applied per record by the streaming bulk loaders to normalize
and derive fields from the upstream feeds:

- Date truncation of ISO-8601 timestamps
- Numeric parsing with zero fallback (absent vs unparseable logged differently)
- Business segment collapse to a single canonical category
- SE-list tokenization into a clean "name-role" list
- Management-chain inclusion against the configured manager leads
- Email to directory name (DN) conversion

Apart from the numeric parsers' log lines these functions have no side effects.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence, Tuple

from bizlogic.models.enums import BusinessSegment


logger = logging.getLogger(__name__)

# Substring -> canonical segment, in descending priority. First match wins.
BUSINESS_SEGMENT_PRIORITY: List[Tuple[str, BusinessSegment]] = [
    ('Key Account', BusinessSegment.KEY_ACCOUNT),
    ('Enterprise', BusinessSegment.ENTERPRISE),
    ('Midmarket', BusinessSegment.MID_MARKET),
    ('Mid-Market', BusinessSegment.MID_MARKET),
    ('SMB', BusinessSegment.SMB),
    ('ISV', BusinessSegment.ISV),
    ('Public Sector', BusinessSegment.PUBLIC_SECTOR),
]

PAYGO_SEGMENT = 'NAC HQ'

DN_SUFFIX = ',l=amer,dc=oracle,dc=com'

# Source amounts are expressed in thousands.
AMOUNT_SCALE = Decimal(1000)


# =============================================================================
# DATES
# =============================================================================

def truncate_date(value: str) -> str:
    """Return only the date portion of an ISO-8601 timestamp ("2020-01-31T00:00:00Z" -> "2020-01-31")."""
    return value.split('T', 1)[0]


# =============================================================================
# NUMBERS
# =============================================================================

def parse_decimal(value: str, field: str = '', ordinal: Optional[int] = None) -> Decimal:
    """
    Parse a numeric string, degrading to zero.

    Blank input is treated as an absent field and logged at debug level. A value
    that is present but unparseable is logged as a warning so dirty upstream data
    stays visible, then also becomes zero.

    Args:
        value: Raw string from the feed.
        field: Field name, for the log line.
        ordinal: 1-based record position in the feed, for the log line.

    Returns:
        Decimal: Parsed value, or Decimal(0).
    """
    text = value.strip()
    if not text:
        logger.debug(f"Record {ordinal}: field '{field}' absent, defaulting to 0")
        return Decimal(0)
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        logger.warning(f"Record {ordinal}: field '{field}' unparseable value {value!r}, defaulting to 0")
        return Decimal(0)
    if not parsed.is_finite():
        logger.warning(f"Record {ordinal}: field '{field}' non-finite value {value!r}, defaulting to 0")
        return Decimal(0)
    return parsed


def parse_int(value: str, field: str = '', ordinal: Optional[int] = None) -> int:
    """
    Parse a base-10 integer string, degrading to zero.

    Same logging rules as parse_decimal. Fractional strings such as "50.0" are
    unparseable as integers.
    """
    text = value.strip()
    if not text:
        logger.debug(f"Record {ordinal}: field '{field}' absent, defaulting to 0")
        return 0
    try:
        return int(text, 10)
    except ValueError:
        logger.warning(f"Record {ordinal}: field '{field}' unparseable value {value!r}, defaulting to 0")
        return 0


def scale_amount(value: str, field: str = '', ordinal: Optional[int] = None) -> Decimal:
    """Parse an amount expressed in thousands and scale it to units (×1000)."""
    return parse_decimal(value, field, ordinal) * AMOUNT_SCALE


# =============================================================================
# ACCOUNTS
# =============================================================================

def collapse_business_segment(business_segment: str) -> BusinessSegment:
    """
    Collapse a multi-segment string to one canonical business segment.

    Upstream accounts carry several segments, for example:
        NATD ISV:NATD Public Sector
        NAC HQ:NAC SMB Cloud:NATD Public Sector
        NAC Midmarket Cloud:NATD Public Sector:NATD ULA License

    Matching is a case-sensitive substring test in priority order
    (Key Account > Enterprise > Mid-Market > SMB > ISV > Public Sector).
    Exactly "NAC HQ" marks a PAYGO account; anything unrecognized is SMB.
    """
    if business_segment == PAYGO_SEGMENT:
        return BusinessSegment.PAYGO
    for needle, segment in BUSINESS_SEGMENT_PRIORITY:
        if needle in business_segment:
            return segment
    return BusinessSegment.SMB


def tokenize_se_list(resource_list: str) -> str:
    """
    Clean an SE assignment list for the front end.

    "name1@x.com - ECA, name2@y.com - Hub SE" -> "name1@x.com-ECA,name2@y.com-Hub SE"

    Entries that do not split into exactly two dash-separated parts are dropped.
    Blank input and the literal "null" return "".
    """
    if not resource_list or resource_list == 'null':
        return ''

    cleaned: List[str] = []
    for person in resource_list.split(','):
        parts = person.split('-')
        if len(parts) == 2:
            cleaned.append(f"{parts[0].strip()}-{parts[1].strip()}")
    return ','.join(cleaned)


# =============================================================================
# IDENTITIES
# =============================================================================

def match_management_chain(
    mgr_chain: str,
    manager_leads: Sequence[Tuple[str, str]],
) -> Optional[str]:
    """
    Find the app-map tag for an employee's management chain.

    Args:
        mgr_chain: Delimited chain such as "a@x.com // mgr1@x.com // ceo@x.com".
        manager_leads: Ordered (manager email, tag) pairs from configuration.

    Returns:
        The tag of the first configured manager whose email appears in the
        chain, or None when no configured manager matches.
    """
    if not mgr_chain:
        return None
    for manager_email, tag in manager_leads:
        if manager_email and manager_email in mgr_chain:
            return tag
    return None


def convert_email_to_dn(email: str) -> str:
    """
    Convert an email to a directory name.

    "first.name@oracle.com" -> "cn=FIRST_NAME,l=amer,dc=oracle,dc=com"
    """
    if not email:
        return ''
    local_part = email.split('@', 1)[0]
    return f"cn={local_part.replace('.', '_').upper()}{DN_SUFFIX}"


def split_full_name(full_name: str) -> Tuple[str, str]:
    """Split "Given Family Name" into ("Given", "Family Name"). Surname is "" without a space."""
    given, _, surname = full_name.partition(' ')
    return given.strip(), surname.strip()
