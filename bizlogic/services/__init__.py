"""
Backend Services Module

Business logic for the reference data pipeline and the report endpoints.

Services:
- chunk_assembler: Reassembles multi-request uploads into one file per data type
- json_stream: Streaming decoder for the {"items": [...]} chunk files
- transforms: Per-record normalization and derivation rules
- bulk_loader: Transactional stream-to-staging load template
- identity_loader / opportunity_loader / account_loader: Per-kind loaders
- load_dispatcher: Single-flight background workers, one per data type
- ingestion: postReferenceData validation and hand-off
- queries: Report query execution and row projection
- health: Health probe checks
"""

# =============================================================================
# Reference Data Pipeline Exports
# =============================================================================

from bizlogic.services.account_loader import AccountLoader
from bizlogic.services.bulk_loader import RecordDecodeError, StreamingBulkLoader
from bizlogic.services.chunk_assembler import ChunkAssembler, ChunkWriteError
from bizlogic.services.identity_loader import IdentityLoader
from bizlogic.services.ingestion import IngestionCoordinator, InvalidParameterError
from bizlogic.services.json_stream import JSONStreamError, iter_array_items
from bizlogic.services.load_dispatcher import LoadDispatcher
from bizlogic.services.opportunity_loader import OpportunityLoader

# =============================================================================
# Report Query Exports
# =============================================================================

from bizlogic.services.queries import QueryDefinition, QueryError, run_query

__all__ = [
    # ----- Reference data pipeline -----
    'AccountLoader',
    'ChunkAssembler',
    'ChunkWriteError',
    'IdentityLoader',
    'IngestionCoordinator',
    'InvalidParameterError',
    'JSONStreamError',
    'LoadDispatcher',
    'OpportunityLoader',
    'RecordDecodeError',
    'StreamingBulkLoader',
    'iter_array_items',
    # ----- Report queries -----
    'QueryDefinition',
    'QueryError',
    'run_query',
]
