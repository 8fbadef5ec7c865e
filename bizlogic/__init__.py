"""
Business Logic Helper Backend Package.

FastAPI service that sits beside the low-code front end and supplies data its
native query layer cannot produce efficiently: recursive manager hierarchy
lookups, dashboard aggregates, and bulk loads of externally sourced employee,
account and opportunity feeds.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, application context and dependencies
    - models: Pydantic feed records and enums
    - services: Chunk assembly, streaming bulk loaders and query helpers
    - sql: Parameterized SQL statements and query templates
"""

__version__ = "1.0.0"
