"""
SQL templates for the Business Logic Helper.

- loader_statements: staging inserts and master-table updates run by the bulk loaders
- dashboard_queries: read-only report queries and health probe queries
"""
