"""
Streaming Bulk Loader

Base class for the reference data loaders. Each run:

1. Resolves the target schema from the configured routing key (log + return if unmapped)
2. Opens the chunk file and positions a streaming decoder on its "items" array
3. Begins one transaction wrapping the whole run
4. Deletes every row from the kind's staging table
5. Prepares the kind's statements
6. Decodes records one at a time, strictly in file order
7. Applies the kind's transform rules and writes each record
8. Commits, then runs any post-commit work (the identity snapshot)

Any decode or database error aborts the run. Leaving the transaction block with
an exception rolls it back, so no partial staging data is ever visible. Loads
run detached from the HTTP request that triggered them, so every outcome is
reported through logging only.

Subclasses provide the staging table, the record model, statement preparation
and per-record processing.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Type, Union

import asyncpg
from asyncpg import Connection
from pydantic import ValidationError

from bizlogic.core.context import AppContext
from bizlogic.models.enums import DataType
from bizlogic.models.schemas import FeedRecord
from bizlogic.services.json_stream import JSONStreamError, iter_array_items


class RecordDecodeError(ValueError):
    """Raised when an array element does not validate as the loader's record model."""

    def __init__(self, ordinal: int, detail: str):
        super().__init__(f"Error decoding record {ordinal}: {detail}")
        self.ordinal = ordinal


class StreamingBulkLoader(ABC):
    """
    Template for one entity kind's JSON-stream-to-database load.

    Attributes:
        kind: Entity kind this loader handles.
        staging_table: Unqualified staging table name, cleared on every run.
        record_model: Pydantic model each array element validates against.
    """

    kind: ClassVar[DataType]
    staging_table: ClassVar[str]
    record_model: ClassVar[Type[FeedRecord]]

    def __init__(self, context: AppContext):
        self.context = context
        self.logger = logging.getLogger(f"{__name__}.{self.kind.value}")
        self.schema: str = ''
        self.records_read = 0
        self.rows_loaded = 0

    # -------------------------------------------------------------------------
    # Subclass hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    async def prepare(self, conn: Connection, schema: str) -> None:
        """Prepare the kind's statements on the run's connection."""

    @abstractmethod
    async def process(self, record: Any, ordinal: int) -> None:
        """Transform one decoded record and write it through the prepared statements."""

    def reset(self) -> None:
        """Clear per-run state before a new run starts."""
        self.records_read = 0
        self.rows_loaded = 0

    async def after_commit(self) -> None:
        """Work done only once the transaction has committed."""

    def summary(self) -> str:
        return f"processed {self.records_read} records and loaded {self.rows_loaded}"

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def decode(self, item: Any, ordinal: int) -> FeedRecord:
        try:
            return self.record_model.model_validate(item)
        except ValidationError as exc:
            raise RecordDecodeError(ordinal, str(exc)) from exc

    async def load(self, filename: Union[str, Path]) -> None:
        """
        Load one chunk file into the database.

        Never raises for expected failures: unmapped schema, unreadable file,
        decode errors and database errors are all logged and end the run.
        """
        target = self.context.settings.reference_sync_target
        schema = self.context.reference_schema
        if not schema:
            self.logger.error(f"[{target}] Schema for [{target}] not valid; skipping {self.kind.value} load")
            return

        self.schema = schema
        self.reset()
        self.logger.info(f"[{target}] START processing {self.kind.value} data from {filename}")

        try:
            with open(filename, 'r', encoding='utf-8-sig') as fp:
                items = iter_array_items(fp, 'items')
                async with self.context.pool.acquire() as conn:
                    async with conn.transaction():
                        await conn.execute(f"DELETE FROM {schema}.{self.staging_table}")
                        await self.prepare(conn, schema)
                        for ordinal, item in enumerate(items, start=1):
                            record = self.decode(item, ordinal)
                            self.records_read += 1
                            await self.process(record, ordinal)
        except (JSONStreamError, RecordDecodeError) as exc:
            self.logger.error(f"[{target}] Aborted {self.kind.value} load, transaction rolled back: {exc}")
            return
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            self.logger.error(
                f"[{target}] Database error after {self.records_read} {self.kind.value} records, "
                f"transaction rolled back: {exc}"
            )
            return
        except OSError as exc:
            self.logger.error(f"[{target}] I/O error during {self.kind.value} load of [{filename}]: {exc}")
            return

        await self.after_commit()
        self.logger.info(f"[{target}] DONE processing {self.kind.value} data: {self.summary()}")

