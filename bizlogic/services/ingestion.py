"""
Ingestion Coordinator

Backs the postReferenceData endpoint. Each request carries one chunk of a
larger {"items": [...]} document plus a position in the upload sequence:

    first      -> reset the chunk file and write
    middle     -> append
    last       -> append, then hand the file to the loader for the type
    reprocess  -> no write; hand the file already on disk to the loader

There is no upload session: correctness relies on the caller sending one
first, any number of middles and one last (or a reprocess) per type.
Loads are handed to the LoadDispatcher and never block the response.
"""

import asyncio
import logging
from typing import Optional

from bizlogic.models.enums import DataType, Position
from bizlogic.services.chunk_assembler import ChunkAssembler
from bizlogic.services.load_dispatcher import LoadDispatcher


logger = logging.getLogger(__name__)

INVALID_POSITION_MESSAGE = "Missing or invalid position query string parameter"
INVALID_TYPE_MESSAGE = "Missing or invalid type query string parameter"


class InvalidParameterError(ValueError):
    """Raised when a query parameter is missing or not one of the accepted values."""


def parse_position(raw: Optional[str]) -> Position:
    try:
        return Position(raw)
    except ValueError:
        logger.error(f"Missing or invalid position parameter: {raw}")
        raise InvalidParameterError(INVALID_POSITION_MESSAGE) from None


def parse_data_type(raw: Optional[str]) -> DataType:
    try:
        return DataType(raw)
    except ValueError:
        logger.error(f"Missing or invalid type parameter: {raw}")
        raise InvalidParameterError(INVALID_TYPE_MESSAGE) from None


class IngestionCoordinator:
    """Validates chunk requests, writes chunks and triggers loads."""

    def __init__(self, assembler: ChunkAssembler, dispatcher: LoadDispatcher):
        self.assembler = assembler
        self.dispatcher = dispatcher

    async def accept(self, position_raw: Optional[str], type_raw: Optional[str], body: bytes) -> None:
        """
        Handle one postReferenceData request.

        Both parameters are validated before anything touches the disk.

        Raises:
            InvalidParameterError: If position or type is missing or invalid.
            ChunkWriteError: If the chunk cannot be written. No load is
                triggered in that case, even for `last`.
        """
        position = parse_position(position_raw)
        data_type = parse_data_type(type_raw)

        # Chunk writes run off the event loop.
        path = await asyncio.to_thread(self.assembler.write, data_type, position, body)

        if position.triggers_load:
            logger.info(f"[{data_type.value}] Handing off {path} to {data_type.value} loader")
            self.dispatcher.submit(data_type, path)
