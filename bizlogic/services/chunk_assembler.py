"""
Chunk Assembler

Accumulates a reference data document that arrives across several independent
HTTP requests into one file per data type (<chunk_directory>/<type>.json).

- first: create or truncate the file, then write the chunk
- middle / last: append the chunk verbatim; the file must already exist
- reprocess: no write; whatever is on disk is treated as complete

Chunks are raw bytes. No JSON-aware merging happens here: the caller is
expected to split the document at byte positions that keep the concatenation
valid JSON.
"""

import logging
from pathlib import Path
from typing import Union

from bizlogic.models.enums import DataType, Position


logger = logging.getLogger(__name__)


class ChunkWriteError(IOError):
    """Raised when a chunk cannot be written to its chunk file."""


class ChunkAssembler:
    """Writes chunks for each data type into its chunk file."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, data_type: DataType) -> Path:
        return self.directory / data_type.filename

    def write(self, data_type: DataType, position: Position, data: bytes) -> Path:
        """
        Apply one chunk to the data type's chunk file.

        Args:
            data_type: Feed the chunk belongs to.
            position: Where the chunk sits in the upload sequence.
            data: Raw chunk bytes.

        Returns:
            Path of the chunk file (unchanged for reprocess).

        Raises:
            ChunkWriteError: If the file cannot be created, opened or written.
                Appending to a missing file is an error; there is no implicit
                "first".
        """
        path = self.path_for(data_type)

        if position == Position.REPROCESS:
            return path

        try:
            if position == Position.FIRST:
                with open(path, 'wb') as fp:
                    fp.write(data)
                logger.info(f"[{data_type.value}] START collecting data into {path}")
            elif position.appends:
                # 'r+b' fails on a missing file where 'ab' would silently create it.
                with open(path, 'r+b') as fp:
                    fp.seek(0, 2)
                    fp.write(data)
        except OSError as exc:
            logger.error(
                f"[{data_type.value}] Error writing to file [{path}] in [{position.value}] position: {exc}"
            )
            raise ChunkWriteError(
                f"Unable to write {position.value} chunk for {data_type.value} to {path}: {exc}"
            ) from exc

        if position == Position.LAST:
            logger.info(f"[{data_type.value}] DONE collecting data into {path}")

        return path
