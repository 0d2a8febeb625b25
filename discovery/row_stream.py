"""
Row Streamer - lazy, forward-only iteration over catalog query results.

Rows are fetched from the driver in batches and handed out one at a time so a
result set is never held in memory as a whole. Columns are read by position.
"""

import logging
from typing import Any, AsyncIterator, Optional, Sequence

from shared.errors import SchemaError, SchemaQueryError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000

_TRUE_STRINGS = ('1', 'true')


def driver_message(error: Exception) -> str:
    """Human-readable text of a driver exception (pyodbc puts it in args[1])."""
    if len(error.args) > 1 and isinstance(error.args[1], str):
        return error.args[1]
    return str(error)


class CatalogRow:
    """One result row with typed positional accessors."""

    def __init__(self, values: Sequence[Any], query_name: Optional[str] = None):
        self.values = values
        self.query_name = query_name

    def _raw(self, index: int) -> Any:
        if index >= len(self.values):
            return None
        return self.values[index]

    def _required(self, index: int) -> Any:
        value = self._raw(index)
        if value is None:
            raise SchemaQueryError(f"Failed to get value at column {index}", self.query_name)
        return value

    def _int_in_range(self, index: int, low: int, high: int, kind: str) -> int:
        value = self._required(index)
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise SchemaQueryError(f"Failed to parse {kind} from '{value}'", self.query_name)
        if not low <= number <= high:
            raise SchemaQueryError(f"Value {number} out of range for {kind}", self.query_name)
        return number

    # ------------------------------------------------------------------
    # Required columns
    # ------------------------------------------------------------------

    def get_str(self, index: int) -> str:
        value = self._required(index)
        if isinstance(value, bytes):
            return value.decode('utf-8', errors='replace')
        return str(value)

    def get_i16(self, index: int) -> int:
        return self._int_in_range(index, -32768, 32767, 'i16')

    def get_u8(self, index: int) -> int:
        return self._int_in_range(index, 0, 255, 'u8')

    def get_i32(self, index: int) -> int:
        return self._int_in_range(index, -2147483648, 2147483647, 'i32')

    def get_bool(self, index: int) -> bool:
        value = self._required(index)
        if isinstance(value, (bool, int)):
            return bool(value)
        return str(value).strip().lower() in _TRUE_STRINGS

    # ------------------------------------------------------------------
    # Optional columns (NULL or missing reads as the default)
    # ------------------------------------------------------------------

    def get_str_or(self, index: int, default: str = "") -> str:
        if self._raw(index) is None:
            return default
        return self.get_str(index)

    def get_bool_or(self, index: int, default: bool = False) -> bool:
        if self._raw(index) is None:
            return default
        return self.get_bool(index)


async def stream_rows(session, query: str, batch_size: int = DEFAULT_BATCH_SIZE,
                      query_name: Optional[str] = None) -> AsyncIterator[CatalogRow]:
    """
    Execute ``query`` on ``session`` and yield its rows one at a time.

    Args:
        session: Open session exposing ``execute`` and ``fetch_batch``
        query: Catalog query text
        batch_size: Rows requested per driver round-trip
        query_name: Label used in error messages and logs

    Raises:
        SchemaQueryError: The driver failed on execute or while fetching
    """
    try:
        cursor = await session.execute(query)
    except SchemaError:
        raise
    except Exception as e:
        raise SchemaQueryError(driver_message(e), query_name) from e

    count = 0
    try:
        while True:
            try:
                batch = await session.fetch_batch(cursor, batch_size)
            except SchemaError:
                raise
            except Exception as e:
                raise SchemaQueryError(driver_message(e), query_name) from e

            if not batch:
                break

            for values in batch:
                count += 1
                yield CatalogRow(values, query_name)
    finally:
        cursor.close()
        logger.debug(f"{query_name or 'query'}: streamed {count} rows")
