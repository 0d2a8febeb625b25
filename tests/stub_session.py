"""In-memory stand-in for SqlServerSession keyed by query text."""


class StubCursor:
    """Hands out one row per fetch; raises once ``fail_at`` rows have been returned."""

    def __init__(self, rows, fail_at=None):
        self.rows = list(rows)
        self.fail_at = fail_at
        self.position = 0
        self.closed = False

    def fetch(self):
        if self.fail_at is not None and self.position >= self.fail_at:
            raise RuntimeError("Invalid object name 'dbo.MissingTable'")
        if self.position >= len(self.rows):
            return []
        row = self.rows[self.position]
        self.position += 1
        return [row]

    def close(self):
        self.closed = True


class StubSession:
    """
    ``results`` maps query text to a list of row tuples, a (rows, fail_at)
    pair, or an exception raised on execute. Unknown queries return no rows.
    """

    def __init__(self, results=None):
        self.results = results or {}
        self.cursors = []
        self.executed = []
        self.closed = False

    async def execute(self, query):
        self.executed.append(query)
        result = self.results.get(query, [])
        if isinstance(result, Exception):
            raise result
        if isinstance(result, tuple):
            cursor = StubCursor(*result)
        else:
            cursor = StubCursor(result)
        self.cursors.append(cursor)
        return cursor

    async def fetch_batch(self, cursor, size):
        return cursor.fetch()

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
