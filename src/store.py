"""
Supabase store reader for the ESMO Lung Cancer Knowledge Graph.

The entity and relation tables are maintained by an external curation
process; this module only reads them. Two tables are involved:

    esmokg_entities   - clinical concepts (stage, drug, biomarker, ...)
    esmokg_relations  - directed typed edges between entity ids

Every failure raised by the Supabase client is re-raised as
:class:`StoreError` naming the table involved.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from src.models import Entity, Relation

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a table cannot be read from the store."""

    def __init__(self, table: str, message: str) -> None:
        super().__init__(f"{table}: {message}")
        self.table = table


class KnowledgeStore:
    """Read-only access to the entity and relation tables.

    A pre-built client can be injected (tests pass a MagicMock); otherwise
    :meth:`connect` creates one from the URL and key.
    """

    def __init__(
        self,
        url: str = "",
        key: Optional[str] = None,
        entities_table: str = "esmokg_entities",
        relations_table: str = "esmokg_relations",
        client: Optional[Client] = None,
    ) -> None:
        self.url = url
        self.key = key
        self.entities_table = entities_table
        self.relations_table = relations_table
        self._client: Optional[Client] = client

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Create the Supabase client if one was not injected."""
        if self._client is not None:
            return
        if not self.url or not self.key:
            raise StoreError("supabase", "SUPABASE_URL and SUPABASE_KEY must be set")
        logger.info("Connecting to Supabase at %s", self.url)
        self._client = create_client(self.url, self.key)
        logger.info("Supabase client ready.")

    def disconnect(self) -> None:
        logger.info("Releasing Supabase client.")
        self._client = None

    def is_connected(self) -> bool:
        return self._client is not None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _select_all(self, table: str) -> List[Dict[str, Any]]:
        if self._client is None:
            raise StoreError(table, "store is not connected")
        try:
            response = self._client.table(table).select("*").execute()
        except Exception as exc:
            logger.error("Failed to read table '%s': %s", table, exc)
            raise StoreError(table, str(exc)) from exc
        return list(response.data or [])

    def fetch_entities(self) -> List[Entity]:
        """Return every row of the entities table as :class:`Entity`."""
        rows = self._select_all(self.entities_table)
        logger.debug("Fetched %d entities", len(rows))
        return [Entity.model_validate(row) for row in rows]

    def fetch_relations(self) -> List[Relation]:
        """Return every row of the relations table as :class:`Relation`."""
        rows = self._select_all(self.relations_table)
        logger.debug("Fetched %d relations", len(rows))
        return [Relation.model_validate(row) for row in rows]

    def get_table_count(self, table: str) -> int:
        """Exact row count for ``table``."""
        if self._client is None:
            raise StoreError(table, "store is not connected")
        try:
            response = (
                self._client.table(table)
                .select("id", count="exact")
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise StoreError(table, str(exc)) from exc
        return int(response.count or 0)
