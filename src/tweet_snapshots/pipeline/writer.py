"""Persist a user's snapshot under its daily key."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping

from tweet_snapshots.core.exceptions import SnapshotStoreError
from tweet_snapshots.core.kv_store import KeyValueStore
from tweet_snapshots.pipeline.config import SNAPSHOT_KEY_PREFIX

logger = logging.getLogger(__name__)


def snapshot_key(username: str) -> str:
    """Return ``"daily/" + username``.

    The username is not escaped: ``"a/b"`` maps to ``"daily/a/b"``, which
    looks nested but is just a flat key.
    """
    return f"{SNAPSHOT_KEY_PREFIX}{username}"


class SnapshotWriter:
    """Serializes snapshots to JSON and writes them with one ``put`` each.

    Args:
        store: Durable store the snapshots are written to.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def store(self, username: str, snapshot: Mapping[str, str]) -> str:
        """Write ``snapshot`` for ``username``, replacing any previous value.

        Returns:
            The storage key that was written.

        Raises:
            SnapshotStoreError: If the underlying store call fails.
        """
        key = snapshot_key(username)
        value = json.dumps(dict(snapshot), ensure_ascii=False)
        try:
            await self._store.put(key, value)
        except Exception as exc:
            raise SnapshotStoreError(
                f"Failed to store snapshot at '{key}': {exc}", key=key
            ) from exc

        logger.info("writer: stored data for %s with %d items", username, len(snapshot))
        return key
