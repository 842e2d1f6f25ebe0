"""
Transfer / claim event cache.

Two newest-first collections (transfers, claims) plus a last-write
timestamp live in an async key-value store under fixed keys:

- ``bridge_transfers_cache``
- ``bridge_claims_cache``
- ``bridge_cache_timestamp``

Backends:
1. **MemoryStore**: process-local dict, the default.
2. **SQLiteStore**: aiosqlite, survives restarts.  Enable with
   ``EVENT_CACHE_BACKEND=sqlite`` (path from ``EVENT_CACHE_SQLITE_PATH``).

Records are upserted by ``transaction_hash``: fields of an existing record
are merged with the new write (new non-null values win), never replaced
wholesale.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from typing import Any, Iterable, Optional, Protocol

from config import EVENT_CACHE_BACKEND, EVENT_CACHE_SQLITE_PATH

from .constants import CACHE_TIMESTAMP_KEY, CLAIMS_CACHE_KEY, TRANSFERS_CACHE_KEY
from .models import BridgeType, EventCacheSnapshot, EventKind, EventRecord, TransferMatch
from .utils import normalize_amount

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Key-value backends
# ---------------------------------------------------------------------------

class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...


class MemoryStore:
    """Process-local store; values are kept as JSON-ready structures."""

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self._store.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def close(self) -> None:
        pass


class SQLiteStore:
    """Async SQLite key-value store.

    Values are serialised as JSON.  Uses a persistent connection created
    lazily on first access.
    """

    def __init__(self, db_path: str = EVENT_CACHE_SQLITE_PATH) -> None:
        self._db_path = db_path
        self._conn: Any = None  # aiosqlite.Connection
        self._initialised = False

    async def _get_conn(self) -> Any:
        """Return (and lazily create) the persistent aiosqlite connection."""
        import aiosqlite

        if self._conn is not None:
            return self._conn

        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._init_schema(self._conn)
        return self._conn

    async def _init_schema(self, db: Any) -> None:
        if self._initialised:
            return
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key        TEXT PRIMARY KEY,
                value      TEXT NOT NULL,
                updated_at REAL NOT NULL
            )
            """
        )
        await db.commit()
        self._initialised = True

    async def get(self, key: str) -> Optional[Any]:
        try:
            db = await self._get_conn()
            cursor = await db.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return json.loads(row[0])
        except Exception:
            logger.warning("SQLite event store get failed for %s", key, exc_info=True)
            return None

    async def set(self, key: str, value: Any) -> None:
        try:
            db = await self._get_conn()
            await db.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (key, json.dumps(value, default=str), time.time()),
            )
            await db.commit()
        except Exception:
            logger.warning("SQLite event store set failed for %s", key, exc_info=True)

    async def delete(self, key: str) -> None:
        try:
            db = await self._get_conn()
            await db.execute("DELETE FROM kv WHERE key = ?", (key,))
            await db.commit()
        except Exception:
            logger.warning("SQLite event store delete failed for %s", key, exc_info=True)

    async def close(self) -> None:
        """Close the persistent connection."""
        if self._conn is not None:
            try:
                await self._conn.close()
            except Exception:
                logger.debug("SQLite event store close failed", exc_info=True)
            self._conn = None
            self._initialised = False


def create_store(backend: str = EVENT_CACHE_BACKEND) -> KeyValueStore:
    if backend == "sqlite":
        logger.info("Event cache: SQLite backend at %s", EVENT_CACHE_SQLITE_PATH)
        return SQLiteStore(EVENT_CACHE_SQLITE_PATH)
    return MemoryStore()


# ---------------------------------------------------------------------------
# Event cache
# ---------------------------------------------------------------------------

def _now_ms() -> int:
    return int(time.time() * 1000)


class EventCache:
    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self._store = store if store is not None else create_store()
        self._lock = asyncio.Lock()

    async def _load(self, key: str) -> list[dict[str, Any]]:
        raw = await self._store.get(key)
        return list(raw) if isinstance(raw, list) else []

    async def _upsert(self, key: str, record: EventRecord) -> EventRecord:
        update = record.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        async with self._lock:
            entries = await self._load(key)
            for i, existing in enumerate(entries):
                if existing.get("transaction_hash") == record.transaction_hash:
                    entries[i] = {**existing, **update}
                    merged = entries[i]
                    break
            else:
                entries.insert(0, update)
                merged = update
            await self._store.set(key, entries)
            await self._store.set(CACHE_TIMESTAMP_KEY, _now_ms())
        return EventRecord.model_validate(merged)

    async def add_transfer(self, record: EventRecord) -> EventRecord:
        """Upsert a NewExpatriation / NewRepatriation event; returns the merged record."""
        return await self._upsert(TRANSFERS_CACHE_KEY, record)

    async def add_claim(self, record: EventRecord) -> EventRecord:
        """Upsert a NewClaim event; returns the merged record."""
        return await self._upsert(CLAIMS_CACHE_KEY, record)

    async def transfers(self) -> list[EventRecord]:
        return [EventRecord.model_validate(e) for e in await self._load(TRANSFERS_CACHE_KEY)]

    async def claims(self) -> list[EventRecord]:
        return [EventRecord.model_validate(e) for e in await self._load(CLAIMS_CACHE_KEY)]

    async def timestamp(self) -> Optional[int]:
        raw = await self._store.get(CACHE_TIMESTAMP_KEY)
        try:
            return int(raw) if raw is not None else None
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed cache timestamp %r", raw)
            return None

    async def load_snapshot(self) -> EventCacheSnapshot:
        return EventCacheSnapshot(
            transfers=await self.transfers(),
            claims=await self.claims(),
            timestamp=await self.timestamp(),
        )

    async def clear(self) -> None:
        async with self._lock:
            for key in (TRANSFERS_CACHE_KEY, CLAIMS_CACHE_KEY, CACHE_TIMESTAMP_KEY):
                await self._store.delete(key)

    async def close(self) -> None:
        await self._store.close()


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

def create_transfer_event(
    event_type: EventKind,
    *,
    transaction_hash: str,
    sender_address: Optional[str] = None,
    recipient_address: Optional[str] = None,
    amount: Any = None,
    reward: Any = None,
    data: Optional[str] = None,
    block_number: Optional[int] = None,
    log_index: Optional[int] = None,
    timestamp: Optional[int] = None,
    bridge_address: Optional[str] = None,
    bridge_type: Optional[BridgeType] = None,
    home_network: Optional[str] = None,
    foreign_network: Optional[str] = None,
    home_token_symbol: Optional[str] = None,
    foreign_token_symbol: Optional[str] = None,
    network_key: Optional[str] = None,
    network_name: Optional[str] = None,
) -> EventRecord:
    """Build a pending transfer record.

    Expatriations move home → foreign, repatriations foreign → home.
    """
    event_type = EventKind(event_type)
    if event_type == EventKind.NEW_CLAIM:
        raise ValueError("create_transfer_event needs NewExpatriation or NewRepatriation")
    outbound = event_type == EventKind.NEW_EXPATRIATION
    return EventRecord(
        transaction_hash=transaction_hash,
        event_type=event_type,
        sender_address=sender_address,
        recipient_address=recipient_address,
        amount=normalize_amount(amount),
        reward=normalize_amount(reward),
        data=data,
        block_number=block_number,
        log_index=log_index,
        timestamp=timestamp,
        bridge_address=bridge_address,
        bridge_type=bridge_type,
        home_network=home_network,
        foreign_network=foreign_network,
        home_token_symbol=home_token_symbol,
        foreign_token_symbol=foreign_token_symbol,
        network_key=network_key,
        network_name=network_name or home_network,
        from_network=home_network if outbound else foreign_network,
        to_network=foreign_network if outbound else home_network,
        from_token_symbol=home_token_symbol if outbound else foreign_token_symbol,
        to_token_symbol=foreign_token_symbol if outbound else home_token_symbol,
        txid=transaction_hash,
        status="pending",
    )


def create_claim_event(
    *,
    transaction_hash: str,
    claim_num: Optional[int] = None,
    author_address: Optional[str] = None,
    sender_address: Optional[str] = None,
    recipient_address: Optional[str] = None,
    txid: Optional[str] = None,
    txts: Optional[int] = None,
    amount: Any = None,
    reward: Any = None,
    stake: Any = None,
    data: Optional[str] = None,
    expiry_ts: Optional[int] = None,
    block_number: Optional[int] = None,
    log_index: Optional[int] = None,
    timestamp: Optional[int] = None,
    bridge_address: Optional[str] = None,
    bridge_type: Optional[BridgeType] = None,
    home_network: Optional[str] = None,
    foreign_network: Optional[str] = None,
    home_token_symbol: Optional[str] = None,
    foreign_token_symbol: Optional[str] = None,
    network_key: Optional[str] = None,
    network_name: Optional[str] = None,
) -> EventRecord:
    """Build an active claim record; claims always arrive on this network."""
    from_export = bridge_type is not None and BridgeType(bridge_type) == BridgeType.EXPORT
    return EventRecord(
        transaction_hash=transaction_hash,
        event_type=EventKind.NEW_CLAIM,
        claim_num=claim_num,
        claimant_address=author_address,
        sender_address=sender_address,
        recipient_address=recipient_address,
        txid=txid,
        txts=int(txts) if txts is not None else None,
        amount=normalize_amount(amount),
        reward=normalize_amount(reward),
        stake=normalize_amount(stake),
        data=data,
        expiry_ts=expiry_ts,
        block_number=block_number,
        log_index=log_index,
        timestamp=timestamp,
        bridge_address=bridge_address,
        bridge_type=bridge_type,
        home_network=home_network,
        foreign_network=foreign_network,
        home_token_symbol=home_token_symbol,
        foreign_token_symbol=foreign_token_symbol,
        network_key=network_key,
        network_name=network_name or home_network,
        from_network=foreign_network if from_export else home_network,
        to_network=network_name or "Current Network",
        from_token_symbol=foreign_token_symbol if from_export else home_token_symbol,
        to_token_symbol=home_token_symbol if from_export else foreign_token_symbol,
        status="active",
    )


def match_transfers_with_claims(
    transfers: Iterable[EventRecord], claims: Iterable[EventRecord]
) -> list[TransferMatch]:
    """Pair each transfer with the claim whose ``txid`` is its transaction hash."""
    by_txid: dict[str, EventRecord] = {}
    for claim in claims:
        if claim.txid and claim.txid not in by_txid:
            by_txid[claim.txid] = claim
    matches = []
    for transfer in transfers:
        claim = by_txid.get(transfer.transaction_hash)
        if claim is None and transfer.txid:
            claim = by_txid.get(transfer.txid)
        matches.append(TransferMatch(transfer=transfer, claim=claim, transfer_type=transfer.event_type))
    return matches
