"""
Counter store: wallet_scores table, indexer checkpoint and the atomic merge.

commit_cycle() is the only writer: in one storage transaction it upserts every
wallet increment (insert with count = increment, or add to the existing
count) and moves the checkpoint. Either everything is applied or nothing is,
so a crash or failure never leaves counters ahead of the checkpoint.

Uses DATABASE_URL for PostgreSQL when set; otherwise SQLite. Both dialects
support INSERT ... ON CONFLICT DO UPDATE, which carries the upsert.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from sqlalchemy import CheckConstraint, Column, Integer, String, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from interaction_indexer.core.exceptions import StorageCommitError
from interaction_indexer.database.models import Checkpoint, WalletCounter
from interaction_indexer.indexer_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

# -----------------------------------------------------------------------------
# SQLAlchemy models
# -----------------------------------------------------------------------------


class WalletScore(Base):
    """One row per wallet: cumulative count of counted program interactions."""

    __tablename__ = "wallet_scores"
    __table_args__ = (
        CheckConstraint("interaction_count >= 0", name="ck_wallet_scores_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Solana addresses are base58, 32-44 chars
    wallet_address = Column(String(44), unique=True, nullable=False, index=True)
    interaction_count = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(Integer, nullable=False)  # Unix
    updated_at = Column(Integer, nullable=False, index=True)  # Unix

    def to_counter(self) -> WalletCounter:
        return WalletCounter(
            wallet_address=self.wallet_address,
            interaction_count=self.interaction_count,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class IndexerCheckpoint(Base):
    """Single row per indexed program holding the last fully processed signature."""

    __tablename__ = "indexer_checkpoints"

    program_id = Column(String(44), primary_key=True)
    last_signature = Column(String(128), nullable=True)
    updated_at = Column(Integer, nullable=False)  # Unix


_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _upsert_builder(dialect_name: str):
    try:
        return _INSERT_BY_DIALECT[dialect_name]
    except KeyError:
        raise ValueError(
            f"Unsupported database dialect {dialect_name!r}; use sqlite or postgresql"
        ) from None


def _validate_deltas(deltas: Mapping[str, int]) -> None:
    for wallet, increment in deltas.items():
        if not wallet:
            raise ValueError("wallet address must be non-empty")
        if isinstance(increment, bool) or not isinstance(increment, int) or increment <= 0:
            raise ValueError(f"increment for {wallet} must be a positive integer, got {increment!r}")


class CounterStore:
    """
    Durable counters and checkpoint for one program.

    read_checkpoint() and commit_cycle() are the contract the indexer cycle
    consumes; get_wallet_counter() and get_top_wallets() serve the read API.
    """

    def __init__(self, database_url: str, *, program_id: str, engine: Engine | None = None) -> None:
        if not program_id:
            raise ValueError("program_id must be non-empty")
        self._program_id = program_id
        if engine is None:
            # Reject other dialects before create_engine tries to import their driver
            _upsert_builder(make_url(database_url).get_backend_name())
            connect_args: dict[str, Any] = {}
            if database_url.startswith("sqlite"):
                connect_args["check_same_thread"] = False
            engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
        self._engine = engine
        self._insert = _upsert_builder(engine.dialect.name)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @property
    def program_id(self) -> str:
        return self._program_id

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist. Safe to call on every startup."""
        Base.metadata.create_all(bind=self._engine)
        logger.info(
            "counter_store_schema_ready",
            dialect=self._engine.dialect.name,
            url=self._engine.url.render_as_string(hide_password=True).split("?")[0],
        )

    def dispose(self) -> None:
        self._engine.dispose()

    # --- Checkpoint ---

    def get_checkpoint(self) -> Checkpoint | None:
        with self._session_scope() as session:
            row = session.get(IndexerCheckpoint, self._program_id)
            if row is None:
                return None
            return Checkpoint(
                program_id=row.program_id,
                last_signature=row.last_signature,
                updated_at=row.updated_at,
            )

    def read_checkpoint(self) -> str | None:
        """Last fully processed signature, or None on cold start."""
        checkpoint = self.get_checkpoint()
        return checkpoint.last_signature if checkpoint else None

    # --- Merge ---

    def _merge_deltas(self, session: Session, deltas: Mapping[str, int], now: int) -> None:
        table = WalletScore.__table__
        for wallet, increment in deltas.items():
            stmt = self._insert(table).values(
                wallet_address=wallet,
                interaction_count=increment,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.wallet_address],
                set_={
                    "interaction_count": table.c.interaction_count + stmt.excluded.interaction_count,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            session.execute(stmt)

    def _store_checkpoint(self, session: Session, signature: str, now: int) -> None:
        table = IndexerCheckpoint.__table__
        stmt = self._insert(table).values(
            program_id=self._program_id,
            last_signature=signature,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.program_id],
            set_={
                "last_signature": stmt.excluded.last_signature,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        session.execute(stmt)

    def commit_cycle(
        self,
        deltas: Mapping[str, int],
        new_checkpoint: str,
        *,
        now: int | None = None,
    ) -> None:
        """
        Atomically add every (wallet, increment) and store new_checkpoint.

        Empty deltas write only the checkpoint (fast-forward). On any storage
        failure the transaction is rolled back and StorageCommitError raised;
        neither counters nor checkpoint change.
        """
        if not new_checkpoint:
            raise ValueError("new_checkpoint must be non-empty")
        _validate_deltas(deltas)
        now = int(time.time()) if now is None else now
        try:
            with self._session_scope() as session:
                if deltas:
                    self._merge_deltas(session, deltas, now)
                self._store_checkpoint(session, new_checkpoint, now)
        except SQLAlchemyError as e:
            logger.error(
                "counter_store_commit_rolled_back",
                wallets=len(deltas),
                checkpoint=new_checkpoint[:16],
                error=str(e),
            )
            raise StorageCommitError(f"commit_cycle rolled back: {e}") from e
        logger.info(
            "counter_store_commit",
            wallets=len(deltas),
            increments=sum(deltas.values()),
            checkpoint=new_checkpoint[:16],
        )

    # --- Reads ---

    def get_wallet_counter(self, wallet_address: str) -> WalletCounter | None:
        with self._session_scope() as session:
            row = (
                session.query(WalletScore)
                .filter(WalletScore.wallet_address == wallet_address)
                .first()
            )
            return row.to_counter() if row else None

    def get_interaction_count(self, wallet_address: str) -> int:
        """Count for the wallet; 0 for wallets never seen."""
        counter = self.get_wallet_counter(wallet_address)
        return counter.interaction_count if counter else 0

    def get_top_wallets(self, limit: int = 10) -> list[WalletCounter]:
        """Ranked by count descending; ties go to the earliest updated_at, then insertion order."""
        if limit <= 0:
            return []
        with self._session_scope() as session:
            rows = (
                session.query(WalletScore)
                .order_by(
                    WalletScore.interaction_count.desc(),
                    WalletScore.updated_at.asc(),
                    WalletScore.id.asc(),
                )
                .limit(limit)
                .all()
            )
            return [row.to_counter() for row in rows]

    def count_wallets(self) -> int:
        with self._session_scope() as session:
            return session.query(WalletScore).count()


def get_counter_store(database_url: str, program_id: str) -> CounterStore:
    """Return a CounterStore with its schema ensured. Storage errors here are fatal at startup."""
    store = CounterStore(database_url, program_id=program_id)
    store.ensure_schema()
    return store
