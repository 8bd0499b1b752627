from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date
from pathlib import Path

from sqlalchemy import create_engine, delete, func, make_url, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from adapters.storage.models import (
    Base,
    HoldingRecord,
    HoldingSnapshotRecord,
    PortfolioChangeRecord,
    PortfolioSnapshotRecord,
)
from core.domain.change import ChangeType, PortfolioChange, Significance
from core.domain.holding import Holding, HoldingSnapshot
from core.domain.snapshot import PortfolioMetrics, PortfolioSnapshot, SectorAllocation, TopHolding

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


class SqlAlchemySnapshotStore:
    """Holding store, snapshot store and change log backed by one SQLAlchemy engine."""

    def __init__(self, database_url: str, *, create_tables: bool = True) -> None:
        _ensure_sqlite_directory(database_url)
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self._engine: Engine = create_engine(database_url, connect_args=connect_args, future=True)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)
        if create_tables:
            Base.metadata.create_all(self._engine)

    # Holding store

    def replace_holdings(self, fund_id: str, holdings: Sequence[Holding]) -> None:
        with self._session_factory() as session:
            session.execute(delete(HoldingRecord).where(HoldingRecord.fund_id == fund_id))
            for holding in holdings:
                if holding.fund_id != fund_id:
                    raise ValueError(f"Holding {holding.stock_symbol} belongs to fund {holding.fund_id}, not {fund_id}")
                session.add(self._holding_to_record(holding))
            session.commit()
        logger.info("Stored %d holdings for fund %s", len(holdings), fund_id)

    def list_holdings(self, fund_id: str) -> list[Holding]:
        with self._session_factory() as session:
            records = session.execute(
                select(HoldingRecord)
                .where(HoldingRecord.fund_id == fund_id)
                .order_by(HoldingRecord.percentage.desc(), HoldingRecord.stock_symbol)
            ).scalars()
            return [self._record_to_holding(record) for record in records]

    def list_fund_ids(self) -> list[str]:
        with self._session_factory() as session:
            return list(
                session.execute(
                    select(HoldingRecord.fund_id).distinct().order_by(HoldingRecord.fund_id)
                ).scalars()
            )

    # Snapshot store

    def save_portfolio_snapshot(self, snapshot: PortfolioSnapshot) -> tuple[PortfolioSnapshot, bool]:
        with self._session_factory() as session:
            existing = self._find_portfolio_snapshot(session, snapshot.fund_id, snapshot.date)
            if existing is not None:
                logger.info("Portfolio snapshot already exists for fund %s on %s", snapshot.fund_id, snapshot.date)
                return self._record_to_portfolio_snapshot(existing), False

            record = self._portfolio_snapshot_to_record(snapshot)
            session.add(record)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = self._find_portfolio_snapshot(session, snapshot.fund_id, snapshot.date)
                if existing is None:
                    raise
                logger.info(
                    "Portfolio snapshot for fund %s on %s was written concurrently; keeping the first one",
                    snapshot.fund_id,
                    snapshot.date,
                )
                return self._record_to_portfolio_snapshot(existing), False
        logger.info("Stored portfolio snapshot for fund %s on %s", snapshot.fund_id, snapshot.date)
        return self._record_to_portfolio_snapshot(record), True

    def save_holding_snapshots(self, snapshots: Sequence[HoldingSnapshot]) -> int:
        if not snapshots:
            return 0
        with self._session_factory() as session:
            existing = self._existing_holding_snapshot_keys(session, snapshots)
            records = [
                self._holding_snapshot_to_record(snapshot)
                for snapshot in snapshots
                if (snapshot.fund_id, snapshot.stock_symbol, snapshot.date) not in existing
            ]
            inserted = self._insert_skipping_duplicates(session, records, label="holding snapshot")
        skipped = len(snapshots) - inserted
        if skipped:
            logger.info("Skipped %d holding snapshots already stored", skipped)
        logger.info("Stored %d holding snapshots", inserted)
        return inserted

    def get_portfolio_snapshot(self, fund_id: str, day: date) -> PortfolioSnapshot | None:
        with self._session_factory() as session:
            record = self._find_portfolio_snapshot(session, fund_id, day)
            return self._record_to_portfolio_snapshot(record) if record is not None else None

    def list_portfolio_snapshots(
        self, fund_id: str, *, since: date | None = None, limit: int | None = None
    ) -> list[PortfolioSnapshot]:
        query = (
            select(PortfolioSnapshotRecord)
            .where(PortfolioSnapshotRecord.fund_id == fund_id)
            .order_by(PortfolioSnapshotRecord.date.desc())
        )
        if since is not None:
            query = query.where(PortfolioSnapshotRecord.date >= since)
        if limit is not None:
            query = query.limit(limit)
        with self._session_factory() as session:
            records = session.execute(query).scalars()
            return [self._record_to_portfolio_snapshot(record) for record in records]

    def list_holding_snapshots(self, fund_id: str, day: date) -> list[HoldingSnapshot]:
        with self._session_factory() as session:
            records = session.execute(
                select(HoldingSnapshotRecord)
                .where(HoldingSnapshotRecord.fund_id == fund_id, HoldingSnapshotRecord.date == day)
                .order_by(HoldingSnapshotRecord.percentage.desc(), HoldingSnapshotRecord.stock_symbol)
            ).scalars()
            return [self._record_to_holding_snapshot(record) for record in records]

    def list_holding_snapshot_history(self, fund_id: str, *, since: date) -> list[HoldingSnapshot]:
        with self._session_factory() as session:
            records = session.execute(
                select(HoldingSnapshotRecord)
                .where(HoldingSnapshotRecord.fund_id == fund_id, HoldingSnapshotRecord.date >= since)
                .order_by(
                    HoldingSnapshotRecord.date.desc(),
                    HoldingSnapshotRecord.percentage.desc(),
                    HoldingSnapshotRecord.stock_symbol,
                )
            ).scalars()
            return [self._record_to_holding_snapshot(record) for record in records]

    def latest_holding_snapshot_days(self, fund_id: str, *, limit: int = 2) -> list[date]:
        with self._session_factory() as session:
            return list(
                session.execute(
                    select(HoldingSnapshotRecord.date)
                    .where(HoldingSnapshotRecord.fund_id == fund_id)
                    .distinct()
                    .order_by(HoldingSnapshotRecord.date.desc())
                    .limit(limit)
                ).scalars()
            )

    # Change log

    def append_changes(self, changes: Sequence[PortfolioChange]) -> int:
        if not changes:
            return 0
        with self._session_factory() as session:
            existing = self._existing_change_keys(session, changes)
            records = [
                self._change_to_record(change)
                for change in changes
                if (change.fund_id, change.date, change.stock_symbol, change.change_type.value) not in existing
            ]
            inserted = self._insert_skipping_duplicates(session, records, label="portfolio change")
        skipped = len(changes) - inserted
        if skipped:
            logger.info("Skipped %d portfolio changes already recorded", skipped)
        return inserted

    def list_changes(self, fund_id: str, *, since: date) -> list[PortfolioChange]:
        with self._session_factory() as session:
            records = session.execute(
                select(PortfolioChangeRecord)
                .where(PortfolioChangeRecord.fund_id == fund_id, PortfolioChangeRecord.date >= since)
                .order_by(*self._change_ordering())
            ).scalars()
            return [self._record_to_change(record) for record in records]

    def list_changes_by_significance(
        self, *, since: date, significances: Iterable[Significance]
    ) -> list[PortfolioChange]:
        levels = [Significance(level).value for level in significances]
        with self._session_factory() as session:
            records = session.execute(
                select(PortfolioChangeRecord)
                .where(PortfolioChangeRecord.date >= since, PortfolioChangeRecord.significance.in_(levels))
                .order_by(*self._change_ordering())
            ).scalars()
            return [self._record_to_change(record) for record in records]

    def close(self) -> None:
        self._engine.dispose()

    def _insert_skipping_duplicates(self, session: Session, records: list[Base], *, label: str) -> int:
        if not records:
            return 0
        session.add_all(records)
        try:
            session.commit()
            return len(records)
        except IntegrityError:
            session.rollback()
            logger.info("Concurrent %s write detected; inserting rows one by one", label)

        inserted = 0
        for record in records:
            session.add(record)
            try:
                session.commit()
                inserted += 1
            except IntegrityError:
                session.rollback()
                logger.debug("Skipping duplicate %s", label)
        return inserted

    @staticmethod
    def _find_portfolio_snapshot(session: Session, fund_id: str, day: date) -> PortfolioSnapshotRecord | None:
        return session.execute(
            select(PortfolioSnapshotRecord).where(
                PortfolioSnapshotRecord.fund_id == fund_id,
                PortfolioSnapshotRecord.date == day,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _existing_holding_snapshot_keys(
        session: Session, snapshots: Sequence[HoldingSnapshot]
    ) -> set[tuple[str, str, date]]:
        fund_ids = {snapshot.fund_id for snapshot in snapshots}
        days = {snapshot.date for snapshot in snapshots}
        rows = session.execute(
            select(HoldingSnapshotRecord.fund_id, HoldingSnapshotRecord.stock_symbol, HoldingSnapshotRecord.date).where(
                HoldingSnapshotRecord.fund_id.in_(fund_ids),
                HoldingSnapshotRecord.date.in_(days),
            )
        ).all()
        return {(row[0], row[1], row[2]) for row in rows}

    @staticmethod
    def _existing_change_keys(
        session: Session, changes: Sequence[PortfolioChange]
    ) -> set[tuple[str, date, str, str]]:
        fund_ids = {change.fund_id for change in changes}
        days = {change.date for change in changes}
        rows = session.execute(
            select(
                PortfolioChangeRecord.fund_id,
                PortfolioChangeRecord.date,
                PortfolioChangeRecord.stock_symbol,
                PortfolioChangeRecord.change_type,
            ).where(
                PortfolioChangeRecord.fund_id.in_(fund_ids),
                PortfolioChangeRecord.date.in_(days),
            )
        ).all()
        return {(row[0], row[1], row[2], row[3]) for row in rows}

    @staticmethod
    def _change_ordering() -> tuple:
        return (
            PortfolioChangeRecord.date.desc(),
            func.abs(PortfolioChangeRecord.change_amount).desc(),
            PortfolioChangeRecord.id,
        )

    @staticmethod
    def _holding_to_record(holding: Holding) -> HoldingRecord:
        return HoldingRecord(
            fund_id=holding.fund_id,
            stock_symbol=holding.stock_symbol,
            stock_name=holding.stock_name,
            percentage=holding.percentage,
            sector=holding.sector,
            market_value=holding.market_value,
            quantity=holding.quantity,
            one_month_change=holding.one_month_change,
        )

    @staticmethod
    def _record_to_holding(record: HoldingRecord) -> Holding:
        return Holding(
            fund_id=record.fund_id,
            stock_symbol=record.stock_symbol,
            stock_name=record.stock_name,
            percentage=record.percentage,
            sector=record.sector,
            market_value=record.market_value,
            quantity=record.quantity,
            one_month_change=record.one_month_change,
        )

    @staticmethod
    def _portfolio_snapshot_to_record(snapshot: PortfolioSnapshot) -> PortfolioSnapshotRecord:
        metrics = snapshot.portfolio_metrics
        record = PortfolioSnapshotRecord(
            fund_id=snapshot.fund_id,
            date=snapshot.date,
            total_holdings=snapshot.total_holdings,
            total_market_value=snapshot.total_market_value,
            top_holdings=[holding.model_dump() for holding in snapshot.top_holdings],
            sector_allocation=[sector.model_dump() for sector in snapshot.sector_allocation],
            top5_weight=metrics.top5_weight,
            top10_weight=metrics.top10_weight,
            top3_sector_weight=metrics.top3_sector_weight,
            diversification_score=metrics.diversification_score,
        )
        if snapshot.created_at is not None:
            record.created_at = snapshot.created_at
        return record

    @staticmethod
    def _record_to_portfolio_snapshot(record: PortfolioSnapshotRecord) -> PortfolioSnapshot:
        return PortfolioSnapshot(
            fund_id=record.fund_id,
            date=record.date,
            total_holdings=record.total_holdings,
            total_market_value=record.total_market_value,
            top_holdings=[TopHolding.model_validate(item) for item in record.top_holdings or []],
            sector_allocation=[SectorAllocation.model_validate(item) for item in record.sector_allocation or []],
            portfolio_metrics=PortfolioMetrics(
                top5_weight=record.top5_weight,
                top10_weight=record.top10_weight,
                top3_sector_weight=record.top3_sector_weight,
                diversification_score=record.diversification_score,
            ),
            created_at=record.created_at,
        )

    @staticmethod
    def _holding_snapshot_to_record(snapshot: HoldingSnapshot) -> HoldingSnapshotRecord:
        return HoldingSnapshotRecord(
            fund_id=snapshot.fund_id,
            date=snapshot.date,
            stock_symbol=snapshot.stock_symbol,
            stock_name=snapshot.stock_name,
            percentage=snapshot.percentage,
            sector=snapshot.sector,
            market_value=snapshot.market_value,
            quantity=snapshot.quantity,
            one_month_change=snapshot.one_month_change,
        )

    @staticmethod
    def _record_to_holding_snapshot(record: HoldingSnapshotRecord) -> HoldingSnapshot:
        return HoldingSnapshot(
            fund_id=record.fund_id,
            date=record.date,
            stock_symbol=record.stock_symbol,
            stock_name=record.stock_name,
            percentage=record.percentage,
            sector=record.sector,
            market_value=record.market_value,
            quantity=record.quantity,
            one_month_change=record.one_month_change,
        )

    @staticmethod
    def _change_to_record(change: PortfolioChange) -> PortfolioChangeRecord:
        return PortfolioChangeRecord(
            fund_id=change.fund_id,
            date=change.date,
            change_type=change.change_type.value,
            stock_symbol=change.stock_symbol,
            stock_name=change.stock_name,
            sector=change.sector,
            old_percentage=change.old_percentage,
            new_percentage=change.new_percentage,
            change_amount=change.change_amount,
            significance=change.significance.value,
        )

    @staticmethod
    def _record_to_change(record: PortfolioChangeRecord) -> PortfolioChange:
        return PortfolioChange(
            fund_id=record.fund_id,
            date=record.date,
            change_type=ChangeType(record.change_type),
            stock_symbol=record.stock_symbol,
            stock_name=record.stock_name,
            sector=record.sector,
            old_percentage=record.old_percentage,
            new_percentage=record.new_percentage,
            change_amount=record.change_amount,
            significance=Significance(record.significance),
        )
