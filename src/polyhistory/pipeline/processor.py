"""Export pipeline: discover markets, fetch target-outcome history, write one CSV."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

import structlog

from polyhistory.ingestion.errors import ApiError
from polyhistory.ingestion.polymarket.clob import ClobClient
from polyhistory.ingestion.polymarket.gamma import GammaClient
from polyhistory.ingestion.rate_limit import RateLimiter
from polyhistory.models import MarketDescriptor, PricePoint, PriceRecord
from polyhistory.storage.export import build_export_path, export_records_to_csv
from polyhistory.storage.tracker import ProcessedMarketTracker

log = structlog.get_logger(__name__)


@dataclass
class RunStats:
    """Counters reported at the end of a run."""

    discovered: int = 0
    filtered: int = 0
    selected: int = 0
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    records: int = 0
    output_path: Path | None = None
    elapsed_sec: float = 0.0


def to_records(market_name: str, points: list[PricePoint]) -> list[PriceRecord]:
    """One record per point whose price parses; the rest are dropped."""
    records = []
    for point in points:
        price = point.price_decimal()
        if price is None:
            continue
        records.append(
            PriceRecord(timestamp=point.timestamp_utc(), market_name=market_name, price=price)
        )
    return records


class MarketProcessor:
    """Runs Discover -> Filter -> Select -> Fetch -> Export once per call to run()."""

    def __init__(
        self,
        gamma_client: GammaClient,
        clob_client: ClobClient,
        tracker: ProcessedMarketTracker,
        rate_limiter: RateLimiter,
        *,
        output_directory: str | Path = "./output",
        export_file_pattern: str = "bitcoin_price_history_{timestamp}.csv",
        search_pattern: str = "Bitcoin price on",
        target_outcome: str = "Yes",
    ) -> None:
        self.gamma_client = gamma_client
        self.clob_client = clob_client
        self.tracker = tracker
        self.rate_limiter = rate_limiter
        self.output_directory = Path(output_directory)
        self.export_file_pattern = export_file_pattern
        self.search_pattern = search_pattern
        self.target_outcome = target_outcome

    def filter_markets(self, markets: list[MarketDescriptor]) -> list[MarketDescriptor]:
        """Keep markets whose question contains the search pattern and whose lists align."""
        needle = self.search_pattern.casefold()
        kept = []
        for m in markets:
            if needle and needle not in m.question.casefold():
                continue
            if not m.has_consistent_outcomes:
                log.warning(
                    "outcome_token_mismatch",
                    question=m.question,
                    outcomes=len(m.outcomes),
                    token_ids=len(m.clob_token_ids),
                )
                continue
            kept.append(m)
        return kept

    def select_tokens(self, markets: list[MarketDescriptor]) -> list[tuple[MarketDescriptor, str]]:
        """Pair each market with the token of the target outcome."""
        pairs = []
        for m in markets:
            token_id = m.token_for_outcome(self.target_outcome)
            if not token_id:
                log.warning("target_outcome_missing", question=m.question, outcome=self.target_outcome)
                continue
            pairs.append((m, token_id))
        return pairs

    def fetch_history(
        self, pairs: list[tuple[MarketDescriptor, str]], stats: RunStats
    ) -> list[PriceRecord]:
        buffer: list[PriceRecord] = []
        total = len(pairs)
        for i, (market, token_id) in enumerate(pairs, start=1):
            if self.tracker.is_processed(token_id):
                stats.skipped += 1
                continue
            self.rate_limiter.wait()
            try:
                points = self.clob_client.get_price_history(token_id)
            except ApiError as e:
                stats.errors += 1
                log.error(
                    "history_fetch_failed",
                    question=market.question,
                    token_id=token_id,
                    kind=e.kind.value,
                    status_code=e.status_code,
                    error=str(e),
                )
                continue
            records = to_records(market.question, points)
            buffer.extend(records)
            self.tracker.mark_processed(token_id)
            stats.processed += 1
            log.info(
                "history_fetched",
                progress=f"{i}/{total}",
                question=market.question,
                points=len(points),
                records=len(records),
                skipped=stats.skipped,
                errors=stats.errors,
            )
        return buffer

    def export(self, records: list[PriceRecord]) -> Path:
        records = sorted(records, key=lambda r: (r.market_name, r.timestamp))
        path = build_export_path(self.output_directory, self.export_file_pattern)
        export_records_to_csv(records, path)
        log.info("export_written", path=str(path), records=len(records))
        return path

    def run(self) -> RunStats:
        """Run the pipeline once. Empty intermediate results end the run early."""
        started = time.monotonic()
        stats = RunStats()
        log.info(
            "run_started",
            search_pattern=self.search_pattern,
            target_outcome=self.target_outcome,
            previously_processed=self.tracker.count,
            rate_limit_ms=self.rate_limiter.delay_ms,
        )
        try:
            markets = self.gamma_client.get_all_markets()
            stats.discovered = len(markets)
            if not markets:
                log.info("no_markets_discovered")
                return stats

            filtered = self.filter_markets(markets)
            stats.filtered = len(filtered)
            pairs = self.select_tokens(filtered)
            stats.selected = len(pairs)
            log.info(
                "markets_selected",
                discovered=stats.discovered,
                filtered=stats.filtered,
                selected=stats.selected,
            )
            if not pairs:
                log.info("no_matching_markets", search_pattern=self.search_pattern)
                return stats

            records = self.fetch_history(pairs, stats)
            stats.records = len(records)
            if not records:
                log.info("no_new_records", skipped=stats.skipped, errors=stats.errors)
                return stats

            stats.output_path = self.export(records)
            return stats
        finally:
            stats.elapsed_sec = round(time.monotonic() - started, 3)
            log.info(
                "run_finished",
                discovered=stats.discovered,
                filtered=stats.filtered,
                processed=stats.processed,
                skipped=stats.skipped,
                errors=stats.errors,
                records=stats.records,
                output=str(stats.output_path) if stats.output_path else None,
                elapsed_sec=stats.elapsed_sec,
            )
