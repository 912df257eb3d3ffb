"""Push locally recorded sales to the backend.

A pending transaction becomes ``synced`` only after both its header and its
line items are confirmed remotely. The idempotency key travels with every
attempt; whether a retried push after a crash is deduplicated depends on
the backend honouring that key.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from .data_context import DataContext
from .exceptions import ApiError
from .gateway import Gateway
from .ids import is_finite_number
from .mappers import utc_now_iso
from .models import LocalTransaction, TransactionStatus, items_total
from .models_remote import TransactionInsert
from .telemetry import TelemetryLogger, build_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncFailure:
    local_id: str
    stage: str
    message: str


@dataclass
class SyncReport:
    attempted: int = 0
    synced: list[str] = field(default_factory=list)
    failed: list[SyncFailure] = field(default_factory=list)
    compensated: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class PendingTransactionSyncEngine:
    context: DataContext
    gateway: Gateway
    telemetry: TelemetryLogger | None = None

    def sync_pending_transactions(self) -> SyncReport:
        started = time.monotonic()
        report = SyncReport()
        # Snapshot: records confirmed during this pass are not revisited.
        pending = self.context.pending_transactions()
        for transaction in pending:
            report.attempted += 1
            self._push(transaction, report)
        logger.info(
            "sync_pass_complete",
            extra={
                "attempted": report.attempted,
                "synced": len(report.synced),
                "failed": len(report.failed),
            },
        )
        self._emit(report, int((time.monotonic() - started) * 1000))
        return report

    def _push(self, transaction: LocalTransaction, report: SyncReport) -> None:
        created_at = transaction.created_at or utc_now_iso()
        total = transaction.total_amount if is_finite_number(transaction.total_amount) else items_total(transaction.items)
        header = TransactionInsert(total=total, created_at=created_at)

        try:
            created = self.gateway.create_transaction(header, idempotency_key=transaction.idempotency_key)
        except (ApiError, ValueError) as exc:
            self._fail(report, transaction, "header", exc)
            return

        try:
            self.gateway.create_transaction_items(created.remote_id, transaction)
        except (ApiError, ValueError) as exc:
            self._compensate(created.remote_id, transaction, report)
            self._fail(report, transaction, "items", exc)
            return

        changes: dict[str, object] = {
            "status": TransactionStatus.SYNCED,
            "remote_id": created.remote_id,
            "created_at": created.created_at or created_at,
        }
        if created.receipt_no:
            changes["receipt_no"] = created.receipt_no
        confirmed = created.total if created.total is not None else total
        if confirmed != transaction.total_amount:
            changes["total_amount"] = confirmed
            changes["change_amount"] = max(0, transaction.paid_amount - confirmed)
        self.context.update_transaction(transaction.local_id, **changes)
        report.synced.append(transaction.local_id)
        logger.info(
            "transaction_synced",
            extra={"local_id": transaction.local_id, "remote_id": created.remote_id},
        )

    def _compensate(self, remote_id: str, transaction: LocalTransaction, report: SyncReport) -> None:
        try:
            self.gateway.delete_transaction(remote_id)
        except ApiError as exc:
            logger.error(
                "transaction_compensation_failed",
                extra={"local_id": transaction.local_id, "remote_id": remote_id, "code": exc.code},
            )
            return
        report.compensated.append(remote_id)
        logger.warning(
            "transaction_header_compensated",
            extra={"local_id": transaction.local_id, "remote_id": remote_id},
        )

    def _fail(self, report: SyncReport, transaction: LocalTransaction, stage: str, exc: Exception) -> None:
        message = getattr(exc, "message", None) or str(exc)
        report.failed.append(SyncFailure(local_id=transaction.local_id, stage=stage, message=message))
        logger.warning(
            "transaction_sync_failed",
            extra={"local_id": transaction.local_id, "stage": stage, "error": message},
        )

    def _emit(self, report: SyncReport, duration_ms: int) -> None:
        if self.telemetry is None or report.attempted == 0:
            return
        self.telemetry.emit(
            build_event(
                category="sync",
                name="sync_pending_transactions",
                module="sync_engine",
                action="push",
                success=report.ok,
                duration_ms=duration_ms,
                context={
                    "attempted": report.attempted,
                    "synced": len(report.synced),
                    "failed": len(report.failed),
                    "compensated": len(report.compensated),
                },
            )
        )
