"""One scrape run: search, solve, extract, normalize, reconcile, archive, store.

Cases that gain orders notify their subscribers when a notifier is given.
Per-row problems are counted and skipped; only run-level conditions (site
error, CAPTCHA budget, cancellation, unexpected failures) end the run early.
Every path returns a RunSummary.
"""
from datetime import datetime
import threading
from typing import Iterable, Optional

import requests
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from courtsync.core.config import settings
from courtsync.core.exceptions import (
    CaptchaExhausted,
    CourtSyncError,
    DuplicateKey,
    MalformedRow,
    MissingIdentity,
    SiteError,
    UploadFailed,
)
from courtsync.schemas.run_summary import RunStatus, RunSummary
from courtsync.schemas.search_params import SearchParams
from courtsync.services.blob_store import LocalBlobStore, document_path
from courtsync.services.case_store import CaseStore
from courtsync.services.challenge_solver import AnswerFormat, ChallengeSolver
from courtsync.services.error_classifier import ErrorClassifier, ErrorKind
from courtsync.services.notification_service import NotificationService
from courtsync.services.record_reconciler import ActionKind, RecordReconciler, ReconcileAction
from courtsync.services.retry_policy import RetryPolicy
from courtsync.services.row_normalizer import RowContext, RowNormalizer
from courtsync.services.scraping_log_service import ScrapingLogService
from courtsync.utils.captcha_oracle import ARITHMETIC_CAPTCHA_PROMPT, TEXT_CAPTCHA_PROMPT, VisionOracleClient
from courtsync.utils.site_adapter import HttpFormSiteAdapter, SiteConfig

MISSING_IDENTITY = "missing_identity"


class ScrapePipeline:
    def __init__(
        self,
        adapter,
        normalizer: RowNormalizer,
        reconciler: RecordReconciler,
        store,
        context: RowContext,
        solver: Optional[ChallengeSolver] = None,
        classifier: Optional[ErrorClassifier] = None,
        blob_store=None,
        log_service: Optional[ScrapingLogService] = None,
        notifier: Optional[NotificationService] = None,
        cancel_event: Optional[threading.Event] = None,
        archive_order_types: Optional[Iterable[str]] = None,
        blob_prefix: Optional[str] = None,
    ):
        self.adapter = adapter
        self.normalizer = normalizer
        self.reconciler = reconciler
        self.store = store
        self.context = context
        self.solver = solver
        self.classifier = classifier
        self.blob_store = blob_store
        self.log_service = log_service
        self.notifier = notifier
        self.cancel_event = cancel_event
        if archive_order_types is None:
            archive_order_types = settings.ARCHIVE_ORDER_TYPES
        self.archive_order_types = {t.upper() for t in archive_order_types}
        self.blob_prefix = blob_prefix or settings.BLOB_PREFIX

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _run_context(self, params: SearchParams) -> RowContext:
        overrides = {
            field: getattr(params, field)
            for field in ("bench", "city", "district", "establishment_code")
            if getattr(params, field)
        }
        if params.court:
            overrides["court"] = params.court
        overrides["searched_at"] = datetime.now()
        overrides["judgment_date"] = params.date or self.context.judgment_date
        return self.context.model_copy(update=overrides)

    def _solve(self, summary: RunSummary) -> bool:
        """Get past the CAPTCHA or the site's error page; False ends the run"""
        if self.solver is not None and getattr(self.adapter, "requires_captcha", True):
            try:
                result = self.solver.resolve(self.adapter)
            except SiteError as e:
                summary.captcha_attempts = e.attempt or 0
                summary.status = RunStatus.NO_RECORDS_FOUND
                summary.error_message = e.message
                return False
            except CaptchaExhausted as e:
                summary.captcha_attempts = e.attempts
                summary.status = RunStatus.CAPTCHA_EXHAUSTED
                summary.error_message = str(e)
                return False
            summary.captcha_attempts = result.attempts
            return True

        if self.classifier is not None and hasattr(self.adapter, "result_page"):
            page = self.adapter.result_page()
            if self.classifier.classify(page) != ErrorKind.NONE:
                summary.status = RunStatus.NO_RECORDS_FOUND
                summary.error_message = page.error_text()
                logger.warning(f"Site reported: {summary.error_message}")
                return False
        return True

    def _should_archive(self, order_type: str) -> bool:
        return not self.archive_order_types or order_type.upper() in self.archive_order_types

    def _archive_documents(self, action: ReconcileAction, summary: RunSummary) -> None:
        """Download and store documents for orders that have none yet"""
        if self.blob_store is None or not hasattr(self.adapter, "fetch_document"):
            return
        added = {order.identity_key for order in action.added_orders}
        for order in action.record.orders:
            if order.document_ref or not order.source_url or not self._should_archive(order.order_type):
                continue
            path = document_path(self.blob_prefix, order, action.record.diary_number)
            try:
                data = self.adapter.fetch_document(order.source_url)
                order.document_ref = self.blob_store.upload(data, path)
            except (UploadFailed, requests.exceptions.RequestException, OSError) as e:
                logger.warning(f"Could not archive {order.source_url}: {e}")
                continue
            summary.documents_uploaded += 1
            if order.identity_key not in added:
                action.backfilled_orders.append(order)

    def _notify(self, action: ReconcileAction, orders, case_id, summary: RunSummary) -> None:
        """Queue notifications for new orders; the stored case stands even when this fails"""
        if self.notifier is None or not orders:
            return
        try:
            summary.notifications_queued += self.notifier.notify_new_orders(action.record, orders, case_id)
        except SQLAlchemyError as e:
            logger.error(f"Could not queue notifications for {action.record.diary_number}: {str(e)}")

    def _apply(self, action: ReconcileAction, summary: RunSummary, retried: bool = False) -> None:
        record = action.record
        if action.kind == ActionKind.INSERT:
            try:
                case_id = self.store.insert(record)
            except DuplicateKey:
                if retried:
                    raise
                logger.info(f"Case {record.diary_number} was inserted concurrently, merging instead")
                retry = self.reconciler.reconcile(record, self.store.lookup_by_natural_key)
                if retry.kind == ActionKind.INSERT:
                    raise
                self._apply(retry, summary, retried=True)
                return
            summary.records_inserted += 1
            summary.orders_added += len(record.orders)
            self._notify(action, record.orders, case_id, summary)
            return

        if action.is_noop:
            summary.records_unchanged += 1
            return
        self.store.merge_orders(action.existing_id, record.orders, action.changed_fields)
        summary.records_merged += 1
        summary.orders_added += len(action.added_orders)
        summary.orders_backfilled += len(action.backfilled_orders)
        logger.info(
            f"Merged case {record.diary_number}: {len(action.added_orders)} new orders, "
            f"{len(action.backfilled_orders)} backfilled, fields {sorted(action.changed_fields)}"
        )
        self._notify(action, action.added_orders, action.existing_id, summary)

    def _process_row(self, row, context: RowContext, summary: RunSummary) -> None:
        try:
            candidate = self.normalizer.normalize(row, context)
        except MalformedRow as e:
            logger.warning(f"Skipping row: {e}")
            summary.reject(e.reason.value)
            return

        try:
            action = self.reconciler.reconcile(candidate, self.store.lookup_by_natural_key)
        except MissingIdentity as e:
            logger.warning(f"Skipping row {candidate.serial_number}: {e}")
            summary.reject(MISSING_IDENTITY)
            return
        except SQLAlchemyError as e:
            logger.error(f"Error looking up case {candidate.diary_number}: {str(e)}")
            summary.records_failed += 1
            return
        summary.rows_accepted += 1

        self._archive_documents(action, summary)

        try:
            self._apply(action, summary)
        except (CourtSyncError, SQLAlchemyError, LookupError) as e:
            logger.error(f"Error storing case {candidate.diary_number}: {str(e)}")
            summary.records_failed += 1

    def _finish(self, summary: RunSummary) -> RunSummary:
        summary.finished_at = datetime.now()
        logger.info(
            f"Run {summary.source} finished with {summary.status.value}: {summary.rows_seen} rows, "
            f"{summary.records_inserted} inserted, {summary.records_merged} merged, "
            f"{summary.rows_rejected} rejected, {summary.records_failed} failed"
        )
        if self.log_service is not None:
            try:
                self.log_service.record_run(summary)
            except SQLAlchemyError as e:
                logger.error(f"Could not save scraping log: {str(e)}")
        return summary

    def run(self, params: SearchParams) -> RunSummary:
        summary = RunSummary(source=self.context.source, started_at=datetime.now())
        if self._cancelled():
            summary.status = RunStatus.ABORTED_BY_CANCELLATION
            return self._finish(summary)

        context = self._run_context(params)
        try:
            logger.info(f"Starting {summary.source} run for {params.model_dump(exclude_none=True)}")
            self.adapter.search(params)
            if not self._solve(summary):
                return self._finish(summary)

            rows = self.adapter.extract_rows()
            if not rows:
                summary.status = RunStatus.NO_RECORDS_FOUND
                summary.error_message = "No rows found in the results table"
                return self._finish(summary)

            logger.info(f"Processing {len(rows)} rows")
            for row in rows:
                if self._cancelled():
                    logger.warning(f"Run cancelled after {summary.rows_seen} of {len(rows)} rows")
                    summary.status = RunStatus.ABORTED_BY_CANCELLATION
                    break
                summary.rows_seen += 1
                self._process_row(row, context, summary)

        except Exception as e:
            logger.error(f"Error during scraping: {str(e)}")
            logger.exception("Full traceback:")
            summary.status = RunStatus.FAILED
            summary.error_message = str(e)

        return self._finish(summary)


def _captcha_prompt(site: SiteConfig) -> str:
    if site.numeric_answer:
        return ARITHMETIC_CAPTCHA_PROMPT
    low, high = site.answer_length
    return TEXT_CAPTCHA_PROMPT.format(length=low if low == high else f"{low} to {high}")


def build_site_pipeline(
    site: SiteConfig,
    db: Session,
    oracle=None,
    session: Optional[requests.Session] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ScrapePipeline:
    """Wire a pipeline for one configured site against a database session"""
    classifier = ErrorClassifier(site.captcha_keywords)
    solver = None
    if site.requires_captcha:
        low, high = site.answer_length
        solver = ChallengeSolver(
            oracle or VisionOracleClient(prompt=_captcha_prompt(site)),
            classifier=classifier,
            policy=RetryPolicy(settings.CAPTCHA_MAX_ATTEMPTS, settings.CAPTCHA_RETRY_DELAY),
            answer_format=AnswerFormat(min_length=low, max_length=high, numeric=site.numeric_answer),
        )
    context = RowContext(
        court=site.court,
        bench=site.bench,
        city=site.city,
        district=site.district,
        source=site.name,
    )
    return ScrapePipeline(
        adapter=HttpFormSiteAdapter(site, session=session),
        normalizer=RowNormalizer(site.mapping),
        reconciler=RecordReconciler(),
        store=CaseStore(db),
        context=context,
        solver=solver,
        classifier=classifier,
        blob_store=LocalBlobStore(settings.BLOB_STORAGE_ROOT),
        log_service=ScrapingLogService(db),
        notifier=NotificationService(db),
        cancel_event=cancel_event,
    )
