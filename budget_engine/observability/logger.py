"""
Engine Logger

DESIGN DECISION: Every state change the engine performs on the ledger is
logged as a structured event. This provides:
1. Traceability of generated movements and occurrences
2. Visibility into batch runs that tolerate partial failure
3. Debugging capability without a debugger attached

Only the orchestration layer logs. The calculators (tree, recurrence,
amortization, reconciliation, statistics) stay pure.

Related events share a correlation ID so one user action can be followed
through every step it triggered.
"""

import logging
import sys
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from budget_engine.config.settings import LoggingSettings
from budget_engine.models.reports import ReconciliationReport, RecurrenceRunReport


def _processors(json_output: bool) -> list:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


# Configure structlog for local logging
structlog.configure(
    processors=_processors(json_output=True),
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    (Re)configure structlog and the stdlib root logger from settings.

    Safe to call more than once; the last call wins.
    """
    settings = settings or LoggingSettings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=settings.level,
        force=True,
    )
    structlog.configure(
        processors=_processors(settings.json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


class EngineLogger:
    """
    Central event logging for the engine.

    One method per event type keeps event names and fields consistent
    across every caller.
    """

    def __init__(self, name: str = "budget_engine"):
        self._logger = structlog.get_logger(name)

    def log(self, event: str, level: str = "info", **fields: Any) -> None:
        """Log an event; UUID values are rendered as strings."""
        rendered = {
            key: str(value) if isinstance(value, UUID) else value
            for key, value in fields.items()
        }
        getattr(self._logger, level)(event, **rendered)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def log_budget_reconciled(
        self,
        budget_id: UUID,
        actual_income: str,
        actual_expenses: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "budget_reconciled",
            budget_id=budget_id,
            actual_income=actual_income,
            actual_expenses=actual_expenses,
            correlation_id=correlation_id,
        )

    def log_reconciliation_failed(
        self,
        budget_id: UUID,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "budget_reconciliation_failed",
            level="warning",
            budget_id=budget_id,
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        )

    def log_reconciliation_summary(
        self,
        report: ReconciliationReport,
        correlation_id: UUID,
    ) -> None:
        """Log the outcome of a batch, plus one warning per failed budget."""
        for failure in report.failures:
            self.log_reconciliation_failed(
                budget_id=failure.item_id,
                error_type=failure.error_type,
                error_message=failure.error_message,
                correlation_id=correlation_id,
            )
        self.log(
            "reconciliation_batch_completed",
            level="warning" if report.has_failures else "info",
            total=report.total,
            reconciled=len(report.reconciled),
            failed=len(report.failures),
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def log_expense_completed(
        self,
        expense_id: UUID,
        movement_id: UUID,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "scheduled_expense_completed",
            expense_id=expense_id,
            movement_id=movement_id,
            amount=amount,
            correlation_id=correlation_id,
        )

    def log_occurrence_created(
        self,
        expense_id: UUID,
        occurrence_id: UUID,
        due_date: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "next_occurrence_created",
            expense_id=expense_id,
            occurrence_id=occurrence_id,
            due_date=due_date,
            correlation_id=correlation_id,
        )

    def log_recurrence_exhausted(
        self,
        expense_id: UUID,
        description: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "recurrence_exhausted",
            expense_id=expense_id,
            description=description,
            correlation_id=correlation_id,
        )

    def log_recurrence_summary(
        self,
        report: RecurrenceRunReport,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "recurrence_batch_completed",
            level="warning" if report.failures else "info",
            created=len(report.created),
            exhausted=len(report.exhausted),
            failed=len(report.failures),
            correlation_id=correlation_id,
        )

    def log_schedule_generated(
        self,
        plan_id: UUID,
        installments: int,
        total_interest: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "amortization_schedule_generated",
            plan_id=plan_id,
            installments=installments,
            total_interest=total_interest,
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(
            "engine_error",
            level="error",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new engine operation.
    Pass it through all subsequent log calls.
    """
    return uuid4()
