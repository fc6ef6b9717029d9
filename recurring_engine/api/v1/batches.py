"""POST /v1/batches/execute - execute due recurring rules"""

import time
from datetime import tzinfo
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response

from recurring_engine.api.v1.schemas import BatchRequest, ExecutionReportResponse
from recurring_engine.api.dependencies import (
    get_calendar_tz,
    get_ledger,
    get_notifier,
    get_request_id,
    get_rule_repository,
)
from recurring_engine.config import settings
from recurring_engine.domain.models import BatchStatus
from recurring_engine.domain.ports import Ledger
from recurring_engine.infrastructure.clients.notifications import NotificationClient
from recurring_engine.infrastructure.database.repositories import RuleRepository
from recurring_engine.infrastructure.observability.logging import log_batch_outcome
from recurring_engine.infrastructure.observability.metrics import record_execution_batch
from recurring_engine.jobs.execute import run_execution_batch
from recurring_engine.utils.clock import now_millis

router = APIRouter()


@router.post("/batches/execute", response_model=ExecutionReportResponse)
async def execute_batch(
    request: Request,
    response: Response,
    body: Optional[BatchRequest] = None,
    store: RuleRepository = Depends(get_rule_repository),
    ledger: Ledger = Depends(get_ledger),
    notifier: NotificationClient = Depends(get_notifier),
    tz: tzinfo = Depends(get_calendar_tz),
):
    """
    Run one execution batch for the external trigger.

    Flow:
    1. Resolve "now" (request body or server clock)
    2. Load active rules and select the due set
    3. Record a ledger transaction per due rule and advance it
    4. Retract reminders of executed rules
    5. Return the per-rule report; 503 tells the trigger to retry later
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = body.now_millis if body and body.now_millis is not None else now_millis()

    report = await run_execution_batch(
        store=store,
        ledger=ledger,
        notifier=notifier,
        now_millis=now,
        tz=tz,
        max_concurrency=settings.batch_max_concurrency,
    )

    # Record metrics and logs
    duration = time.time() - start_time
    record_execution_batch(report, duration)
    log_batch_outcome(request_id, report, now, duration * 1000)

    if report.status == BatchStatus.RETRY:
        response.status_code = 503

    return ExecutionReportResponse.from_report(report, now)
