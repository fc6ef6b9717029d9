"""POST /v1/reminders/scan - raise reminders for upcoming occurrences"""

import time
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response

from recurring_engine.api.v1.schemas import BatchRequest, ReminderReportResponse
from recurring_engine.api.dependencies import (
    get_notifier,
    get_request_id,
    get_rule_repository,
    get_sent_reminder_log,
)
from recurring_engine.domain.models import BatchStatus
from recurring_engine.infrastructure.clients.notifications import NotificationClient
from recurring_engine.infrastructure.database.repositories import RuleRepository, SentReminderRepository
from recurring_engine.infrastructure.observability.logging import log_reminder_scan
from recurring_engine.infrastructure.observability.metrics import record_reminder_scan
from recurring_engine.jobs.remind import scan_for_reminders
from recurring_engine.utils.clock import now_millis

router = APIRouter()


@router.post("/reminders/scan", response_model=ReminderReportResponse)
async def scan_reminders(
    request: Request,
    response: Response,
    body: Optional[BatchRequest] = None,
    store: RuleRepository = Depends(get_rule_repository),
    sent_log: SentReminderRepository = Depends(get_sent_reminder_log),
    notifier: NotificationClient = Depends(get_notifier),
):
    """
    Run one reminder scan for the external trigger.

    Returns 503 when the scan could not start and should be retried.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = body.now_millis if body and body.now_millis is not None else now_millis()

    report = await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=now)

    duration = time.time() - start_time
    record_reminder_scan(report, duration)
    log_reminder_scan(request_id, report, now, duration * 1000)

    if report.status == BatchStatus.RETRY:
        response.status_code = 503

    return ReminderReportResponse.from_report(report, now)
