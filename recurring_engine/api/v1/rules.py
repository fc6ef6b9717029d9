"""/v1/rules - recurring rule management"""

import logging
import uuid
from datetime import tzinfo
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from recurring_engine.api.v1.schemas import (
    RuleListResponse,
    RuleRequest,
    RuleResponse,
    RuleSummaryResponse,
    SetActiveRequest,
)
from recurring_engine.api.dependencies import (
    get_calendar_tz,
    get_notifier,
    get_rule_repository,
    get_sent_reminder_log,
)
from recurring_engine.domain.exceptions import InvalidRuleError, RuleNotFoundError, RuleStoreError
from recurring_engine.domain.models import RecurringRule, TransactionKind
from recurring_engine.domain.money import parse_to_minor_units
from recurring_engine.domain.rules import edit_rule, new_rule, set_active, toggle_active
from recurring_engine.infrastructure.clients.notifications import NotificationClient
from recurring_engine.infrastructure.database.repositories import RuleRepository, SentReminderRepository
from recurring_engine.jobs.remind import retract_reminder
from recurring_engine.utils.clock import now_millis

router = APIRouter()


def _validated_fields(body: RuleRequest) -> dict:
    """Caller-side validation the scheduling engine itself does not enforce"""
    if not body.title.strip():
        raise InvalidRuleError("Title cannot be empty")

    amount_cents = parse_to_minor_units(body.amount)
    if amount_cents <= 0:
        raise InvalidRuleError("Amount must be a positive decimal number")

    return dict(
        title=body.title.strip(),
        amount_minor_units=amount_cents,
        kind=body.kind,
        category=body.category,
        frequency=body.frequency,
        start_millis=body.start_millis,
        reminder_enabled=body.reminder_enabled,
        reminder_days_before=body.reminder_days_before,
    )


def _parse_rule_id(rule_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(rule_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid rule ID format")


def _load(repo: RuleRepository, rule_id: str) -> RecurringRule:
    try:
        return repo.get_rule(_parse_rule_id(rule_id))
    except RuleNotFoundError:
        raise HTTPException(status_code=404, detail="Rule not found")


def _save(repo: RuleRepository, rule: RecurringRule) -> None:
    try:
        repo.save_rule(rule)
    except RuleStoreError as e:
        logging.error(f"Rule store error: {e}", extra={"rule_id": str(rule.id)})
        raise HTTPException(status_code=503, detail="Rule store unavailable")


@router.post("/rules", response_model=RuleResponse, status_code=201)
def create_rule(
    body: RuleRequest,
    repo: RuleRepository = Depends(get_rule_repository),
    tz: tzinfo = Depends(get_calendar_tz),
):
    """
    Create a recurring rule.

    The first occurrence is one period after `start_millis`.
    """
    try:
        rule = new_rule(**_validated_fields(body), now_millis=now_millis(), tz=tz)
    except InvalidRuleError as e:
        raise HTTPException(status_code=422, detail=str(e))

    _save(repo, rule)
    logging.info("Recurring rule created", extra={"rule_id": str(rule.id)})
    return RuleResponse.from_rule(rule)


@router.get("/rules", response_model=RuleListResponse)
def list_rules(
    kind: Optional[str] = Query(None, description="Filter by EXPENSE or INCOME"),
    repo: RuleRepository = Depends(get_rule_repository),
):
    """List all rules, active or paused, ordered by next occurrence"""
    try:
        kind_filter = TransactionKind.parse(kind) if kind else None
    except InvalidRuleError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return RuleListResponse(rules=[RuleResponse.from_rule(r) for r in repo.list_rules(kind_filter)])


@router.get("/rules/summary", response_model=RuleSummaryResponse)
def get_summary(repo: RuleRepository = Depends(get_rule_repository)):
    """Estimated monthly totals over active rules"""
    return RuleSummaryResponse(
        total_estimated_monthly_expense_cents=repo.total_estimated_monthly(TransactionKind.EXPENSE),
        total_estimated_monthly_income_cents=repo.total_estimated_monthly(TransactionKind.INCOME),
        rule_count=repo.count(),
        active_rule_count=repo.count(active_only=True),
    )


@router.get("/rules/{rule_id}", response_model=RuleResponse)
def get_rule(rule_id: str, repo: RuleRepository = Depends(get_rule_repository)):
    return RuleResponse.from_rule(_load(repo, rule_id))


@router.put("/rules/{rule_id}", response_model=RuleResponse)
def update_rule(
    rule_id: str,
    body: RuleRequest,
    repo: RuleRepository = Depends(get_rule_repository),
    tz: tzinfo = Depends(get_calendar_tz),
):
    """
    Edit a rule.

    The schedule restarts from `start_millis`: the next occurrence is
    recomputed from the start, not shifted from the current period.
    """
    existing = _load(repo, rule_id)
    try:
        rule = edit_rule(existing, **_validated_fields(body), now_millis=now_millis(), tz=tz)
    except InvalidRuleError as e:
        raise HTTPException(status_code=422, detail=str(e))

    _save(repo, rule)
    return RuleResponse.from_rule(rule)


@router.post("/rules/{rule_id}/active", response_model=RuleResponse)
def set_rule_active(
    rule_id: str,
    body: SetActiveRequest,
    repo: RuleRepository = Depends(get_rule_repository),
):
    rule = set_active(_load(repo, rule_id), body.is_active, now_millis())
    _save(repo, rule)
    return RuleResponse.from_rule(rule)


@router.post("/rules/{rule_id}/toggle", response_model=RuleResponse)
def toggle_rule(rule_id: str, repo: RuleRepository = Depends(get_rule_repository)):
    rule = toggle_active(_load(repo, rule_id), now_millis())
    _save(repo, rule)
    return RuleResponse.from_rule(rule)


@router.delete("/rules/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str,
    repo: RuleRepository = Depends(get_rule_repository),
    sent_log: SentReminderRepository = Depends(get_sent_reminder_log),
    notifier: NotificationClient = Depends(get_notifier),
):
    """Delete a rule permanently and retract its outstanding reminder"""
    rule = _load(repo, rule_id)

    try:
        repo.delete_rule(rule.id)
    except RuleStoreError as e:
        logging.error(f"Rule store error: {e}", extra={"rule_id": str(rule.id)})
        raise HTTPException(status_code=503, detail="Rule store unavailable")

    try:
        sent_log.clear_for_rule(rule.id)
    except RuleStoreError as e:
        logging.warning(f"Could not clear sent reminders: {e}", extra={"rule_id": str(rule.id)})

    if rule.reminder_enabled:
        await retract_reminder(notifier, rule.id)

    logging.info("Recurring rule deleted", extra={"rule_id": str(rule.id)})
