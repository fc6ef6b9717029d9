"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union

from recurring_engine.domain.exceptions import InvalidRuleError
from recurring_engine.domain.models import (
    ExecutionReport,
    Frequency,
    RecurringRule,
    ReminderReport,
    TransactionKind,
)
from recurring_engine.domain.money import format_amount


class RuleRequest(BaseModel):
    """Request body for POST /v1/rules and PUT /v1/rules/{rule_id}"""

    title: str = Field(..., min_length=1, description="Display label")
    amount: Union[str, int, float] = Field(..., description="Decimal amount, e.g. \"15.99\"")
    kind: TransactionKind = Field(..., description="EXPENSE or INCOME, any case")
    category: str = Field(..., description="Free-form category label")
    frequency: Frequency = Field(..., description="DAILY, WEEKLY, BIWEEKLY, MONTHLY or YEARLY, any case")
    start_millis: int = Field(..., description="Schedule start, epoch milliseconds")
    reminder_enabled: bool = False
    reminder_days_before: int = Field(0, ge=0)

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, value):
        try:
            return TransactionKind.parse(value)
        except InvalidRuleError as e:
            raise ValueError(str(e)) from e

    @field_validator("frequency", mode="before")
    @classmethod
    def parse_frequency(cls, value):
        return Frequency.parse(value)


class SetActiveRequest(BaseModel):
    """Request body for POST /v1/rules/{rule_id}/active"""

    is_active: bool


class RuleResponse(BaseModel):
    """Single recurring rule"""

    id: str
    title: str
    amount_cents: int
    formatted_amount: str
    kind: str
    category: str
    frequency: str
    start_millis: int
    next_occurrence_millis: int
    estimated_monthly_cents: int
    is_active: bool
    reminder_enabled: bool
    reminder_days_before: int
    created_at: int
    updated_at: int

    @classmethod
    def from_rule(cls, rule: RecurringRule) -> "RuleResponse":
        return cls(
            id=str(rule.id),
            title=rule.title,
            amount_cents=rule.amount_minor_units,
            formatted_amount=format_amount(rule.amount_minor_units, rule.kind),
            kind=rule.kind.value,
            category=rule.category,
            frequency=rule.frequency.value,
            start_millis=rule.start_millis,
            next_occurrence_millis=rule.next_occurrence_millis,
            estimated_monthly_cents=rule.estimated_monthly_amount_minor_units,
            is_active=rule.is_active,
            reminder_enabled=rule.reminder_enabled,
            reminder_days_before=rule.reminder_days_before,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )


class RuleListResponse(BaseModel):
    """Response for GET /v1/rules"""

    rules: List[RuleResponse]


class RuleSummaryResponse(BaseModel):
    """Response for GET /v1/rules/summary"""

    total_estimated_monthly_expense_cents: int
    total_estimated_monthly_income_cents: int
    rule_count: int
    active_rule_count: int


class BatchRequest(BaseModel):
    """Optional body for trigger endpoints; omit now_millis to use the server clock"""

    now_millis: Optional[int] = None


class RuleOutcomeSchema(BaseModel):
    rule_id: str
    status: str
    occurrence_millis: int
    next_occurrence_millis: int
    transaction_id: Optional[str] = None
    reminder_retracted: bool = False
    error: Optional[str] = None


class ExecutionReportResponse(BaseModel):
    """Response for POST /v1/batches/execute"""

    status: str
    now_millis: int
    executed_count: int
    failed_count: int
    outcomes: List[RuleOutcomeSchema]
    error: Optional[str] = None

    @classmethod
    def from_report(cls, report: ExecutionReport, now_millis: int) -> "ExecutionReportResponse":
        return cls(
            status=report.status.value,
            now_millis=now_millis,
            executed_count=len(report.executed),
            failed_count=len(report.failed),
            outcomes=[
                RuleOutcomeSchema(
                    rule_id=str(o.rule_id),
                    status=o.status.value,
                    occurrence_millis=o.occurrence_millis,
                    next_occurrence_millis=o.next_occurrence_millis,
                    transaction_id=o.transaction_id,
                    reminder_retracted=o.reminder_retracted,
                    error=o.error,
                )
                for o in report.outcomes
            ],
            error=report.error,
        )


class ReminderOutcomeSchema(BaseModel):
    rule_id: str
    status: str
    due_at_millis: int
    error: Optional[str] = None


class ReminderReportResponse(BaseModel):
    """Response for POST /v1/reminders/scan"""

    status: str
    now_millis: int
    notifications_enabled: bool
    raised_count: int
    failed_count: int
    outcomes: List[ReminderOutcomeSchema]
    error: Optional[str] = None

    @classmethod
    def from_report(cls, report: ReminderReport, now_millis: int) -> "ReminderReportResponse":
        return cls(
            status=report.status.value,
            now_millis=now_millis,
            notifications_enabled=report.notifications_enabled,
            raised_count=len(report.raised),
            failed_count=len(report.failed),
            outcomes=[
                ReminderOutcomeSchema(
                    rule_id=str(o.rule_id),
                    status=o.status.value,
                    due_at_millis=o.due_at_millis,
                    error=o.error,
                )
                for o in report.outcomes
            ],
            error=report.error,
        )
