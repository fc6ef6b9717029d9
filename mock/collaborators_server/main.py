from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Dict, List, Optional
import os
import uuid

app = FastAPI(title="Mock Ledger and Notification Server", version="1.0.0")

# In-memory state; reset with POST /mock/reset between scenarios
TRANSACTIONS: List[dict] = []
REMINDERS: Dict[str, dict] = {}
STATE = {"notifications_enabled": os.getenv("MOCK_NOTIFICATIONS_ENABLED", "true").lower() == "true"}


class TransactionIn(BaseModel):
    kind: str
    amount_cents: int
    category: str
    description: str
    occurrence_millis: int
    recurring_rule_id: Optional[str] = None


class ReminderIn(BaseModel):
    rule_id: str
    title: str
    formatted_amount: str
    days_before: int
    due_at_millis: int


class NotificationStatus(BaseModel):
    enabled: bool


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/ledger/transactions", status_code=201)
def record_transaction(body: TransactionIn):
    if body.amount_cents <= 0:
        raise HTTPException(status_code=422, detail="amount must be positive")
    transaction_id = str(uuid.uuid4())
    TRANSACTIONS.append({"transaction_id": transaction_id, **body.model_dump()})
    return {"transaction_id": transaction_id}

@app.get("/ledger/transactions")
def list_transactions(recurring_rule_id: Optional[str] = None):
    if recurring_rule_id is None:
        return TRANSACTIONS
    return [t for t in TRANSACTIONS if t["recurring_rule_id"] == recurring_rule_id]

@app.post("/notifications/reminders", status_code=201)
def raise_reminder(body: ReminderIn):
    # keyed by rule id: a new reminder replaces the previous one
    REMINDERS[body.rule_id] = body.model_dump()
    return {"rule_id": body.rule_id}

@app.get("/notifications/reminders")
def list_reminders():
    return list(REMINDERS.values())

@app.delete("/notifications/reminders/{rule_id}", status_code=204)
def retract_reminder(rule_id: str):
    if REMINDERS.pop(rule_id, None) is None:
        raise HTTPException(status_code=404, detail="no reminder for rule")

@app.get("/notifications/status")
def notification_status():
    return {"enabled": STATE["notifications_enabled"]}

@app.put("/notifications/status")
def set_notification_status(body: NotificationStatus):
    STATE["notifications_enabled"] = body.enabled
    return {"enabled": body.enabled}

@app.post("/mock/reset", status_code=204)
def reset():
    TRANSACTIONS.clear()
    REMINDERS.clear()
    STATE["notifications_enabled"] = True
