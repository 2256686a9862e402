import json

import pytest

from loan_pipeline.errors import MalformedMessageError
from loan_pipeline.models import Action, LoanStatus, MessageEnvelope, NotificationEvent


def test_envelope_wire_shape():
    envelope = MessageEnvelope(loan_id=7, user_id=3, action=Action.VERIFY_DOCUMENTS)
    body = json.loads(envelope.to_json())

    assert set(body) == {"loanId", "userId", "action", "timestamp"}
    assert body["loanId"] == 7
    assert body["userId"] == 3
    assert body["action"] == "VERIFY_DOCUMENTS"
    assert "T" in body["timestamp"]


def test_envelope_parses_wire_json():
    envelope = MessageEnvelope.from_json(
        '{"loanId": 12, "userId": 4, "action": "CHECK_ELIGIBILITY", "timestamp": "2024-05-01T10:00:00.000Z"}'
    )
    assert envelope.loan_id == 12
    assert envelope.user_id == 4
    assert envelope.action is Action.CHECK_ELIGIBILITY
    assert envelope.timestamp.year == 2024


def test_envelope_is_immutable():
    envelope = MessageEnvelope(loan_id=1, user_id=1, action=Action.VERIFY_DOCUMENTS)
    with pytest.raises(Exception):
        envelope.loan_id = 2


@pytest.mark.parametrize("body", [
    "not json",
    "{}",
    '{"userId": 1, "action": "VERIFY_DOCUMENTS"}',
    '{"loanId": 1, "action": "VERIFY_DOCUMENTS"}',
    '{"loanId": 1, "userId": 1}',
    '{"loanId": 1, "userId": 1, "action": "DELETE_EVERYTHING"}',
    '{"loanId": "abc", "userId": 1, "action": "VERIFY_DOCUMENTS"}',
])
def test_malformed_envelope(body):
    with pytest.raises(MalformedMessageError):
        MessageEnvelope.from_json(body)


def test_notification_event_shape():
    event = NotificationEvent(loan_id=5, user_id=9, reason="Approved based on eligibility rules")
    body = json.loads(event.to_json())

    assert body["loanId"] == 5
    assert body["userId"] == 9
    assert body["status"] == LoanStatus.APPROVED.value
    assert body["reason"] == "Approved based on eligibility rules"
    assert "timestamp" in body
