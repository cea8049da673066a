from datetime import timedelta

from queue_processor.tables import (
    EMAIL_COUNTERS_TABLE,
    EMAIL_QUEUE_TABLE,
    PROCESSING_STATS_TABLE,
    SCHEDULED_EMAILS_TABLE,
)

from .conftest import OTHER_SENDER, SENDER


def test_enqueue_single_entry(client, entry_factory, db):
    response = client.post('/emailQueue', json=entry_factory())

    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["entry"]["status"] == "pending"
    assert len(db.rows(EMAIL_QUEUE_TABLE)) == 1


def test_enqueue_bulk_entries(client, entry_factory):
    response = client.post('/emailQueue', json={"entries": [entry_factory(), entry_factory()]})

    data = response.get_json()
    assert data["message"] == "Added 2 entries to email queue"
    assert len(data["entries"]) == 2

    listing = client.get('/emailQueue').get_json()
    assert listing["count"] == 2


def test_enqueue_missing_template_is_rejected(client, entry_factory, db):
    entry = entry_factory()
    del entry["templateId"]

    response = client.post('/emailQueue', json=entry)

    assert response.status_code == 400
    data = response.get_json()
    assert data["success"] is False
    assert "templateId" in data["error"]
    assert data["fields"] == ["templateId"]
    assert db.rows(EMAIL_QUEUE_TABLE) == []


def test_enqueue_rejects_unknown_send_mode(client, entry_factory):
    response = client.post('/emailQueue', json=entry_factory(sendMode="whenever"))
    assert response.status_code == 400


def test_process_queue_endpoint(client, entry_factory, add_counter, transport):
    add_counter(daily_limit=3)
    client.post('/emailQueue', json={"entries": [entry_factory() for _ in range(4)]})

    response = client.post('/processEmailQueue')

    assert response.status_code == 200
    assert response.get_json()["summary"] == {"processed": 3, "failed": 1, "scheduled": 0}
    assert len(transport.sent) == 3

    stats = client.get('/processingStats').get_json()["processingStats"]
    assert stats["totalProcessed"] == 3
    assert stats["totalFailed"] == 1


def test_processor_status(client):
    data = client.get('/processEmailQueue').get_json()
    assert data["currentSender"] == SENDER
    assert data["configuredSenders"] == [SENDER, OTHER_SENDER]


def test_process_scheduled_endpoint(client, add_counter, clock, db, transport):
    add_counter()
    db.post(SCHEDULED_EMAILS_TABLE, {
        "id": "sched-1",
        "email_data": {"id": "sched-1", "recipient_email": "later@example.com",
                       "template_id": "tpl-1", "sender_email": SENDER},
        "scheduled_date": (clock() - timedelta(minutes=5)).isoformat(),
        "status": "scheduled",
    })

    response = client.post('/processScheduledEmails')

    assert response.get_json()["summary"]["processed"] == 1
    overview = client.get('/scheduledEmails').get_json()["scheduledEmails"]
    assert overview["total"] == 1
    assert overview["emails"][0]["status"] == "sent"


def test_failed_emails_retry_and_clear(client, entry_factory, add_counter, transport):
    add_counter()
    transport.failing_recipients.add("bounce@example.com")
    client.post('/emailQueue', json={"entries": [
        entry_factory(recipientEmail="bounce@example.com"),
        entry_factory(recipientEmail="bounce@example.com"),
    ]})
    client.post('/processEmailQueue')

    failed = client.get('/failedEmails').get_json()
    assert failed["count"] == 2
    first = failed["failedEmails"][0]
    assert first["canRetry"] is True

    response = client.post('/failedEmails', json={"action": "retry", "emailId": first["id"]})
    assert response.status_code == 200
    assert response.get_json()["entry"]["retryCount"] == 1

    missing = client.post('/failedEmails', json={"action": "retry", "emailId": first["id"]})
    assert missing.status_code == 404

    cleared = client.post('/failedEmails', json={"action": "clear"})
    assert cleared.get_json()["message"] == "Cleared 1 failed emails"
    assert client.get('/failedEmails').get_json()["count"] == 0


def test_failed_emails_bad_requests(client):
    assert client.post('/failedEmails', json={"action": "retry"}).status_code == 400
    assert client.post('/failedEmails', json={"action": "explode"}).status_code == 400


def test_email_counters_endpoints(client, add_counter, db):
    add_counter(daily_limit=1)

    response = client.post('/emailCounters', json={"emailId": SENDER, "isDirectSend": True})
    assert response.get_json()["counter"]["isBlocked"] is True

    blocked = client.post('/emailCounters', json={"emailId": SENDER})
    assert blocked.status_code == 400
    assert blocked.get_json()["error"] == "sender blocked"

    listed = client.get('/emailCounters').get_json()["emailCounters"]
    assert listed[0]["emailId"] == SENDER
    assert listed[0]["directSendCount"] == 1

    updated = client.put('/emailCounters', json={"emailId": SENDER, "dailyLimit": 25})
    assert updated.get_json()["counter"]["dailyLimit"] == 25

    reset = client.delete(f'/emailCounters?emailId={SENDER}')
    assert reset.get_json()["counter"]["totalCount"] == 0
    assert db.rows(EMAIL_COUNTERS_TABLE)[0]["is_blocked"] is False


def test_email_counters_validation(client, add_counter):
    add_counter()
    assert client.post('/emailCounters', json={}).status_code == 400
    assert client.put('/emailCounters', json={"emailId": SENDER, "dailyLimit": "lots"}).status_code == 400
    assert client.delete('/emailCounters').status_code == 400
    assert client.post('/emailCounters', json={"emailId": "ghost@example.com"}).status_code == 404


def test_processing_stats_endpoints(client, db):
    client.post('/processingStats', json={"processed": 5, "failed": 2})

    client.post('/resetProcessedCount')
    stats = client.get('/processingStats').get_json()["processingStats"]
    assert stats["totalProcessed"] == 5
    assert stats["sessionProcessed"] == 0

    response = client.put('/processingStats', json={
        "totalProcessed": 12,
        "lastProcessingTime": "2025-03-09T08:00:00Z",
    })
    stats = response.get_json()["processingStats"]
    assert stats["totalProcessed"] == 12
    assert stats["totalFailed"] == 2
    assert stats["lastProcessingTime"] == "2025-03-09T08:00:00+00:00"

    assert client.put('/processingStats', json={"totalFailed": "x"}).status_code == 400

    client.delete('/processingStats')
    assert db.rows(PROCESSING_STATS_TABLE)[0]["total_processed"] == 0


def test_queue_status_endpoint(client, entry_factory):
    client.post('/emailQueue', json=entry_factory())

    status = client.get('/queueStatus').get_json()["queueStatus"]
    assert status["pendingCount"] == 1
    assert status["hasUnprocessedEntries"] is True


def test_store_outage_returns_500(client, db):
    db.failing_tables.add(EMAIL_QUEUE_TABLE)
    response = client.get('/emailQueue')
    assert response.status_code == 500
    assert response.get_json()["success"] is False


def test_unknown_route_returns_json_404(client):
    response = client.get('/nope')
    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_is_direct_send_must_be_boolean(client, add_counter, db):
    add_counter()

    response = client.post('/emailCounters', json={"emailId": SENDER, "isDirectSend": "false"})

    assert response.status_code == 400
    assert db.rows(EMAIL_COUNTERS_TABLE)[0]["direct_send_count"] == 0

    scheduled = client.post('/emailCounters', json={"emailId": SENDER, "isDirectSend": False})
    assert scheduled.get_json()["counter"]["scheduledSendCount"] == 1


def test_non_object_bodies_are_rejected(client, entry_factory, db):
    for body in ([entry_factory()], "hello", 42):
        response = client.post('/emailQueue', json=body)
        assert response.status_code == 400
        assert response.get_json()["error"] == "Request body must be a JSON object"
    assert db.rows(EMAIL_QUEUE_TABLE) == []

    assert client.post('/failedEmails', json=["clear"]).status_code == 400
    assert client.put('/processingStats', json=[1, 2]).status_code == 400


def test_scheduled_row_without_date_is_listed_not_sent(client, add_counter, clock, db, transport):
    add_counter()
    db.post(SCHEDULED_EMAILS_TABLE, {
        "id": "undated",
        "email_data": {"recipient_email": "x@example.com", "template_id": "tpl-1", "sender_email": SENDER},
        "scheduled_date": None,
        "status": "scheduled",
    })
    db.post(SCHEDULED_EMAILS_TABLE, {
        "id": "dated",
        "email_data": {},
        "scheduled_date": (clock() + timedelta(hours=1)).isoformat(),
        "status": "scheduled",
    })

    response = client.get('/scheduledEmails')

    assert response.status_code == 200
    overview = response.get_json()["scheduledEmails"]
    assert (overview["total"], overview["upcoming"], overview["overdue"]) == (2, 2, 0)
    assert [email["id"] for email in overview["emails"]] == ["dated", "undated"]

    assert client.post('/processScheduledEmails').get_json()["summary"]["processed"] == 0
    assert transport.sent == []
