import copy
import itertools
from collections import defaultdict
from datetime import datetime, timedelta

import pytest
import pytz

from main import create_app
from queue_processor import EmailProcessor
from queue_processor.errors import PersistenceError, TransportError
from queue_processor.tables import EMAIL_COUNTERS_TABLE, EMAIL_TEMPLATES_TABLE

SENDER = 's1@example.com'
OTHER_SENDER = 's2@example.com'


class TestConfig:
    TESTING = True
    DEBUG = False
    SENDER_EMAIL = SENDER


class FakeSupabaseClient:
    """In-memory stand-in for SupabaseClient, same row-level interface"""

    def __init__(self):
        self.tables = defaultdict(list)
        self._ids = itertools.count(1)
        self.failing_tables = set()
        # hosted PostgREST caps every select at a fixed row count
        self.max_rows = None

    def _check(self, table_name):
        if table_name in self.failing_tables:
            raise PersistenceError(f"{table_name} unreachable")

    def rows(self, table_name):
        return copy.deepcopy(self.tables[table_name])

    def post(self, table_name, data):
        self._check(table_name)
        inserted = []
        for row in (data if isinstance(data, list) else [data]):
            row = copy.deepcopy(row)
            if row.get('id') is None:
                row['id'] = next(self._ids)
            self.tables[table_name].append(row)
            inserted.append(copy.deepcopy(row))
        return inserted

    def get_one(self, table_name, row, uid):
        self._check(table_name)
        for existing in self.tables[table_name]:
            if existing.get(row) == uid:
                return copy.deepcopy(existing)
        return None

    def get_all(self, table_name, filters=None, order_by=None, desc=False, limit=None):
        self._check(table_name)
        rows = [r for r in self.tables[table_name]
                if all(r.get(k) == v for k, v in (filters or {}).items())]
        return self._select(rows, order_by, desc, limit)

    def get_by_status(self, table_name, status, include_null=False, order_by=None, desc=False, limit=None):
        self._check(table_name)
        rows = [r for r in self.tables[table_name]
                if r.get('status') == status or (include_null and r.get('status') is None)]
        return self._select(rows, order_by, desc, limit)

    def _select(self, rows, order_by, desc, limit):
        if order_by:
            rows = sorted(rows, key=lambda r: (r.get(order_by) is None, r.get(order_by) or ''),
                          reverse=desc)
        if limit:
            rows = rows[:limit]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        return copy.deepcopy(rows)

    def update(self, table_name, uid, data, key='id'):
        self._check(table_name)
        updated = []
        for existing in self.tables[table_name]:
            if existing.get(key) == uid:
                existing.update(copy.deepcopy(data))
                updated.append(copy.deepcopy(existing))
        return updated

    def upsert(self, table_name, data, on_conflict='id', ignore_duplicates=False):
        self._check(table_name)
        result = []
        for row in (data if isinstance(data, list) else [data]):
            matches = [r for r in self.tables[table_name] if r.get(on_conflict) == row.get(on_conflict)]
            if matches:
                if not ignore_duplicates:
                    matches[0].update(copy.deepcopy(row))
                    result.append(copy.deepcopy(matches[0]))
            else:
                result.extend(self.post(table_name, row))
        return result

    def delete(self, table_name, uid, key='id'):
        self._check(table_name)
        removed = [r for r in self.tables[table_name] if r.get(key) == uid]
        self.tables[table_name] = [r for r in self.tables[table_name] if r.get(key) != uid]
        return removed

    def delete_all(self, table_name, key='id'):
        self._check(table_name)
        removed = self.tables[table_name]
        self.tables[table_name] = []
        return removed


class FakeTransport:
    def __init__(self, sender_ids):
        self.sender_ids = list(sender_ids)
        self.sent = []
        self.failing_recipients = set()

    def send(self, from_email, to, subject, body, from_name=None, credentials_ref=None):
        if to in self.failing_recipients:
            raise TransportError(f"550 5.1.1 <{to}>: Recipient address rejected")
        message = {
            'from': from_email,
            'to': to,
            'subject': subject,
            'body': body,
            'credentials_ref': credentials_ref,
        }
        self.sent.append(message)
        return message


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 3, 10, 9, 0, tzinfo=pytz.UTC))


@pytest.fixture
def db(clock):
    db = FakeSupabaseClient()
    db.post(EMAIL_TEMPLATES_TABLE, {
        'id': 'tpl-1',
        'name': 'Intro',
        'subject': 'Hello [practiceName]',
        'body': 'Dear [firstName],\nWe work with practices like [practiceName]. [unknownField]',
    })
    return db


@pytest.fixture
def add_counter(db, clock):
    def _add_counter(sender_id=SENDER, daily_limit=30, **fields):
        row = {
            'sender_id': sender_id,
            'daily_limit': daily_limit,
            'direct_send_count': 0,
            'scheduled_send_count': 0,
            'total_count': 0,
            'last_reset_at': clock().isoformat(),
            'is_blocked': False,
            'blocked_until': None,
        }
        row.update(fields)
        db.post(EMAIL_COUNTERS_TABLE, row)
        return row
    return _add_counter


@pytest.fixture
def transport():
    return FakeTransport([SENDER, OTHER_SENDER])


@pytest.fixture
def processor(db, transport, clock):
    return EmailProcessor(db, transport, current_sender=SENDER, clock=clock)


@pytest.fixture
def entry_factory():
    def _entry(**kwargs):
        entry = {
            'recipientEmail': 'dr.smith@smiledental.com',
            'recipientName': 'Dr. Smith',
            'templateId': 'tpl-1',
            'senderEmail': SENDER,
            'senderName': 'Sam',
            'sendMode': 'immediate',
            'entryData': {'firstName': 'Anna', 'practiceName': 'Smile Dental'},
        }
        entry.update(kwargs)
        return entry
    return _entry


@pytest.fixture
def app(db, transport, clock):
    senders = [
        {'email': SENDER, 'name': 'Sam', 'app_password': 'x', 'daily_limit': 3},
        {'email': OTHER_SENDER, 'name': 'Kim', 'app_password': 'y', 'daily_limit': 30},
    ]
    return create_app(config_object=TestConfig, db=db, transport=transport,
                      senders=senders, clock=clock)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()
