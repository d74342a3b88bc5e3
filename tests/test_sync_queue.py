import json

import pytest

from sync.client import ApiError, OfflineError, SessionExpired
from sync.queue import OfflineQueue, QueueFull


class ScriptedClient:
    """Answers each replayed request with the next scripted outcome."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, endpoint, payload=None, params=None):
        self.calls.append((method, endpoint, payload))
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def fill(queue, count):
    return [queue.enqueue('POST', 'cash/transactions/', {'n': n}) for n in range(count)]


class TestEnqueue:

    def test_entry_shape(self):
        queue = OfflineQueue()
        entry = queue.enqueue('DELETE', 'inventory/products/p1/')

        assert set(entry) == {'id', 'method', 'endpoint', 'payload', 'attempts', 'queued_at'}
        assert entry['attempts'] == 0
        assert entry['payload'] is None
        assert len(queue) == 1

    def test_bounded(self):
        queue = OfflineQueue(max_size=2)
        fill(queue, 2)

        with pytest.raises(QueueFull):
            queue.enqueue('POST', 'cash/transactions/', {'n': 3})
        assert len(queue) == 2

    def test_persisted_to_file(self, tmp_path):
        path = tmp_path / 'queue.json'
        queue = OfflineQueue(path=str(path))
        fill(queue, 2)

        assert len(json.loads(path.read_text())) == 2
        assert [e['payload'] for e in OfflineQueue(path=str(path))] == [{'n': 0}, {'n': 1}]


class TestFlush:

    def test_replays_in_order(self):
        queue = OfflineQueue()
        fill(queue, 3)
        client = ScriptedClient()

        report = queue.flush(client)

        assert [payload for _, _, payload in client.calls] == [{'n': 0}, {'n': 1}, {'n': 2}]
        assert len(report.synced) == 3
        assert len(queue) == 0
        assert not report.stopped

    def test_offline_stops_and_keeps_order(self):
        queue = OfflineQueue()
        fill(queue, 4)
        client = ScriptedClient(None, OfflineError('down'))

        report = queue.flush(client)

        assert report.stopped
        assert len(client.calls) == 2
        assert len(report.synced) == 1
        assert [e['payload'] for e in queue] == [{'n': 1}, {'n': 2}, {'n': 3}]
        assert all(e['attempts'] == 0 for e in queue)

    def test_session_expired_stops(self):
        queue = OfflineQueue()
        fill(queue, 2)

        report = queue.flush(ScriptedClient(SessionExpired()))

        assert report.stopped
        assert len(queue) == 2

    def test_server_error_requeues_then_drops(self):
        queue = OfflineQueue(max_attempts=3)
        fill(queue, 1)

        for attempt in (1, 2):
            report = queue.flush(ScriptedClient(ApiError(503, 'Service unavailable')))
            assert len(report.requeued) == 1
            assert queue.entries[0]['attempts'] == attempt

        report = queue.flush(ScriptedClient(ApiError(500, 'Boom')))
        assert len(report.dropped) == 1
        assert len(queue) == 0

    def test_requeued_entry_keeps_its_place(self):
        queue = OfflineQueue()
        fill(queue, 3)

        queue.flush(ScriptedClient(None, ApiError(500, 'Boom'), OfflineError('down')))

        assert [(e['payload'], e['attempts']) for e in queue] == [({'n': 1}, 1), ({'n': 2}, 0)]

    def test_client_error_is_dropped(self):
        queue = OfflineQueue()
        fill(queue, 2)

        report = queue.flush(ScriptedClient(ApiError(400, 'sku: already exists'), None))

        assert len(report.dropped) == 1
        assert len(report.synced) == 1
        assert len(queue) == 0

    def test_flush_persists(self, tmp_path):
        path = str(tmp_path / 'queue.json')
        queue = OfflineQueue(path=path)
        fill(queue, 2)

        queue.flush(ScriptedClient(None, OfflineError('down')))

        assert len(OfflineQueue(path=path)) == 1
