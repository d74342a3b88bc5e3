"""
Offline mutation queue.

Mutations that could not reach the server are kept here in the order they
were made and replayed by ``flush()`` once the server is reachable again.
There is no conflict resolution and no deduplication: the queue replays
exactly what was recorded, in array order.
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone

from .client import ApiError, OfflineError, SessionExpired

logger = logging.getLogger(__name__)


class QueueFull(Exception):
    pass


class SyncReport:
    """Outcome of one ``flush()``: the entries synced, re-queued and dropped."""

    def __init__(self):
        self.synced = []
        self.requeued = []
        self.dropped = []
        self.stopped = False

    def __repr__(self):
        return (
            f"<SyncReport synced={len(self.synced)} requeued={len(self.requeued)} "
            f"dropped={len(self.dropped)} stopped={self.stopped}>"
        )


class OfflineQueue:

    def __init__(self, path=None, max_size=50, max_attempts=3):
        self.path = path
        self.max_size = max_size
        self.max_attempts = max_attempts
        self.entries = []
        if path and os.path.exists(path):
            self.load()

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    # ---- persistence ----

    def load(self):
        with open(self.path, encoding='utf-8') as fh:
            self.entries = json.load(fh)
        logger.info(f"[QUEUE] Loaded {len(self.entries)} pending mutation(s) from {self.path}")

    def save(self):
        if not self.path:
            return
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as fh:
            json.dump(self.entries, fh, indent=2)
        os.replace(tmp_path, self.path)

    # ---- queueing ----

    def enqueue(self, method, endpoint, payload=None):
        if len(self.entries) >= self.max_size:
            logger.error(f"[QUEUE] Full ({self.max_size}); {method} {endpoint} not queued")
            raise QueueFull(f"Offline queue is full ({self.max_size} pending changes)")

        entry = {
            'id': str(uuid.uuid4()),
            'method': method,
            'endpoint': endpoint,
            'payload': payload,
            'attempts': 0,
            'queued_at': datetime.now(timezone.utc).isoformat(),
        }
        self.entries.append(entry)
        self.save()
        logger.info(f"[QUEUE] Queued {method} {endpoint} ({len(self.entries)} pending)")
        return entry

    def clear(self):
        self.entries = []
        self.save()

    def flush(self, client):
        """
        Replay every entry in order against ``client``.

        * success: the entry is removed
        * server unreachable or session expired: flushing stops and this
          entry and all later ones stay queued, in order
        * 5xx: the entry stays queued with ``attempts + 1`` until
          ``max_attempts`` is reached, then it is dropped
        * any other error status: the entry is dropped
        """
        report = SyncReport()
        remaining = []
        pending = list(self.entries)

        for index, entry in enumerate(pending):
            try:
                client.request(entry['method'], entry['endpoint'], entry['payload'])
            except (OfflineError, SessionExpired) as e:
                logger.warning(f"[QUEUE] Flush stopped at {entry['method']} {entry['endpoint']}: {e}")
                report.stopped = True
                remaining.extend(pending[index:])
                break
            except ApiError as e:
                if e.is_server_error and entry['attempts'] + 1 < self.max_attempts:
                    entry = dict(entry, attempts=entry['attempts'] + 1)
                    remaining.append(entry)
                    report.requeued.append(entry)
                    logger.warning(
                        f"[QUEUE] Re-queued {entry['method']} {entry['endpoint']} "
                        f"(attempt {entry['attempts']}/{self.max_attempts}): {e}"
                    )
                else:
                    report.dropped.append(entry)
                    logger.error(f"[QUEUE] Dropped {entry['method']} {entry['endpoint']}: {e}")
            else:
                report.synced.append(entry)

        self.entries = remaining
        self.save()
        logger.info(f"[QUEUE] Flush finished: {report!r}")
        return report
