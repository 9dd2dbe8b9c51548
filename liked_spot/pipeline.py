"""
Named, sequential task stages with progress reporting.

A TaskPipeline runs its stages one at a time. Each stage reports a status and
a progress fraction; every change is published to a listener so the HTTP
layer can expose it for polling.
"""

import logging
import threading
from dataclasses import dataclass, asdict

log = logging.getLogger(__name__)

FETCH_USER = 'fetch-user'
FETCH_LIBRARY = 'fetch-library'
CREATE_PLAYLIST = 'create-playlist'
WRITE_BATCHES = 'write-batches'

PENDING = 'pending'
RUNNING = 'running'
DONE = 'done'
FAILED = 'failed'


@dataclass
class StageReport:
    stage: str
    status: str = PENDING
    progress: float = 0.0
    detail: str | None = None


class TaskPipeline:
    def __init__(self, name, stages, listener=None):
        self.name = name
        self.reports = {s: StageReport(s) for s in stages}
        self._listener = listener

    def _publish(self):
        if self._listener:
            self._listener(self.snapshot())

    def update(self, stage, status=None,
               progress=None, detail=None):
        report = self.reports[stage]
        if status is not None:
            report.status = status
        if progress is not None:
            report.progress = max(0.0, min(1.0, progress))
        if detail is not None:
            report.detail = detail
        self._publish()

    def run_stage(self, stage, fn):
        """Run ``fn(report_progress)`` as ``stage``; failures are recorded and re-raised."""
        self.update(stage, status=RUNNING, progress=0.0)

        def report_progress(fraction):
            self.update(stage, progress=fraction)

        try:
            result = fn(report_progress)
        except Exception as e:
            self.update(stage, status=FAILED, detail=str(e))
            raise
        self.update(stage, status=DONE, progress=1.0)
        return result

    @property
    def progress(self):
        if not self.reports:
            return 1.0
        return sum(r.progress for r in self.reports.values()) / len(self.reports)

    def snapshot(self):
        return {
            'task': self.name,
            'progress': round(self.progress, 4),
            'stages': [asdict(r) for r in self.reports.values()],
        }


class SessionStore:
    """Latest value per session id, kept in process memory only."""

    def __init__(self):
        self._lock = threading.RLock()
        self._values = {}

    def put(self, session_id, value):
        with self._lock:
            self._values[session_id] = value

    def publisher(self, session_id):
        def publish(snapshot):
            self.put(session_id, snapshot)
        return publish

    def get(self, session_id):
        with self._lock:
            return self._values.get(session_id)

    def discard(self, session_id):
        with self._lock:
            self._values.pop(session_id, None)

    def clear(self):
        with self._lock:
            self._values.clear()
