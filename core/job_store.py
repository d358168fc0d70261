#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Session/Job Store - in-memory registry of sessions and translation jobs

Holds every Session and TranslationJob for one server instance. Records are
keyed by id, each update touches a single record, and nothing survives a
restart. Create one store per app (or per test) and pass it around.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from config.constants import (
    DEFAULT_MODEL,
    DEFAULT_BATCH_SIZE,
    JOB_RETENTION_SECONDS,
    CLEANUP_INTERVAL_SECONDS,
)
from config.logging_config import get_logger

from .batch.translation_client import OracleStatus
from .errors import StateError
from .media.models import VideoInfo

logger = get_logger(__name__)


class JobStatus(str, Enum):
    """Job status states"""
    PENDING = "pending"           # Job created, batch loop not running yet
    IN_PROGRESS = "in_progress"   # Translating
    COMPLETED = "completed"       # Result available
    FAILED = "failed"             # Gave up with an error


TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)


class FileKind(str, Enum):
    VIDEO = "video"
    SUBTITLE = "subtitle"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class TranslationOptions:
    """What a job was started with"""
    api_key: str
    language: str
    context: str = ""
    model: str = DEFAULT_MODEL
    batch_size: int = DEFAULT_BATCH_SIZE

    def to_dict(self, redact: bool = True) -> dict:
        return {
            "apiKey": "***" if redact and self.api_key else self.api_key,
            "language": self.language,
            "context": self.context,
            "model": self.model,
            "batchSize": self.batch_size,
        }


@dataclass
class TranslationJob:
    """A translation job with all metadata"""

    job_id: str
    options: TranslationOptions
    session_id: Optional[str] = None

    # Status & progress
    status: JobStatus = JobStatus.PENDING
    progress: float = 0.0  # 0.0 to 1.0

    # Timestamps
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    # Outcome
    error: Optional[str] = None
    result: Optional[str] = None

    # Oracle health as seen by this job
    oracle_status: OracleStatus = OracleStatus.AVAILABLE
    oracle_attempts: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def finished_at(self) -> Optional[datetime]:
        """When the batch loop stopped for good, if it has."""
        return self.completed_at or self.cancelled_at

    @property
    def progress_percent(self) -> int:
        return int(self.progress * 100 + 0.5)

    def mark_started(self):
        self.status = JobStatus.IN_PROGRESS

    def mark_completed(self, result: str, at: Optional[datetime] = None):
        self.status = JobStatus.COMPLETED
        self.progress = 1.0
        self.completed_at = at or datetime.now()
        self.result = result

    def mark_failed(self, error: str, at: Optional[datetime] = None):
        self.status = JobStatus.FAILED
        self.error = error
        self.completed_at = at or datetime.now()

    def to_status_dict(self) -> dict:
        """Shape reported by translation.status"""
        return {
            "id": self.job_id,
            "status": self.status.value,
            "progress": self.progress_percent,
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
            "error": self.error,
            "oracleStatus": self.oracle_status.value,
            "oracleAttempts": self.oracle_attempts,
            "cancelled": self.cancelled_at is not None,
        }

    def to_dict(self) -> dict:
        data = self.to_status_dict()
        data["progress"] = self.progress
        data["sessionId"] = self.session_id
        data["cancelledAt"] = _iso(self.cancelled_at)
        data["hasResult"] = self.result is not None
        data["options"] = self.options.to_dict()
        return data


@dataclass
class LoadedFile:
    """The file a session works on"""
    path: str
    kind: FileKind
    content: Optional[str] = None             # subtitle files
    video_info: Optional[VideoInfo] = None    # video files
    extracted_subtitle: Optional[str] = None  # subtitle pulled out of the video

    @property
    def subtitle_text(self) -> Optional[str]:
        """Text a translation would run on, if any."""
        if self.kind == FileKind.SUBTITLE:
            return self.content or None
        return self.extracted_subtitle or None

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {"path": self.path, "type": self.kind.value}
        if self.content is not None:
            data["content"] = self.content
        if self.video_info is not None:
            data["videoInfo"] = self.video_info.to_dict()
        if self.extracted_subtitle is not None:
            data["extractedSubtitle"] = self.extracted_subtitle
        return data


@dataclass
class Session:
    """A loaded file plus at most one current job"""
    session_id: str
    loaded_file: Optional[LoadedFile] = None
    job_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def touch(self, at: Optional[datetime] = None):
        self.updated_at = at or datetime.now()


class SessionStore:
    """
    In-memory session and job registry.

    Job lifecycle:
        pending -> in_progress -> completed | failed

    Transitions outside that graph are ignored (and logged at debug), as are
    updates for ids that no longer exist, so a job deleted while it runs
    just loses its late writes. A cancelled job takes no further progress,
    completion or failure.
    """

    def __init__(
        self,
        retention_seconds: int = JOB_RETENTION_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            retention_seconds: How long finished jobs (and idle sessions) are kept
            clock: Time source for timestamps and the retention sweep
        """
        self.retention = timedelta(seconds=retention_seconds)
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._jobs: Dict[str, TranslationJob] = {}

    @staticmethod
    def _generate_id() -> str:
        return uuid.uuid4().hex

    # ==================== SESSIONS ====================

    def create_session(self) -> Session:
        now = self._clock()
        session = Session(session_id=self._generate_id(), created_at=now, updated_at=now)
        self._sessions[session.session_id] = session
        logger.info(f"Session created: {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise StateError("Session not found")
        return session

    def list_sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def delete_session(self, session_id: str) -> bool:
        """Delete a session and every job it started, superseded ones included."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        for job in self.jobs_for_session(session_id):
            del self._jobs[job.job_id]
        logger.info(f"Session deleted: {session_id}")
        return True

    def load_file(self, session_id: str, loaded_file: LoadedFile) -> Optional[str]:
        """
        Attach a file to a session, dropping its previous job.

        Returns:
            Id of the dropped job, if there was one
        """
        session = self.require_session(session_id)
        dropped = self._detach_job(session)
        session.loaded_file = loaded_file
        session.touch(self._clock())
        logger.info(f"Session {session_id}: loaded {loaded_file.kind.value} {loaded_file.path}")
        return dropped

    def set_extracted_subtitle(self, session_id: str, content: str):
        session = self.require_session(session_id)
        if session.loaded_file is None or session.loaded_file.kind != FileKind.VIDEO:
            raise StateError("No video file loaded in session")
        session.loaded_file.extracted_subtitle = content
        session.touch(self._clock())

    def clear_session(self, session_id: str) -> Optional[str]:
        """Drop file and job but keep the session. Returns the dropped job id."""
        session = self.require_session(session_id)
        dropped = self._detach_job(session)
        session.loaded_file = None
        session.touch(self._clock())
        return dropped

    def _detach_job(self, session: Session) -> Optional[str]:
        job_id = session.job_id
        if job_id:
            self._jobs.pop(job_id, None)
            session.job_id = None
        return job_id

    # ==================== JOBS ====================

    def create_job(self, session_id: str, options: TranslationOptions) -> TranslationJob:
        """
        Create a pending job and make it the session's current job.

        A previous job of the session keeps running and stays reachable by
        its own id until it is swept.
        """
        session = self.require_session(session_id)
        job = TranslationJob(
            job_id=self._generate_id(),
            options=options,
            session_id=session_id,
            started_at=self._clock(),
        )
        self._jobs[job.job_id] = job

        if session.job_id and session.job_id in self._jobs:
            logger.info(f"Session {session_id}: job {session.job_id} superseded by {job.job_id}")
        session.job_id = job.job_id
        session.touch(self._clock())

        logger.info(f"Job created: {job.job_id} (session {session_id}, -> {options.language})")
        return job

    def get_job(self, job_id: str) -> Optional[TranslationJob]:
        return self._jobs.get(job_id)

    def require_job(self, job_id: str) -> TranslationJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise StateError("Job not found")
        return job

    def list_jobs(self, status: Optional[JobStatus] = None) -> List[TranslationJob]:
        jobs = list(self._jobs.values())
        if status is not None:
            jobs = [job for job in jobs if job.status == status]
        return jobs

    def jobs_for_session(self, session_id: str) -> List[TranslationJob]:
        return [job for job in self._jobs.values() if job.session_id == session_id]

    def current_job(self, session_id: str) -> Optional[TranslationJob]:
        session = self.get_session(session_id)
        if session is None or not session.job_id:
            return None
        return self._jobs.get(session.job_id)

    def start_job(self, job_id: str) -> bool:
        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.PENDING:
            return False
        job.mark_started()
        logger.info(f"Job started: {job_id}")
        return True

    def update_progress(self, job_id: str, progress: float) -> bool:
        """Clamp to [0, 1]; progress never goes backwards."""
        job = self._jobs.get(job_id)
        if job is None:
            return False
        if job.status == JobStatus.PENDING:
            job.mark_started()
        if job.status != JobStatus.IN_PROGRESS or job.cancelled_at:
            return False
        job.progress = max(job.progress, min(1.0, max(0.0, progress)))
        return True

    def complete_job(self, job_id: str, result: str) -> bool:
        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.IN_PROGRESS or job.cancelled_at:
            logger.debug(f"Ignoring completion of job {job_id}")
            return False
        job.mark_completed(result, self._clock())
        logger.info(f"Job completed: {job_id} ({len(result)} chars)")
        return True

    def fail_job(self, job_id: str, error: str) -> bool:
        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.IN_PROGRESS or job.cancelled_at:
            logger.debug(f"Ignoring failure of job {job_id}: {error}")
            return False
        job.mark_failed(error, self._clock())
        logger.error(f"Job failed: {job_id} - {error}")
        return True

    def mark_cancelled(self, job_id: str) -> bool:
        """Record that the batch loop stopped on cancellation. Status is left as is."""
        job = self._jobs.get(job_id)
        if job is None or job.is_terminal or job.cancelled_at:
            return False
        job.cancelled_at = self._clock()
        logger.info(f"Job cancelled: {job_id} at {job.progress_percent}%")
        return True

    def set_oracle_status(self, job_id: str, status: OracleStatus, attempts: int = 0):
        job = self._jobs.get(job_id)
        if job is None:
            return
        job.oracle_status = status
        job.oracle_attempts = attempts

    def delete_job(self, job_id: str) -> bool:
        """Delete a job and unlink it from its session."""
        job = self._jobs.pop(job_id, None)
        if job is None:
            return False
        session = self._sessions.get(job.session_id) if job.session_id else None
        if session is not None and session.job_id == job_id:
            session.job_id = None
        return True

    # ==================== RETENTION ====================

    def sweep(self, now: Optional[datetime] = None) -> Tuple[int, int]:
        """
        Delete finished jobs and idle sessions older than the retention window.

        A job is stale once it completed, failed or was cancelled before the
        cutoff. A session goes when its job is gone or stale, or, if it never
        had a job, when it has been idle past the cutoff.

        Returns:
            (jobs removed, sessions removed)
        """
        cutoff = (now or self._clock()) - self.retention

        stale_jobs = [
            job_id for job_id, job in self._jobs.items()
            if job.finished_at is not None and job.finished_at < cutoff
        ]
        for job_id in stale_jobs:
            del self._jobs[job_id]

        stale_sessions = []
        for session_id, session in self._sessions.items():
            if session.job_id:
                if session.job_id not in self._jobs:
                    stale_sessions.append(session_id)
            elif session.updated_at < cutoff:
                stale_sessions.append(session_id)
        for session_id in stale_sessions:
            del self._sessions[session_id]

        if stale_jobs or stale_sessions:
            logger.info(
                f"Retention sweep removed {len(stale_jobs)} jobs, {len(stale_sessions)} sessions"
            )
        return len(stale_jobs), len(stale_sessions)

    def get_stats(self) -> Dict[str, int]:
        """Count jobs per status"""
        stats = {status.value: 0 for status in JobStatus}
        for job in self._jobs.values():
            stats[job.status.value] += 1
        stats['total'] = len(self._jobs)
        stats['sessions'] = len(self._sessions)
        return stats


class RetentionSweeper:
    """
    Background task that sweeps a store on a fixed interval.

    Usage:
        sweeper = RetentionSweeper(store, interval_seconds=1800)
        sweeper.start()      # inside a running event loop
        ...
        await sweeper.stop()
    """

    def __init__(self, store: SessionStore, interval_seconds: float = CLEANUP_INTERVAL_SECONDS):
        self.store = store
        self.interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Retention sweeper started (every {self.interval}s)")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Retention sweeper stopped")

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.store.sweep()
            except Exception as e:
                logger.error(f"Retention sweep failed: {e}")
