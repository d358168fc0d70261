#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Subtitle translation service - the operations behind the RPC surface.

Every public coroutine here is one RPC method and takes its positional
params in order. Long-running translations run as asyncio tasks owned by
the service; each has its own CancellationToken.
"""

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from config.constants import (
    SUBTITLE_EXTENSIONS,
    SERVER_NAME,
    SERVER_VERSION,
    SERVER_API,
)
from config.logging_config import get_logger
from config.settings import Settings
from core.batch import (
    BatchTranslator,
    CancellationToken,
    OrchestratorConfig,
    RetryPolicy,
    SubtitleOrchestrator,
)
from core.errors import (
    StateError,
    SubtitleTranslatorError,
    TranslationCancelledError,
    ValidationError,
)
from core.job_store import (
    FileKind,
    JobStatus,
    LoadedFile,
    SessionStore,
    TranslationJob,
    TranslationOptions,
)
from core.media import FFmpegToolkit
from ai_providers import create_provider

from .rpc_models import TranslationOptionsModel

logger = get_logger(__name__)

# (api_key, model) -> provider with async translate_subtitles()
ProviderFactory = Callable[[str, Optional[str]], Any]


def _require(value: Any, message: str) -> Any:
    if value is None or value == "":
        raise ValidationError(f"Invalid params: {message}")
    return value


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def is_subtitle_path(file_path: str) -> bool:
    return Path(file_path).suffix.lower() in SUBTITLE_EXTENSIONS


class SubtitleTranslationService:
    """
    Session/file/translation workflow over an injected SessionStore.

    Usage:
        service = SubtitleTranslationService(SessionStore(), settings)
        session = await service.session_create()
        await service.file_load(session["sessionId"], "movie.srt")
        job = await service.translation_start(session["sessionId"], {...})
    """

    def __init__(
        self,
        store: SessionStore,
        settings: Optional[Settings] = None,
        toolkit: Optional[FFmpegToolkit] = None,
        provider_factory: Optional[ProviderFactory] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable = asyncio.sleep,
    ):
        """
        Args:
            store: Session/job store owned by the app
            settings: Defaults for model, batch size and retry policy
            toolkit: ffmpeg wrapper for video files
            provider_factory: Builds the oracle for a job (Gemini by default)
            retry_policy: Overrides the policy derived from settings
            sleep: Backoff sleep handed to each job's translator
        """
        self.store = store
        self.settings = settings or Settings()
        self.toolkit = toolkit or FFmpegToolkit.from_settings(self.settings)
        self.provider_factory = provider_factory or create_provider
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self._sleep = sleep

        self._tasks: Dict[str, asyncio.Task] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        self._job_sessions: Dict[str, str] = {}

    # ==================== RPC TABLE ====================

    def method_table(self) -> Dict[str, Callable]:
        return {
            "init": self.init,
            "session.create": self.session_create,
            "session.get": self.session_get,
            "session.delete": self.session_delete,
            "session.clear": self.session_clear,
            "file.load": self.file_load,
            "file.info": self.file_info,
            "subtitles.list": self.subtitles_list,
            "subtitle.extract": self.subtitle_extract,
            "translation.start": self.translation_start,
            "translation.status": self.translation_status,
            "translation.result": self.translation_result,
            "translation.cancel": self.translation_cancel,
            "translation.save": self.translation_save,
            "sessions.list": self.sessions_list,
            "ping": self.ping,
            "info": self.info,
        }

    # ==================== MEDIA ====================

    async def init(self) -> Dict[str, Any]:
        path = await self.toolkit.initialize()
        return {"success": True, "ffmpegPath": path}

    # ==================== SESSIONS ====================

    async def session_create(self) -> Dict[str, Any]:
        session = self.store.create_session()
        return {"sessionId": session.session_id}

    async def session_get(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        _require(session_id, "sessionId required")
        session = self.store.require_session(session_id)
        job = self.store.current_job(session_id)
        return {
            "id": session.session_id,
            "loadedFile": session.loaded_file.to_dict() if session.loaded_file else None,
            "translationJob": job.to_dict() if job else None,
            "createdAt": _iso(session.created_at),
            "updatedAt": _iso(session.updated_at),
        }

    async def session_delete(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        _require(session_id, "sessionId required")
        self._cancel_session_jobs(session_id, "Session deleted")
        return {"success": self.store.delete_session(session_id)}

    async def session_clear(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        _require(session_id, "sessionId required")
        self.store.clear_session(session_id)
        self._cancel_session_jobs(session_id, "Session cleared")
        return {"success": True}

    async def sessions_list(self) -> Dict[str, Any]:
        summaries = []
        for session in self.store.list_sessions():
            job = self.store.current_job(session.session_id)
            summaries.append({
                "id": session.session_id,
                "hasFile": session.loaded_file is not None,
                "fileType": session.loaded_file.kind.value if session.loaded_file else None,
                "hasJob": job is not None,
                "jobStatus": job.status.value if job else None,
            })
        return {"sessions": summaries}

    # ==================== FILES ====================

    async def file_load(
        self,
        session_id: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        _require(session_id, "sessionId and filePath required")
        _require(file_path, "sessionId and filePath required")
        self.store.require_session(session_id)

        if not Path(file_path).is_file():
            raise StateError("File not found")

        if is_subtitle_path(file_path):
            content = Path(file_path).read_text(encoding="utf-8", errors="replace")
            loaded = LoadedFile(path=file_path, kind=FileKind.SUBTITLE, content=content)
            result = {"type": FileKind.SUBTITLE.value, "path": file_path,
                      "contentLength": len(content)}
        else:
            video_info = await self.toolkit.probe(file_path)
            loaded = LoadedFile(path=file_path, kind=FileKind.VIDEO, video_info=video_info)
            result = {"type": FileKind.VIDEO.value, "path": file_path,
                      "videoInfo": video_info.to_dict()}

        self.store.load_file(session_id, loaded)
        self._cancel_session_jobs(session_id, "File reloaded")
        return result

    async def file_info(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        _require(session_id, "sessionId required")
        session = self.store.require_session(session_id)
        loaded = session.loaded_file
        if loaded is None:
            raise StateError("No file loaded in session")

        info: Dict[str, Any] = {
            "type": loaded.kind.value,
            "path": loaded.path,
            "hasSubtitleContent": loaded.subtitle_text is not None,
        }
        if loaded.kind == FileKind.SUBTITLE:
            info["contentLength"] = len(loaded.content or "")
        else:
            tracks = loaded.video_info.subtitle_tracks if loaded.video_info else []
            info["subtitleTrackCount"] = len(tracks)
            info["hasExtractedSubtitle"] = loaded.extracted_subtitle is not None
            if loaded.extracted_subtitle is not None:
                info["contentLength"] = len(loaded.extracted_subtitle)
        return info

    def _require_video(self, session_id: str) -> LoadedFile:
        session = self.store.require_session(session_id)
        if session.loaded_file is None or session.loaded_file.kind != FileKind.VIDEO:
            raise StateError("No video file loaded in session")
        return session.loaded_file

    async def subtitles_list(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        _require(session_id, "sessionId required")
        loaded = self._require_video(session_id)
        tracks = loaded.video_info.subtitle_tracks if loaded.video_info else []
        return {
            "subtitles": [
                {
                    "id": position,
                    "language": track.language or "Unknown",
                    "codec": track.format,
                    "title": track.title or f"Subtitle {position + 1}",
                }
                for position, track in enumerate(tracks)
            ]
        }

    async def subtitle_extract(
        self,
        session_id: Optional[str] = None,
        subtitle_id: Any = None,
    ) -> Dict[str, Any]:
        _require(session_id, "sessionId and subtitleId required")
        if subtitle_id is None:
            raise ValidationError("Invalid params: sessionId and subtitleId required")

        if isinstance(subtitle_id, str) and subtitle_id.strip().isdigit():
            subtitle_id = int(subtitle_id)
        if not isinstance(subtitle_id, int) or isinstance(subtitle_id, bool):
            raise ValidationError("Invalid params: subtitleId must be an integer")

        loaded = self._require_video(session_id)
        tracks = loaded.video_info.subtitle_tracks if loaded.video_info else []
        if not 0 <= subtitle_id < len(tracks):
            raise ValidationError(f"Invalid params: no subtitle with id {subtitle_id}")

        track = tracks[subtitle_id]
        content = await self.toolkit.extract(loaded.path, track.index)
        self.store.set_extracted_subtitle(session_id, content)
        logger.info(
            f"Session {session_id}: extracted subtitle {subtitle_id} "
            f"(stream {track.index}, {len(content)} chars)"
        )
        return {"success": True, "contentLength": len(content)}

    # ==================== TRANSLATION ====================

    def _parse_options(self, options: Any) -> TranslationOptions:
        if not isinstance(options, dict):
            raise ValidationError("Invalid params: sessionId and options required")
        try:
            model = TranslationOptionsModel.model_validate(options)
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise ValidationError(
                f"Invalid params: invalid or missing options: {', '.join(fields)}"
            ) from e

        return TranslationOptions(
            api_key=model.api_key,
            language=model.language,
            context=model.context,
            model=model.model if "model" in model.model_fields_set else self.settings.default_model,
            batch_size=(model.batch_size if "batch_size" in model.model_fields_set
                        else self.settings.default_batch_size),
        )

    async def translation_start(
        self,
        session_id: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        _require(session_id, "sessionId and options required")
        _require(options, "sessionId and options required")
        parsed = self._parse_options(options)

        session = self.store.require_session(session_id)
        text = session.loaded_file.subtitle_text if session.loaded_file else None
        if not text:
            raise StateError(
                "No subtitle content to translate. "
                "Load a subtitle file or extract from video first."
            )

        job = self.store.create_job(session_id, parsed)
        token = CancellationToken()
        self._tokens[job.job_id] = token
        self._job_sessions[job.job_id] = session_id
        self._tasks[job.job_id] = asyncio.create_task(self._run_job(job, text, token))
        return {"jobId": job.job_id, "status": "started"}

    async def _run_job(self, job: TranslationJob, text: str, token: CancellationToken):
        """Background task: translate, then record the outcome in the store."""
        job_id = job.job_id
        options = job.options
        self.store.start_job(job_id)

        def on_oracle_status(status, attempts, error):
            self.store.set_oracle_status(job_id, status, attempts)

        try:
            provider = self.provider_factory(options.api_key, options.model)
            translator = BatchTranslator(
                provider,
                retry_policy=self.retry_policy,
                model=options.model,
                status_callback=on_oracle_status,
                sleep=self._sleep,
            )
            orchestrator = SubtitleOrchestrator(
                translator, OrchestratorConfig(batch_size=options.batch_size)
            )
            result = await orchestrator.process(
                text,
                options.language,
                options.context,
                job_id=job_id,
                progress_callback=lambda progress: self.store.update_progress(job_id, progress),
                cancel_token=token,
            )
        except TranslationCancelledError:
            self.store.mark_cancelled(job_id)
        except asyncio.CancelledError:
            self.store.mark_cancelled(job_id)
            raise
        except SubtitleTranslatorError as e:
            self.store.fail_job(job_id, e.message)
        except Exception as e:
            logger.exception(f"Job {job_id} crashed")
            self.store.fail_job(job_id, str(e) or type(e).__name__)
        else:
            if token.cancelled:
                self.store.mark_cancelled(job_id)
            else:
                self.store.complete_job(job_id, result.translated_text)
        finally:
            self._tasks.pop(job_id, None)
            self._tokens.pop(job_id, None)
            self._job_sessions.pop(job_id, None)

    def _cancel(self, job_id: str, reason: str) -> bool:
        token = self._tokens.get(job_id)
        if token is None:
            return False
        token.cancel(reason)
        self.store.mark_cancelled(job_id)
        return True

    def _cancel_session_jobs(self, session_id: str, reason: str) -> int:
        """Cancel every running job of a session, superseded ones included."""
        job_ids = [job_id for job_id, owner in self._job_sessions.items() if owner == session_id]
        return sum(1 for job_id in job_ids if self._cancel(job_id, reason))

    async def translation_status(self, job_id: Optional[str] = None) -> Dict[str, Any]:
        _require(job_id, "jobId required")
        return self.store.require_job(job_id).to_status_dict()

    async def translation_result(self, job_id: Optional[str] = None) -> Dict[str, Any]:
        _require(job_id, "jobId required")
        job = self.store.require_job(job_id)
        if job.status != JobStatus.COMPLETED:
            raise StateError(f"Job not completed. Current status: {job.status.value}")
        return {"translatedText": job.result, "completedAt": _iso(job.completed_at)}

    async def translation_cancel(self, job_id: Optional[str] = None) -> Dict[str, Any]:
        _require(job_id, "jobId required")
        job = self.store.require_job(job_id)
        if job.is_terminal or job.cancelled_at:
            return {"success": False}
        return {"success": self._cancel(job_id, "Cancelled by client")}

    async def translation_save(
        self,
        job_id: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        _require(job_id, "jobId and filePath required")
        _require(file_path, "jobId and filePath required")
        job = self.store.require_job(job_id)
        if job.status != JobStatus.COMPLETED or job.result is None:
            raise StateError("Translation not completed")

        Path(file_path).write_text(job.result, encoding="utf-8")
        logger.info(f"Job {job_id}: saved translation to {file_path}")
        return {"success": True, "path": file_path, "size": len(job.result)}

    # ==================== MISC ====================

    async def ping(self) -> str:
        return "pong"

    async def info(self) -> Dict[str, Any]:
        return {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "api": SERVER_API,
            "endpoints": list(self.method_table()),
        }

    @property
    def running_jobs(self) -> List[str]:
        return list(self._tasks)

    async def shutdown(self):
        """Cancel every running job and wait for the tasks to wind down."""
        for job_id in list(self._tokens):
            self._cancel(job_id, "Server shutting down")
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Stopped {len(tasks)} running jobs")
