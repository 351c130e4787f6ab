"""Runs the command handlers and performs their effects.

``AssessmentSession`` owns the current form/navigation state and is the only
place that talks to the API client, the local backup store and the autosave
controller. State changes are serialized by one lock; API calls run outside
it so an in-flight autosave never blocks user commands.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from pathlib import Path
from typing import Any, Callable

from ..config import PROGRESS_STORAGE_KEY, ClientConfig
from ..schemas import ValidationError
from . import commands
from .api_client import ApiClient
from .autosave import AutosaveController, AutosaveRunner
from .backup import BackupStore
from .commands import (
    BackupEffect,
    CommandResult,
    Effect,
    LoadEffect,
    NavigateEffect,
    SaveEffect,
    ScheduleAutosaveEffect,
    UploadEffect,
)
from .completion import CompletionSummary, build_completion_summary
from .errors import FileUploadError, NetworkError
from .form_state import FormState
from .navigation import NavigationState, Route, resolve_route

logger = logging.getLogger(__name__)


class AssessmentSession:
    def __init__(
        self,
        api: ApiClient,
        *,
        backup: BackupStore | None = None,
        autosave: AutosaveController | None = None,
        uploads_enabled: bool = True,
        storage_key: str = PROGRESS_STORAGE_KEY,
    ) -> None:
        self.api = api
        self.backup = backup or BackupStore()
        self.autosave = autosave or AutosaveController(30.0)
        self.uploads_enabled = uploads_enabled
        self.storage_key = storage_key
        self.state = FormState()
        self.navigation = NavigationState()
        self.current_path = "/"
        self._lock = threading.RLock()
        self._runner: AutosaveRunner | None = None
        self._generation = 0

    @classmethod
    def from_config(cls, config: ClientConfig, *, api: ApiClient | None = None, **kwargs: Any) -> "AssessmentSession":
        autosave = AutosaveController(
            config.auto_save_interval / 1000.0,
            enabled=config.feature_enabled("auto_save"),
        )
        return cls(
            api or ApiClient.from_config(config),
            autosave=autosave,
            uploads_enabled=config.feature_enabled("file_upload"),
            **kwargs,
        )

    # -- dispatch -------------------------------------------------------
    #
    # The lock guards state and the autosave controller only. Network calls
    # run unlocked; their outcome is applied to whatever the state is by the
    # time they return, unless start/reset bumped the generation meanwhile.

    def _run(self, handler: Callable[..., CommandResult], *args: Any, **kwargs: Any) -> CommandResult:
        with self._lock:
            result = handler(self.state, self.navigation, *args, **kwargs)
            self._adopt(result)
            generation = self._generation
        self._drain(result.effects, generation)
        return result

    def _adopt(self, result: CommandResult) -> list:
        self.state = result.state
        self.navigation = result.navigation
        return list(result.effects)

    def _stale(self, what: str) -> list:
        logger.info("[session] dropping %s result from a previous session", what)
        return []

    def _drain(self, effects: list, generation: int) -> None:
        queue: deque[Effect] = deque(effects)
        while queue:
            queue.extend(self._perform(queue.popleft(), generation))

    def _perform(self, effect: Effect, generation: int) -> list:
        if isinstance(effect, LoadEffect):
            return self._load(effect, generation)
        if isinstance(effect, SaveEffect):
            return self._save(effect, generation)
        if isinstance(effect, UploadEffect):
            return self._upload(effect, generation)
        with self._lock:
            if generation != self._generation:
                return self._stale(type(effect).__name__)
            if isinstance(effect, BackupEffect):
                self.backup.save_progress(
                    effect.assessment_type,
                    effect.company_id,
                    effect.employee_id,
                    effect.responses,
                    key=self.storage_key,
                )
            elif isinstance(effect, NavigateEffect):
                logger.info("[session] navigate %s -> %s", self.current_path, effect.path)
                self.current_path = effect.path
            elif isinstance(effect, ScheduleAutosaveEffect):
                self.autosave.notify_change()
            else:
                raise TypeError(f"unknown effect: {effect!r}")
        return []

    def _load(self, effect: LoadEffect, generation: int) -> list:
        try:
            questions = self.api.get_questions(effect.assessment_type)
        except NetworkError as exc:
            logger.error("[session] could not load %s questions: %s", effect.assessment_type, exc)
            with self._lock:
                if generation != self._generation:
                    return self._stale("load")
                return self._adopt(commands.load_failed(self.state, self.navigation, exc))

        try:
            remote = self.api.get_responses(effect.assessment_type, effect.company_id, effect.employee_id)
        except NetworkError as exc:
            logger.warning("[session] could not load saved responses, continuing without them: %s", exc)
            remote = None

        local = None
        if not (remote or {}).get("responses"):
            local = self.backup.load_progress(
                effect.assessment_type, effect.company_id, effect.employee_id, key=self.storage_key
            )
            if local:
                logger.info("[session] restored %d answers from local backup", len(local))
        with self._lock:
            if generation != self._generation:
                return self._stale("load")
            return self._adopt(commands.load_completed(self.state, self.navigation, questions, remote, local))

    def _save(self, effect: SaveEffect, generation: int) -> list:
        with self._lock:
            if generation != self._generation:
                return self._stale("save")
            self.autosave.begin()
        try:
            ack = self.api.save_responses(effect.request)
        except NetworkError as exc:
            if effect.manual:
                logger.error("[session] save failed: %s", exc)
            with self._lock:
                if generation != self._generation:
                    return self._stale("save")
                self.autosave.failed(exc)
                return self._adopt(commands.save_failed(self.state, self.navigation, effect, exc))
        logger.info("[session] saved %d answers (status=%s)", len(effect.request.responses), ack.get("status"))
        with self._lock:
            if generation != self._generation:
                return self._stale("save")
            self.autosave.succeeded()
            return self._adopt(commands.save_succeeded(self.state, self.navigation, effect, ack))

    def _upload(self, effect: UploadEffect, generation: int) -> list:
        with self._lock:
            nav = self.navigation
        company_id = nav.company_info.id if nav.company_info else ""
        try:
            uploaded = self.api.upload_file(
                company_id,
                effect.question_id,
                effect.source,
                file_name=effect.file_name,
                content_type=effect.content_type,
                assessment_type=nav.assessment_type,
                file_types=effect.file_types,
                max_size=effect.max_size,
            )
        except (FileUploadError, OSError) as exc:
            logger.warning("[session] upload for %s failed: %s", effect.question_id, exc)
            with self._lock:
                if generation != self._generation:
                    return self._stale("upload")
                return self._adopt(commands.upload_failed(self.state, self.navigation, effect.question_id, exc))
        with self._lock:
            if generation != self._generation:
                return self._stale("upload")
            return self._adopt(
                commands.upload_finished(self.state, self.navigation, effect.question_id, uploaded.to_reference())
            )

    # -- commands -------------------------------------------------------

    def _new_generation(self) -> None:
        with self._lock:
            self.autosave.reset()
            self._generation += 1

    def start(self, form_data: dict[str, Any]) -> dict[str, str]:
        """Begin (or resume) an assessment; returns welcome-form field errors."""
        self._new_generation()
        return self._run(commands.start_assessment, form_data).form_errors

    def update_response(self, question_id: str, value: Any) -> None:
        self._run(commands.update_response, question_id, value)

    def save(self) -> bool:
        self._run(commands.save, manual=True)
        with self._lock:
            return not self.state.has_unsaved_changes

    def tick(self) -> None:
        with self._lock:
            due = self.autosave.is_due(dirty=self.state.has_unsaved_changes)
        # A save that starts in between is caught by the handler's is_saving check.
        self._run(commands.autosave_tick, due=due)

    def submit(self) -> bool:
        self._run(commands.submit)
        with self._lock:
            return self.state.status == "submitted"

    def upload(
        self,
        question_id: str,
        source: str | Path | bytes,
        *,
        file_name: str | None = None,
        content_type: str | None = None,
    ) -> None:
        self._run(
            commands.upload_started,
            question_id,
            source,
            file_name=file_name,
            content_type=content_type,
            uploads_enabled=self.uploads_enabled,
        )

    def dismiss_banner(self) -> None:
        self._run(commands.dismiss_banner)

    def reset(self) -> None:
        self._new_generation()
        self._run(commands.reset)

    # -- views ----------------------------------------------------------

    @property
    def errors(self) -> list[ValidationError]:
        return list(self.state.errors.values())

    def route(self, path: str | None = None) -> Route:
        return resolve_route(path or self.current_path, self.navigation)

    def completion_summary(self) -> CompletionSummary:
        return build_completion_summary(self.state, self.navigation)

    # -- autosave thread ------------------------------------------------

    def start_autosave(self, poll_seconds: float = 1.0) -> None:
        if not self.autosave.enabled:
            logger.info("[autosave] disabled by configuration")
            return
        if self._runner is None:
            self._runner = AutosaveRunner(self.tick, poll_seconds=poll_seconds)
        self._runner.start()

    def stop_autosave(self) -> None:
        if self._runner is not None:
            self._runner.stop()

    def close(self) -> None:
        self.stop_autosave()
        self.api.close()
