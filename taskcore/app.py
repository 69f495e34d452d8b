"""Composition root: builds and wires the core once per process."""

from __future__ import annotations

from dataclasses import dataclass

from taskcore.config import CoreConfig, load_config
from taskcore.feedback.manager import FeedbackManager, FeedbackListener
from taskcore.observability import get_json_logger
from taskcore.scheduling import Scheduler, resolve_scheduler
from taskcore.services.confirmation import ConfirmationGateway, ConfirmationPrompt
from taskcore.services.errors import DiagnosticSink, ErrorHandler
from taskcore.services.task_service import TaskService
from taskcore.storage.adapter import TaskStorage
from taskcore.storage.file_backend import FileKeyValueBackend
from taskcore.storage.interface import KeyValueBackend
from taskcore.storage.redis_backend import RedisKeyValueBackend
from taskcore.storage.synchronizer import PersistenceSynchronizer
from taskcore.store.statistics import StatisticsEngine
from taskcore.store.task_store import Clock, TaskStore


@dataclass(slots=True)
class TaskApp:
    store: TaskStore
    statistics: StatisticsEngine
    storage: TaskStorage
    synchronizer: PersistenceSynchronizer
    feedback: FeedbackManager
    confirmation: ConfirmationGateway
    errors: ErrorHandler
    service: TaskService

    def close(self) -> None:
        """Flush pending writes and stop timers. Safe to call twice."""
        self.synchronizer.close()
        self.feedback.close()


def build_backend(config: CoreConfig) -> KeyValueBackend | None:
    if config.storage == "redis":
        return RedisKeyValueBackend(config.redis_url, key_prefix=config.key_prefix)
    if config.storage == "file":
        return FileKeyValueBackend(config.data_dir)
    return None


def build_app(
    config: CoreConfig | None = None,
    *,
    backend: KeyValueBackend | None = None,
    prompt: ConfirmationPrompt | None = None,
    sink: DiagnosticSink | None = None,
    scheduler: Scheduler | None = None,
    clock: Clock | None = None,
    on_feedback: FeedbackListener | None = None,
) -> TaskApp:
    """Wire every component and seed the store from storage.

    ``backend`` overrides the one chosen by ``config.storage``.
    """
    cfg = config or load_config()
    errors = ErrorHandler(sink)
    storage = TaskStorage(backend if backend is not None else build_backend(cfg), errors)

    store = TaskStore(clock=clock)
    store.load(storage.load_all())

    synchronizer = PersistenceSynchronizer(store, storage, scheduler=scheduler)
    statistics = StatisticsEngine(store, clock=clock, tz=cfg.timezone)
    feedback = FeedbackManager(
        success_ttl=cfg.success_ttl_s, scheduler=scheduler, on_change=on_feedback
    )
    confirmation = ConfirmationGateway(prompt, errors)
    service = TaskService(store, statistics, feedback, confirmation, errors)

    logger = get_json_logger("taskcore")
    if resolve_scheduler(scheduler) is None:
        logger.info(
            "no event loop; storage writes run inline and success messages do not expire",
            extra={"event": "inline_mode"},
        )
    health = storage.health()
    logger.info(
        "task core ready",
        extra={
            "event": "core_ready",
            "count": len(store),
            "attributes": {
                "storage": cfg.storage if backend is None else type(backend).__name__,
                "available": health.available,
                "has_error": health.has_error,
            },
        },
    )
    return TaskApp(
        store=store,
        statistics=statistics,
        storage=storage,
        synchronizer=synchronizer,
        feedback=feedback,
        confirmation=confirmation,
        errors=errors,
        service=service,
    )


__all__ = ["TaskApp", "build_app", "build_backend"]
