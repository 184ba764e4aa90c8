"""
Wiring for the task pipeline.

build_services() creates one instance of every component from the config
and passes the shared EventBus, stores and clock to each of them. Tests and
the HTTP app pass their own config, clock or assistant.

Usage:
    from nuroo.services import build_services

    services = build_services()
    outcome = await services.daily_task_service.check_and_generate_daily_tasks("alice")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from nuroo.agent.client import AssistantClient
from nuroo.automation.notify import Notifier
from nuroo.automation.runner import BackgroundTaskRunner
from nuroo.clock import Clock, local_now, utc_now
from nuroo.config_models import NurooConfig, load_config, resolve_path
from nuroo.events import EventBus
from nuroo.limits.daily import DailyLimits
from nuroo.progress.store import ProgressStore
from nuroo.security.ratelimit import RateLimiter
from nuroo.storage.local import LocalStore
from nuroo.storage.offline import OfflineCache
from nuroo.store.base import DocumentStore
from nuroo.store.sqlite_store import SQLiteDocumentStore
from nuroo.tasks.completion import CompletionOrchestrator
from nuroo.tasks.generator import TaskGenerator
from nuroo.tasks.manager import TaskManager
from nuroo.tasks.repository import TaskRepository
from nuroo.tasks.scheduling import DailySchedulingGate
from nuroo.tasks.service import DailyTaskService


@dataclass
class Services:
    config: NurooConfig
    events: EventBus
    local_store: LocalStore
    store: DocumentStore
    rate_limiter: RateLimiter
    progress_store: ProgressStore
    assistant: AssistantClient
    gate: DailySchedulingGate
    generator: TaskGenerator
    repository: TaskRepository
    notifier: Notifier
    offline: OfflineCache
    orchestrator: CompletionOrchestrator
    task_manager: TaskManager
    daily_task_service: DailyTaskService
    daily_limits: DailyLimits
    background_runner: BackgroundTaskRunner


def build_services(
    config: Optional[NurooConfig] = None,
    clock: Clock = utc_now,
    assistant: Optional[AssistantClient] = None,
    store: Optional[DocumentStore] = None,
    device_clock: Clock = local_now,
) -> Services:
    config = config or load_config()
    events = EventBus()

    local_store = LocalStore(resolve_path(config.storage.local_db))
    store = store or SQLiteDocumentStore(resolve_path(config.storage.store_db))

    rate_limiter = RateLimiter(local_store, config.rate_limits, clock=lambda: clock().timestamp())
    progress_store = ProgressStore(store, clock=clock)
    assistant = assistant or AssistantClient(config.openai, rate_limiter=rate_limiter)

    gate = DailySchedulingGate(store, clock=clock)
    generator = TaskGenerator(assistant, progress_store, batch_size=config.tasks.batch_size, clock=clock)
    repository = TaskRepository(store, recent_fallback_count=config.tasks.recent_fallback_count)
    notifier = Notifier(
        resolve_path(config.storage.notifications_db),
        events,
        config.notifications,
        clock=device_clock,
    )
    offline = OfflineCache(local_store, clock=clock, stale_hours=config.storage.offline_stale_hours)

    orchestrator = CompletionOrchestrator(
        progress_store,
        generator,
        repository,
        notifier,
        local_store,
        events=events,
        bonus_bump=config.tasks.bonus_bump,
        clock=clock,
    )
    task_manager = TaskManager(
        store,
        repository,
        progress_store,
        orchestrator=orchestrator,
        events=events,
        offline=offline,
        notifier=notifier,
        completion_bump=config.tasks.completion_bump,
        fetch_timeout=config.tasks.fetch_timeout_seconds,
        clock=clock,
    )
    daily_task_service = DailyTaskService(
        store,
        gate,
        rate_limiter,
        generator,
        repository,
        progress_store,
        notifier=notifier,
        events=events,
        default_language=config.default_language,
        clock=clock,
    )
    daily_limits = DailyLimits(local_store, config.daily_limits, clock=device_clock)
    background_runner = BackgroundTaskRunner(
        store, daily_task_service, interval_seconds=config.background.interval_seconds
    )

    return Services(
        config=config,
        events=events,
        local_store=local_store,
        store=store,
        rate_limiter=rate_limiter,
        progress_store=progress_store,
        assistant=assistant,
        gate=gate,
        generator=generator,
        repository=repository,
        notifier=notifier,
        offline=offline,
        orchestrator=orchestrator,
        task_manager=task_manager,
        daily_task_service=daily_task_service,
        daily_limits=daily_limits,
        background_runner=background_runner,
    )
