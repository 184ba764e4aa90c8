"""
Daily Tasks - personalised development activities for each day

Philosophy:
    A small batch of short activities, one per focus area.
    Unfinished tasks are never buried under a new day's batch.
    If a check fails, the parent still gets tasks.

Components:
    models.py: Task, DailyTaskSet, ChildProfile
    scheduling.py: DailySchedulingGate (is a new batch due?)
    generator.py: TaskGenerator (prompt per area, parse AI reply)
    repository.py: TaskRepository (today's batch and its fallbacks)
    cache.py: TaskCache and the server/local merge rule
    manager.py: TaskManager (fetch with timeout, optimistic toggle)
    completion.py: CompletionOrchestrator (celebrate, bonus round)
    service.py: DailyTaskService (gate -> limit -> generate -> persist)
"""

MAX_TASKS_PER_BATCH = 4

TASK_EMOJIS = ["🌅", "😊", "🧱", "🎨", "🎵", "📚"]
FALLBACK_EMOJI = "✨"

TITLE_MAX_LENGTH = 50
DEFAULT_TIME_LABEL = "10-15 min"
DEFAULT_ESTIMATED_MINUTES = 15

SUPPORTED_LANGUAGES = ("en", "ru")

__all__ = [
    "DEFAULT_ESTIMATED_MINUTES",
    "DEFAULT_TIME_LABEL",
    "FALLBACK_EMOJI",
    "MAX_TASKS_PER_BATCH",
    "SUPPORTED_LANGUAGES",
    "TASK_EMOJIS",
    "TITLE_MAX_LENGTH",
]
