"""
Tool: Task Generator
Purpose: Build one personalised activity per slot from the child's focus areas

Slot i uses areas[i % len(areas)] from the first four configured areas, so
a child with two areas gets [a0, a1, a0, a1]. Each slot gets its own
prompt (name, age, diagnosis, area, current progress, difficulty tier) and
its own AI call. A slot whose call fails is logged and skipped; the batch
returns whatever succeeded, possibly nothing.

Usage:
    python -m nuroo.tasks.generator --user alice --name Sam --age 6 \\
        --diagnosis autism --areas speech motor --language en

Dependencies:
    - nuroo.agent.client (OpenAI)
    - nuroo.progress (progress and difficulty)
"""

import argparse
import asyncio
import json
import logging
import re
from typing import Optional

from dotenv import load_dotenv

from nuroo.agent.client import AssistantClient
from nuroo.agent.prompts import build_task_prompt, time_label, translate_category
from nuroo.clock import Clock, today_key, utc_now
from nuroo.config_models import load_config, resolve_path
from nuroo.errors import ValidationError
from nuroo.progress.areas import DevelopmentArea, Difficulty, calculate_difficulty, resolve_area
from nuroo.progress.store import ProgressStore
from nuroo.store.sqlite_store import SQLiteDocumentStore
from nuroo.tasks import (
    DEFAULT_ESTIMATED_MINUTES,
    FALLBACK_EMOJI,
    MAX_TASKS_PER_BATCH,
    TASK_EMOJIS,
    TITLE_MAX_LENGTH,
)
from nuroo.tasks.models import ChildProfile, Task, generate_id

logger = logging.getLogger(__name__)

TITLE_PREFIX_PATTERN = re.compile(r"^[#*•\s]+")


def select_areas(areas: list[str], batch_size: int = MAX_TASKS_PER_BATCH) -> list[str]:
    """Area label for each slot, cycling through the first ``batch_size`` areas."""
    if not areas:
        raise ValidationError("No development areas specified")
    pool = areas[:batch_size]
    return [pool[i % len(pool)] for i in range(batch_size)]


def emoji_for_slot(slot: int) -> str:
    return TASK_EMOJIS[slot] if 0 <= slot < len(TASK_EMOJIS) else FALLBACK_EMOJI


def extract_title(reply: str, area: str) -> str:
    first_line = reply.split("\n", 1)[0]
    title = TITLE_PREFIX_PATTERN.sub("", first_line).strip()
    if not title:
        title = f"Daily {area} Activity"
    if len(title) > TITLE_MAX_LENGTH:
        title = title[: TITLE_MAX_LENGTH - 3] + "..."
    return title


class TaskGenerator:
    def __init__(
        self,
        assistant: AssistantClient,
        progress_store: ProgressStore,
        batch_size: int = MAX_TASKS_PER_BATCH,
        clock: Clock = utc_now,
    ):
        self.assistant = assistant
        self.progress_store = progress_store
        self.batch_size = batch_size
        self.clock = clock

    async def generate_personalized_tasks(
        self,
        user_id: str,
        child: ChildProfile,
        language: str = "en",
        daily_id: Optional[str] = None,
    ) -> list[Task]:
        """Generate up to ``batch_size`` tasks for one batch.

        Args:
            user_id: Owner of the tasks
            child: Profile supplying name, age, diagnosis and focus areas
            language: Prompt and label language (en, ru)
            daily_id: Batch key; defaults to today's ISO date

        Raises:
            ValidationError: no areas configured, or an area label is unknown
        """
        slots = select_areas(child.development_areas, self.batch_size)
        resolved = {label: resolve_area(label) for label in set(slots)}

        progress = await self.progress_store.get_or_initialize(user_id)
        batch_key = daily_id or today_key(self.clock())
        tasks: list[Task] = []

        for slot, label in enumerate(slots):
            area = resolved[label]
            area_progress = progress.get(area)
            difficulty = calculate_difficulty(area_progress)

            try:
                logger.info(
                    f"Generating task {slot + 1}/{len(slots)} for {label} ({difficulty}) in {language}"
                )
                prompt = self.build_prompt(label, area_progress, difficulty, child, language)
                reply = await self.assistant.generate_task_text(prompt, child, language)
                task = self.parse_task_from_ai(
                    user_id, label, area, reply, slot, difficulty, batch_key, language
                )
                tasks.append(task)
            except Exception as e:
                logger.error(f"Task {slot + 1}/{len(slots)} for {label} failed, skipping: {e}")

        logger.info(f"Generated {len(tasks)}/{len(slots)} tasks for {user_id} ({batch_key})")
        return tasks

    def build_prompt(
        self,
        label: str,
        area_progress: float,
        difficulty: Difficulty,
        child: ChildProfile,
        language: str,
    ) -> str:
        return build_task_prompt(
            label,
            area_progress,
            difficulty,
            child.name,
            child.age,
            child.diagnosis,
            language,
        )

    def parse_task_from_ai(
        self,
        user_id: str,
        label: str,
        area: DevelopmentArea,
        reply: str,
        slot: int,
        difficulty: Difficulty,
        batch_key: str,
        language: str = "en",
    ) -> Task:
        """First line is the title, the whole reply is the description."""
        return Task(
            id=f"task-{generate_id()}-{slot + 1}",
            title=extract_title(reply, label),
            description=reply,
            category=translate_category(label, language),
            time=time_label(language),
            emoji=emoji_for_slot(slot),
            user_id=user_id,
            daily_id=batch_key,
            created_at=self.clock().isoformat(),
            development_area=area,
            difficulty=difficulty,
            estimated_duration=DEFAULT_ESTIMATED_MINUTES,
        )


async def _run(args) -> list[dict]:
    config = load_config()
    store = SQLiteDocumentStore(resolve_path(config.storage.store_db))
    generator = TaskGenerator(
        AssistantClient(config.openai),
        ProgressStore(store),
        batch_size=config.tasks.batch_size,
    )
    child = ChildProfile(
        name=args.name,
        age=args.age,
        diagnosis=args.diagnosis,
        development_areas=args.areas,
    )
    tasks = await generator.generate_personalized_tasks(args.user, child, args.language)
    return [t.to_dict() for t in tasks]


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Task Generator (does not persist)")
    parser.add_argument("--user", required=True, help="User ID")
    parser.add_argument("--name", default="Child")
    parser.add_argument("--age", default="")
    parser.add_argument("--diagnosis", default="")
    parser.add_argument("--areas", nargs="+", required=True, help="Development areas")
    parser.add_argument("--language", default="en")
    args = parser.parse_args()

    try:
        print(json.dumps(asyncio.run(_run(args)), indent=2, ensure_ascii=False))
    except ValidationError as e:
        print(f"ERROR {e}")


if __name__ == "__main__":
    main()
