"""
Prompt templates for the assistant and the task generator.

English and Russian are supported; any other language falls back to English.
Area and category labels are keyed by the onboarding area label
("speech", "motor", ...) so the wording follows what the parent picked.
"""

from __future__ import annotations

from typing import Any, Optional

from nuroo.progress.areas import Difficulty

DEFAULT_LANGUAGE = "en"

SYSTEM_PROMPTS: dict[str, dict[str, Any]] = {
    "en": {
        "role": "You are Nuroo, a specialized AI assistant for parents of neurodivergent children.",
        "mission": "Your role is to give supportive, practical advice and to create personalised activities.",
        "guidelines": [
            "Always be encouraging and positive",
            "Provide specific, actionable suggestions",
            "Consider the child's unique needs",
            "Suggest activities that are fun and engaging",
            "Keep responses concise but helpful",
            "Use simple language that parents can understand",
        ],
        "guidelines_header": "Guidelines:",
        "child": "Child: {name}, Age: {age}",
        "diagnosis": "Diagnosis: {diagnosis}",
        "focus": "Focus areas: {areas}",
        "response": "Respond as a supportive child development expert in English.",
    },
    "ru": {
        "role": "Вы - Nuroo, специализированный ИИ-помощник для родителей нейроразнообразных детей.",
        "mission": "Ваша роль - предоставлять поддерживающие, практические советы и создавать персонализированные занятия.",
        "guidelines": [
            "Всегда будьте ободряющими и позитивными",
            "Предоставляйте конкретные, практичные предложения",
            "Учитывайте уникальные потребности ребёнка",
            "Предлагайте занятия, которые веселые и увлекательные",
            "Держите ответы краткими, но полезными",
            "Используйте простой язык, понятный родителям",
        ],
        "guidelines_header": "Руководящие принципы:",
        "child": "Ребёнок: {name}, Возраст: {age}",
        "diagnosis": "Диагноз: {diagnosis}",
        "focus": "Области фокуса: {areas}",
        "response": "Отвечайте как поддерживающий эксперт по развитию детей на русском языке.",
    },
}

DIFFICULTY_TEXT = {
    "en": {
        Difficulty.BEGINNER: "simple, beginner-friendly",
        Difficulty.INTERMEDIATE: "moderately challenging",
        Difficulty.ADVANCED: "advanced",
    },
    "ru": {
        Difficulty.BEGINNER: "простое, подходящее для начинающих",
        Difficulty.INTERMEDIATE: "умеренно сложное",
        Difficulty.ADVANCED: "продвинутое",
    },
}

PROGRESS_TEXT = {
    "en": ("early stages", "developing stage", "advanced stage"),
    "ru": ("начальном этапе", "этапе активного развития", "продвинутом этапе"),
}

AREA_TRANSLATIONS = {
    "en": {
        "speech": "speech",
        "language": "language",
        "communication": "communication",
        "social": "social",
        "motor": "motor",
        "motor_skills": "motor",
        "cognitive": "cognitive",
        "sensory": "sensory",
        "behavior": "behavior",
    },
    "ru": {
        "speech": "речи",
        "language": "языка",
        "communication": "коммуникации",
        "social": "социальных навыков",
        "motor": "моторных навыков",
        "motor_skills": "моторных навыков",
        "cognitive": "когнитивных способностей",
        "sensory": "сенсорной обработки",
        "behavior": "поведения",
    },
}

CATEGORY_TRANSLATIONS = {
    "en": {
        "speech": "Speech Development",
        "language": "Language Development",
        "communication": "Communication Development",
        "social": "Social Development",
        "motor": "Motor Development",
        "motor_skills": "Motor Development",
        "cognitive": "Cognitive Development",
        "sensory": "Sensory Development",
        "behavior": "Behavior Development",
    },
    "ru": {
        "speech": "Развитие речи",
        "language": "Развитие языка",
        "communication": "Развитие коммуникации",
        "social": "Социальное развитие",
        "motor": "Моторное развитие",
        "motor_skills": "Моторное развитие",
        "cognitive": "Когнитивное развитие",
        "sensory": "Сенсорное развитие",
        "behavior": "Развитие поведения",
    },
}

TIME_LABELS = {"en": "10-15 min", "ru": "10-15 мин"}

TASK_PROMPTS = {
    "en": """Create a {difficulty} {area} development activity for a child who is in the {stage} of their development journey.

Child Information:
- Name: {name}
- Age: {age}
- Diagnosis: {diagnosis}
- Current {area} level: {progress}/100 ({difficulty})

Requirements:
- Make it {difficulty}
- Start with a short activity name on the first line
- Include clear, step-by-step instructions
- Suggest materials that are easily available at home
- Estimated duration: 10-20 minutes
- Make it fun and engaging
- Consider the child's current abilities and gently push them forward

Format the response as a clear, actionable task description in English.""",
    "ru": """Создайте {difficulty} занятие по развитию {area} для ребёнка, который находится на {stage} своего пути развития.

Информация о ребёнке:
- Имя: {name}
- Возраст: {age}
- Диагноз: {diagnosis}
- Текущий уровень {area}: {progress}/100 ({difficulty})

Требования:
- Сделайте его {difficulty}
- Начните с короткого названия занятия в первой строке
- Включите чёткие пошаговые инструкции
- Предложите материалы, которые легко доступны дома
- Ожидаемая продолжительность: 10-20 минут
- Сделайте его весёлым и увлекательным
- Учитывайте текущие способности ребёнка и мягко подталкивайте их вперёд

Оформите ответ как чёткое, практичное описание задачи на русском языке.""",
}


def pick_language(language: Optional[str]) -> str:
    lang = (language or DEFAULT_LANGUAGE).strip().lower()[:2]
    return lang if lang in SYSTEM_PROMPTS else DEFAULT_LANGUAGE


def _label_key(area: str) -> str:
    return area.strip().lower().replace(" ", "_").replace("-", "_")


def translate_area(area: str, language: str) -> str:
    return AREA_TRANSLATIONS[pick_language(language)].get(_label_key(area), area)


def translate_category(area: str, language: str) -> str:
    table = CATEGORY_TRANSLATIONS[pick_language(language)]
    return table.get(_label_key(area), f"{area[:1].upper()}{area[1:]} Development")


def time_label(language: str) -> str:
    return TIME_LABELS[pick_language(language)]


def progress_stage(progress: float, language: str) -> str:
    early, developing, advanced = PROGRESS_TEXT[pick_language(language)]
    if progress < 30:
        return early
    if progress < 70:
        return developing
    return advanced


def build_system_prompt(
    language: str = DEFAULT_LANGUAGE,
    name: Optional[str] = None,
    age: Optional[str] = None,
    diagnosis: Optional[str] = None,
    development_areas: Optional[list[str]] = None,
) -> str:
    lang = SYSTEM_PROMPTS[pick_language(language)]
    lines = [lang["role"], lang["mission"], "", lang["guidelines_header"]]
    lines.extend(f"- {g}" for g in lang["guidelines"])
    lines.append("")

    if name and age:
        lines.append(lang["child"].format(name=name, age=age))
    if diagnosis:
        lines.append(lang["diagnosis"].format(diagnosis=diagnosis))
    if development_areas:
        lines.append(lang["focus"].format(areas=", ".join(development_areas)))

    lines.append("")
    lines.append(lang["response"])
    return "\n".join(lines)


def build_task_prompt(
    area: str,
    progress: float,
    difficulty: Difficulty,
    name: Optional[str],
    age: Optional[str],
    diagnosis: Optional[str],
    language: str = DEFAULT_LANGUAGE,
) -> str:
    lang = pick_language(language)
    return TASK_PROMPTS[lang].format(
        difficulty=DIFFICULTY_TEXT[lang][difficulty],
        area=translate_area(area, lang),
        stage=progress_stage(progress, lang),
        name=name or "Child",
        age=age or "Unknown",
        diagnosis=diagnosis or "Not specified",
        progress=f"{progress:g}",
    )
