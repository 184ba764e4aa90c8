"""AI assistant - OpenAI chat client and prompt templates

Components:
    prompts.py: system prompt, per-area task prompt, translations (en, ru)
    client.py: AssistantClient (ask Nuroo, generate task text)
"""

from nuroo.agent.client import AssistantClient

__all__ = ["AssistantClient"]
