"""
AI provider integrations.

OpenAI, Groq and OpenRouter share the OpenAI chat-completions wire format;
Gemini uses Google's generateContent API. Every chat action returns its
answer under ``text`` so downstream nodes can use {{node.text}}.
"""

from typing import Any, Dict, List, Optional

from aion.config import settings
from aion.engine.errors import ExternalCallError
from aion.engine.models import ContextView
from aion.integrations import base
from aion.integrations.base import ActionConfig, Text, require
from aion.integrations.registry import Integration


DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
REPLY_SYSTEM_PROMPT = (
    "You are a helpful Telegram chatbot. "
    "Answer the user's question clearly and concisely."
)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class ChatConfig(ActionConfig):
    api_key: Text = None
    model: Text = None
    system_prompt: Text = None
    user_prompt: Text = None


class ReplyConfig(ChatConfig):
    reply_type: Text = None


async def chat_completion(
    provider: str,
    url: str,
    api_key: str,
    model: str,
    messages: List[Dict[str, str]],
    headers: Optional[Dict[str, str]] = None,
) -> str:
    """Call an OpenAI-compatible chat-completions endpoint and return the reply text."""
    response = await base.send(
        provider,
        "POST",
        url,
        headers={"Authorization": f"Bearer {api_key}", **(headers or {})},
        json={"model": model, "messages": messages},
    )
    data = base.json_body(provider, response)

    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise ExternalCallError(provider, "Unexpected response: no choices returned", response.status_code)


def _messages(config: ChatConfig, default_system: str = DEFAULT_SYSTEM_PROMPT) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": config.system_prompt or default_system},
        {"role": "user", "content": config.user_prompt or ""},
    ]


# ============================================================
# OpenAI
# ============================================================

openai = Integration(id="openai", name="OpenAI", category="ai", description="OpenAI GPT models")


@openai.action("chat", "Chat Completion", config=ChatConfig)
async def openai_chat(config: ChatConfig, context: ContextView) -> Dict[str, Any]:
    """Ask GPT a question."""
    require(config.api_key, "OpenAI API Key is required")
    model = config.model or settings.OPENAI_MODEL
    text = await chat_completion("OpenAI", OPENAI_URL, config.api_key, model, _messages(config))
    return {"text": text, "model": model}


@openai.action("generate_reply", "AI Response", config=ReplyConfig)
async def openai_generate_reply(config: ReplyConfig, context: ContextView) -> Dict[str, Any]:
    """
    Answer a chat message, but only when it was classified as a question.

    Anything else ends the run, so downstream senders never post an empty
    reply.
    """
    if config.reply_type != "question":
        return {"skipped": True, "reply_text": "", "stop_execution": True}

    require(config.api_key, "OpenAI API Key is required")
    model = config.model or settings.OPENAI_MODEL
    text = await chat_completion(
        "OpenAI", OPENAI_URL, config.api_key, model, _messages(config, REPLY_SYSTEM_PROMPT)
    )
    return {"reply_text": text, "reply_type": "answer"}


# ============================================================
# Groq / OpenRouter
# ============================================================

groq = Integration(id="groq", name="Groq", category="ai", description="Llama models on Groq")


@groq.action("chat", "Chat Completion", config=ChatConfig)
async def groq_chat(config: ChatConfig, context: ContextView) -> Dict[str, Any]:
    require(config.api_key, "Groq API Key is required")
    model = config.model or settings.GROQ_MODEL
    text = await chat_completion("Groq", GROQ_URL, config.api_key, model, _messages(config))
    return {"text": text, "model": model}


openrouter = Integration(
    id="openrouter",
    name="OpenRouter",
    category="ai",
    description="300+ models behind one API",
)


@openrouter.action("chat", "Chat Completion", config=ChatConfig)
async def openrouter_chat(config: ChatConfig, context: ContextView) -> Dict[str, Any]:
    require(config.api_key, "OpenRouter API Key is required")
    model = config.model or settings.OPENROUTER_MODEL
    text = await chat_completion(
        "OpenRouter",
        OPENROUTER_URL,
        config.api_key,
        model,
        _messages(config),
        headers={"X-Title": settings.APP_NAME},
    )
    return {"text": text, "model": model}


# ============================================================
# Google Gemini
# ============================================================

gemini = Integration(id="google_gemini", name="Google Gemini", category="ai", description="Gemini models")


@gemini.action("chat", "Chat Completion", config=ChatConfig)
async def gemini_chat(config: ChatConfig, context: ContextView) -> Dict[str, Any]:
    """Generate text with Gemini."""
    require(config.api_key, "Gemini API Key is required")
    require(config.user_prompt, "User Prompt is required")
    model = config.model or settings.GEMINI_MODEL

    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": config.user_prompt}]}],
    }
    if config.system_prompt:
        payload["systemInstruction"] = {"parts": [{"text": config.system_prompt}]}

    response = await base.send(
        "Gemini",
        "POST",
        GEMINI_URL.format(model=model),
        params={"key": config.api_key},
        json=payload,
    )
    data = base.json_body("Gemini", response)

    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise ExternalCallError("Gemini", "Unexpected response: no candidates returned", response.status_code)

    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    return {"text": text, "model": model}
