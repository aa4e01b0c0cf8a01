"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# OpenAI (manager + collection agents). Tool-calling requires OpenAI.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# Hugging Face router (fallback for plain generation when OPENAI_API_KEY is not set)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# API timeouts (seconds)
LLM_API_TIMEOUT: float = 60.0
METADATA_HTTP_TIMEOUT: float = 10.0

# Whole /chat run, including every manager turn and collection agent call. 0 disables.
CHAT_RUN_TIMEOUT: float = float(os.getenv("CHAT_RUN_TIMEOUT", "120") or 0)

# Manager loop
MAX_TOOL_ROUNDS: int = 5
MANAGER_MAX_TOKENS: int = 1024
AGENT_MAX_TOKENS: int = 512
SUMMARY_MAX_TOKENS: int = 300

# Item descriptions longer than this are cut and suffixed with "..." in agent prompts
ITEM_DESCRIPTION_MAX_CHARS: int = 300

# Link metadata fetch
METADATA_USER_AGENT: str = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.114 Safari/537.36"
)
