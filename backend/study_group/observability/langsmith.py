"""LangSmith tracing for study group runs."""

import logging
import os
from typing import Any, Dict, Iterable, Optional

from study_group.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_TAGS = ("study_group",)

# Settings field -> environment variables read by langsmith / langchain
_EXPORTED_SETTINGS = {
    "LANGSMITH_API_KEY": ("LANGSMITH_API_KEY", "LANGCHAIN_API_KEY"),
    "LANGSMITH_ENDPOINT": ("LANGSMITH_ENDPOINT", "LANGCHAIN_ENDPOINT"),
    "LANGSMITH_PROJECT": ("LANGSMITH_PROJECT", "LANGCHAIN_PROJECT"),
    "LANGSMITH_WORKSPACE_ID": ("LANGSMITH_WORKSPACE_ID",),
}


def initialize_langsmith(settings: Settings) -> bool:
    """
    Export tracing settings to the environment LangChain reads them from.

    Tracing only switches on when it is requested AND an API key is set.

    Returns:
        Whether tracing is enabled.
    """
    enabled = bool(settings.LANGSMITH_TRACING) and bool(settings.LANGSMITH_API_KEY.strip())
    flag = "true" if enabled else "false"
    os.environ["LANGSMITH_TRACING"] = flag
    os.environ["LANGCHAIN_TRACING_V2"] = flag

    for field_name, env_names in _EXPORTED_SETTINGS.items():
        value = getattr(settings, field_name)
        if not value:
            continue
        for env_name in env_names:
            os.environ[env_name] = value

    if enabled:
        logger.info(f"LangSmith tracing enabled for project {settings.LANGSMITH_PROJECT}")
    elif settings.LANGSMITH_TRACING:
        logger.warning("LANGSMITH_TRACING is set but LANGSMITH_API_KEY is empty; tracing disabled")
    else:
        logger.info("LangSmith tracing disabled")

    return enabled


def build_trace_config(
    session_id: str,
    run_name: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Runnable config for one graph invocation.

    Runs of the same study session share a thread id so they group together
    in LangSmith.
    """
    config: Dict[str, Any] = {
        "configurable": {"thread_id": session_id},
        "tags": list(DEFAULT_TAGS) + [tag for tag in (tags or ()) if tag not in DEFAULT_TAGS],
        "metadata": {"session_id": session_id, **(metadata or {})},
    }
    if run_name:
        config["run_name"] = run_name
    return config
