"""
Prompt Management Service.

Centralizes all prompts in YAML files for easy management and updates.
"""
import logging
import os
import yaml
from typing import Optional, Dict, Any
from functools import lru_cache

logger = logging.getLogger(__name__)

# Path to prompts directory
PROMPTS_DIR = os.path.join(os.path.dirname(__file__), "..", "prompts")


@lru_cache(maxsize=50)
def _load_prompt_file(name: str) -> Optional[Dict[str, Any]]:
    """Load a prompt from YAML file with caching."""
    file_path = os.path.join(PROMPTS_DIR, f"{name}.yaml")

    if not os.path.exists(file_path):
        logger.warning("⚠️ Prompt file not found: %s", file_path)
        return None

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("❌ Error loading prompt %s: %s", name, e)
        return None


def _render(template: str, **kwargs) -> str:
    if not kwargs or not template:
        return template
    try:
        return template.format(**kwargs)
    except KeyError as e:
        logger.warning("⚠️ Prompt variable %s not provided", e)
        return template


def get_prompt(name: str, **kwargs) -> Dict[str, str]:
    """
    Get a prompt by name.

    Args:
        name: Name of the prompt (without .yaml extension)
        **kwargs: Variables to interpolate into the prompt

    Returns:
        Dict with 'system_prompt' and 'human_prompt' keys
    """
    prompt_data = _load_prompt_file(name)

    if not prompt_data:
        return {"system_prompt": "", "human_prompt": ""}

    return {
        "system_prompt": _render(prompt_data.get("system_prompt", ""), **kwargs),
        "human_prompt": _render(prompt_data.get("human_prompt", ""), **kwargs),
    }
