"""Terminal front end helpers."""

from .prompts import prompt, prompt_bool, prompt_int, prompt_service_config
from .table import format_table, services_table

__all__ = ["prompt", "prompt_bool", "prompt_int", "prompt_service_config", "format_table", "services_table"]
