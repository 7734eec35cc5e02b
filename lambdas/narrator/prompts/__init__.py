"""Instruction templates for the narration model."""

from .output_format import OUTPUT_FORMAT
from .registry import SystemPrompts, build_system_prompts, load_system_prompts
from .templates import DEFAULT_SYSTEM_PROMPTS

__all__ = [
    "DEFAULT_SYSTEM_PROMPTS",
    "OUTPUT_FORMAT",
    "SystemPrompts",
    "build_system_prompts",
    "load_system_prompts",
]
