"""Prompt template management for the booking assistant agents."""

from pathlib import Path

PROMPT_DIR = Path(__file__).parent


def load_prompt(name: str, **kwargs) -> str:
    """Load and format a prompt template.

    Args:
        name: Name of the prompt file (without .md extension)
        **kwargs: Variables to substitute in the template

    Returns:
        Formatted prompt string

    Example:
        >>> load_prompt("booking_assistant", current_date="Monday, May 4, 2026")
    """
    prompt_file = PROMPT_DIR / f"{name}.md"

    if not prompt_file.exists():
        msg = f"Prompt template not found: {prompt_file}"
        raise FileNotFoundError(msg)

    template = prompt_file.read_text(encoding="utf-8")
    return template.format(**kwargs)


__all__ = ["load_prompt"]
