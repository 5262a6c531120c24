from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROMPT = "Press <ENTER> when finished."


class DateWireSettings(BaseSettings):
    """Runtime settings for the console program.

    Every field has a default matching the plain ``datewire`` run; set
    ``DATEWIRE_<FIELD>`` environment variables to override them.
    """

    model_config = SettingsConfigDict(env_prefix="DATEWIRE_", frozen=True)

    writer: Literal["short", "iso"] = "short"
    """Date writer bound to the ``DateWriter`` capability."""

    prompt: str = DEFAULT_PROMPT
    """Line printed before waiting for ENTER."""

    wait_for_enter: bool = True
    """Block on standard input before exiting."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    """Root logger level; records go to standard error."""
