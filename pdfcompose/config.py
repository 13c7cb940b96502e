"""Runtime settings for :mod:`pdfcompose` sourced from the environment."""

from __future__ import annotations

import dataclasses
import os
from typing import Mapping

EXECUTION_MODES = ("auto", "foreground")
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None:
        return default
    normalised = value.strip().lower()
    if normalised in _TRUTHY:
        return True
    if normalised in _FALSY:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class ComposeSettings:
    """Behavioural toggles shared by the engine, worker and dispatcher.

    Attributes:
        execution: ``"auto"`` prefers the background worker and silently falls
            back to the calling thread, ``"foreground"`` never starts a worker.
        strict: Parse sources with pypdf's strict mode.
        copy_metadata: Copy the document info of the first source into outputs.
        log_level: Level applied to the ``pdfcompose`` logger hierarchy.
    """

    execution: str = "auto"
    strict: bool = False
    copy_metadata: bool = True
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.execution not in EXECUTION_MODES:
            raise ValueError(
                f"Unsupported execution mode: {self.execution!r} (expected one of {', '.join(EXECUTION_MODES)})"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ComposeSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            execution=env.get("PDFCOMPOSE_EXECUTION", defaults.execution).strip().lower(),
            strict=_env_flag(env, "PDFCOMPOSE_STRICT", defaults.strict),
            copy_metadata=_env_flag(env, "PDFCOMPOSE_COPY_METADATA", defaults.copy_metadata),
            log_level=env.get("PDFCOMPOSE_LOG_LEVEL", defaults.log_level).strip().upper(),
        )

    def with_updates(self, **changes: object) -> "ComposeSettings":
        return dataclasses.replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = ["ComposeSettings", "EXECUTION_MODES"]
