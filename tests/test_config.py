from __future__ import annotations

import pytest

from pdfcompose import ComposeSettings


def test_defaults() -> None:
    settings = ComposeSettings.from_env({})

    assert settings == ComposeSettings()
    assert settings.execution == "auto"
    assert settings.strict is False
    assert settings.copy_metadata is True
    assert settings.log_level == "WARNING"


def test_from_env_reads_variables() -> None:
    settings = ComposeSettings.from_env(
        {
            "PDFCOMPOSE_EXECUTION": " Foreground ",
            "PDFCOMPOSE_STRICT": "yes",
            "PDFCOMPOSE_COPY_METADATA": "off",
            "PDFCOMPOSE_LOG_LEVEL": "debug",
        }
    )

    assert settings == ComposeSettings(execution="foreground", strict=True, copy_metadata=False, log_level="DEBUG")


def test_unrecognised_flag_values_keep_defaults() -> None:
    settings = ComposeSettings.from_env({"PDFCOMPOSE_STRICT": "maybe", "PDFCOMPOSE_COPY_METADATA": ""})

    assert settings.strict is False
    assert settings.copy_metadata is True


def test_from_env_uses_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PDFCOMPOSE_EXECUTION", "foreground")
    assert ComposeSettings.from_env().execution == "foreground"


def test_invalid_execution_mode() -> None:
    with pytest.raises(ValueError, match="Unsupported execution mode"):
        ComposeSettings(execution="threads")

    with pytest.raises(ValueError):
        ComposeSettings.from_env({"PDFCOMPOSE_EXECUTION": "gpu"})


def test_with_updates_ignores_none() -> None:
    settings = ComposeSettings(strict=True)
    updated = settings.with_updates(execution="foreground", strict=None)

    assert updated.execution == "foreground"
    assert updated.strict is True
    assert settings.execution == "auto"
