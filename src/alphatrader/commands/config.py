"""Config commands -- view and modify the settings file.

Provides the ``alphatrader config`` sub-command group for reading and
updating :class:`~alphatrader.models.Settings`.  ``show`` prints the
effective settings (environment overrides applied, token masked); ``set``
edits the file itself.
"""

from __future__ import annotations

import typer

from alphatrader.exit_codes import EXIT_INVALID_USAGE
from alphatrader.output import error, format_response, info


config_app = typer.Typer(no_args_is_help=True)


def _mask(value: str | None) -> str | None:
    if not value or value.startswith(("env:", "file:")):
        return value
    return value[:4] + "..." if len(value) > 8 else "***"


@config_app.command("show")
def config_show() -> None:
    """Show the effective settings.

    Example::

        alphatrader config show
        alphatrader --json config show
    """
    from alphatrader.config import load_settings, settings_path

    settings = load_settings()
    data = settings.model_dump(mode="json")
    data["token"] = _mask(settings.token)
    info(f"Settings file: {settings_path()}")
    format_response(data)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Settings key (dot notation, e.g. 'cache.max_entries')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a value in the settings file.

    The value is validated against :class:`~alphatrader.models.Settings`
    before saving, which also converts it to the field's type.

    Example::

        alphatrader config set api_url https://stable.alphatrader.de
        alphatrader config set token env:ALPHATRADER_TOKEN
        alphatrader config set cache.refresh_interval_minutes 10
    """
    from alphatrader.config import load_settings, save_settings
    from alphatrader.models import Settings

    data = load_settings(apply_env=False).model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid settings key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown settings key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    target[final_key] = value

    try:
        settings = Settings.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    path = save_settings(settings)
    info(f"Set {key} = {value} in {path}")
