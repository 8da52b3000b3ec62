"""Config commands -- view and modify the settings file.

Provides the ``retoken config`` sub-command group for reading, updating,
and resetting :class:`~retoken.models.Settings`.  Values written here are
the defaults used by ``credentials`` and ``request``; ``RETOKEN_*``
environment variables still take precedence at load time::

    retoken config set base_url https://api.example.com
    retoken config set interceptor.storage_backend session
    retoken config show
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from retoken.config import get_config_dir, load_settings, save_settings
from retoken.exceptions import InvalidUsageError, RetokenError
from retoken.models import Settings
from retoken.output import error, get_output, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective settings, environment overrides included.

    Example::

        retoken config show
        retoken --json config show
    """
    try:
        settings = load_settings()
    except RetokenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config directory: {get_config_dir()}")
    get_output().format_response(settings.model_dump(mode="json"))


def _set_value(data: dict, key: str, value: str) -> None:
    """Assign *value* at the dot-separated *key* inside *data*."""
    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            raise InvalidUsageError(f"Invalid config key: {key}")
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        raise InvalidUsageError(f"Unknown config key: {key}")
    target[final_key] = value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'interceptor.refresh_url')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the field's type by validation against
    :class:`~retoken.models.Settings`.  Only the file's own contents are
    written back; environment overrides are not persisted.

    Raises:
        typer.Exit: With code 2 if the key path is unknown or the value
            fails validation.
    """
    try:
        data = load_settings(apply_env=False).model_dump(mode="json")
        _set_value(data, key, value)
        try:
            settings = Settings.model_validate(data)
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid value for {key}: {exc}") from exc
        save_settings(settings)
    except RetokenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt."),
) -> None:
    """Reset the settings file to defaults.

    Asks for confirmation unless ``--force`` is given.
    """
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_settings(Settings())
    success("Configuration reset to defaults.")
