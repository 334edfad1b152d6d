import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union, get_args, get_origin

from dotenv import load_dotenv

from oggscope.services.inspect.codec import CodecKind
from oggscope.services.inspect.scanner import InvalidPagePolicy

# ----------------------------------------------------------------------------
# helpers & converters
# ----------------------------------------------------------------------------

def _str_to_bool(value: str) -> bool:
    """Return ``True`` for typical truthy strings ("1", "yes", "true", "on")."""
    return value.lower() in {"1", "true", "yes", "y", "on"}


def _invalid_page_policy_converter(raw: str) -> InvalidPagePolicy:
    try:
        return InvalidPagePolicy(raw.strip().lower())
    except ValueError:
        valid = [policy.value for policy in InvalidPagePolicy]
        raise ValueError(f"Invalid page policy must be one of {valid}") from None


_CONVERTERS: dict[type, Callable[[str], Any]] = {
    bool: _str_to_bool,
    int: int,
    str: str,
    Path: Path,
    CodecKind: CodecKind.from_name,
    InvalidPagePolicy: _invalid_page_policy_converter,
}


# ----------------------------------------------------------------------------
# main configuration class
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Config:
    """Inspection settings, created once at startup and read-only afterwards.

    Every field may receive *metadata* keys:

    * ``env`` - name of the environment variable to read
    * ``choices`` - iterable of allowed values
    """

    FILE_PATH: Optional[Path] = field(
        default=None,
        metadata={"env": "OGGSCOPE_FILE"},
    )

    TARGET_CODEC: CodecKind = field(
        default=CodecKind.THEORA,
        metadata={"env": "OGGSCOPE_TARGET_CODEC"},
    )

    INVALID_PAGE_POLICY: InvalidPagePolicy = field(
        default=InvalidPagePolicy.ABORT,
        metadata={"env": "OGGSCOPE_INVALID_PAGE_POLICY"},
    )

    LOG_LEVEL: str = field(
        default="WARNING",
        metadata={
            "env": "OGGSCOPE_LOG_LEVEL",
            "choices": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    )

    LOG_JSON: bool = field(
        default=False,
        metadata={"env": "OGGSCOPE_LOG_JSON"},
    )

    LOGGING_CONFIG: Optional[Path] = field(
        default=None,
        metadata={"env": "OGGSCOPE_LOGGING_CONFIG"},
    )

    def validate_log_level(self, value: str) -> str:
        return value.upper()

    def validate_logging_config(self, value: Path) -> Path:
        if not value.is_file():
            raise ValueError(f"{value} is not a file")
        return value

    # ---------------- loading ----------------

    @classmethod
    def from_env(cls, use_dotenv: bool = True) -> "Config":
        """Build a config from the environment, with validation.

        Invalid values are logged and replaced by the field default.
        """
        if use_dotenv:
            load_dotenv()

        config = cls()
        errors: list[str] = []
        values: dict[str, Any] = {}

        for f in fields(cls):
            meta: Mapping[str, Any] = f.metadata or {}
            env_name: str = meta.get("env", f.name)
            raw = os.getenv(env_name)

            # keep default if nothing provided
            if raw is None or raw == "":
                continue

            try:
                value = config._convert_type(raw, f.type)
            except (ValueError, TypeError) as exc:
                errors.append(
                    f"{env_name}={raw!r}: {exc}. Using default {getattr(config, f.name)!r}."
                )
                continue

            # custom hook: validate_<field_name>(value) -> value
            hook_name = f"validate_{f.name.lower()}"
            if hasattr(config, hook_name):
                try:
                    value = getattr(config, hook_name)(value)
                except ValueError as e:
                    errors.append(
                        f"Custom validator {hook_name} failed: {e}. Using default {getattr(config, f.name)!r}."
                    )
                    continue

            if "choices" in meta and value not in meta["choices"]:
                errors.append(
                    f"{env_name}={raw!r} not in {meta['choices']}. Using default {getattr(config, f.name)!r}."
                )
                continue

            values[f.name] = value

        for err in errors:
            logging.error(err)
        if errors:
            logging.warning("Config loaded with %d issues.", len(errors))

        return replace(config, **values)

    # ---------------------------------------------------------------------
    # type conversion helpers - extendable via _CONVERTERS
    # ---------------------------------------------------------------------

    def _convert_type(self, raw: str, to_type: object) -> Any:
        """Convert *raw* string from env to ``to_type`` recursively."""
        if get_origin(to_type) is Union:
            subtypes = [arg for arg in get_args(to_type) if arg is not type(None)]
            if len(subtypes) == 1:
                return self._convert_type(raw, subtypes[0])

        if isinstance(to_type, type) and to_type in _CONVERTERS:
            return _CONVERTERS[to_type](raw)

        raise TypeError(f"Don't know how to cast {raw!r} to {to_type}")


def load_config(use_dotenv: bool = True, **overrides: Any) -> Config:
    """Environment settings with explicit overrides (for example from the command line) on top.

    Overrides that are None are ignored so unset command line options keep
    the environment value.
    """
    config = Config.from_env(use_dotenv=use_dotenv)
    given = {name: value for name, value in overrides.items() if value is not None}
    unknown = set(given) - {f.name for f in fields(Config)}
    if unknown:
        raise TypeError(f"Unknown config fields: {sorted(unknown)}")
    return replace(config, **given)
