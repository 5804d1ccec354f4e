# config_manager/utils.py
import os
import re
from typing import Any, Dict

import chardet
import yaml
from loguru import logger
from pydantic import ValidationError

from .main import Config


_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def read_yaml(config_path: str) -> Dict[str, Any]:
    """
    Load a YAML config file into a dict.

    ``${NAME}`` placeholders are replaced from the environment; unknown
    names are left untouched so validation can report them.

    Raises:
        FileNotFoundError: If the configuration file is not found.
        yaml.YAMLError: If the file is not valid YAML.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    content = _ENV_VAR_RE.sub(
        lambda m: os.getenv(m.group(1), m.group(0)), read_config_text(config_path)
    )
    try:
        return yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.critical(f"Error parsing YAML file {config_path}: {e}")
        raise


def _format_validation_error(error: ValidationError) -> str:
    """
    Turn a pydantic ValidationError into one readable line per problem.

    Args:
        error: Pydantic ValidationError

    Returns:
        Formatted error message string
    """
    error_messages = []

    for err in error.errors():
        location = " -> ".join(str(loc) for loc in err["loc"])
        error_type = err["type"]
        msg = err["msg"]
        input_value = err.get("input", "N/A")

        if error_type == "missing":
            error_messages.append(
                f"  - '{location}': required field is missing. "
                f"Add it to conf.yaml."
            )
        elif error_type in ("string_type", "int_type", "float_type", "bool_type"):
            expected = error_type.split("_")[0]
            error_messages.append(
                f"  - '{location}': expected {expected}, got {input_value!r}"
            )
        elif error_type == "value_error":
            error_messages.append(f"  - '{location}': {msg}")
        elif "greater_than" in error_type or "less_than" in error_type:
            error_messages.append(f"  - '{location}': value out of range. {msg}")
        else:
            error_messages.append(f"  - '{location}': {msg} (type: {error_type})")

    return "\n".join(error_messages)


def validate_config(config_data: dict) -> Config:
    """
    Validate configuration data against the Config model.

    Args:
        config_data: Configuration dictionary to validate

    Returns:
        Validated Config object

    Raises:
        ValidationError: if validation fails. The problems are logged first.
    """
    try:
        return Config(**config_data)
    except ValidationError as e:
        formatted_errors = _format_validation_error(e)

        logger.critical(
            "\n"
            + "=" * 60 + "\n"
            + "Configuration Validation Error\n"
            + "=" * 60 + "\n"
            + f"\nProblems found:\n{formatted_errors}\n"
            + "\nFix the entries above in conf.yaml "
            + "(see conf.default.yaml for every option).\n"
            + "=" * 60
        )
        logger.debug(f"Original validation error: {e}")
        logger.debug(f"Configuration data keys: {list(config_data.keys())}")

        raise e


def load_config(config_path: str = "conf.yaml") -> Config:
    """Read and validate ``config_path``, falling back to defaults if it is absent."""
    if not os.path.exists(config_path):
        logger.warning(
            f"Configuration file {config_path} not found, using built-in defaults"
        )
        return Config()
    return validate_config(read_yaml(config_path))


def read_config_text(config_path: str) -> str:
    """Decode a config file as UTF-8 (BOM allowed), else as chardet's best guess."""
    with open(config_path, "rb") as file:
        raw = file.read()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    encoding = chardet.detect(raw)["encoding"]
    if not encoding:
        raise IOError(f"Cannot detect the encoding of {config_path}")
    logger.warning(f"{config_path} is not UTF-8, decoding it as {encoding}")
    return raw.decode(encoding)
