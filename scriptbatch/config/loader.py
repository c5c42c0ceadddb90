import json
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import (
    ConfigError,
    GroupConfig,
    PatchConfig,
    ProjectConfig,
    UnsupportedConfigFormatError,
)


def load_project(path: str | Path) -> ProjectConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    project = _build_project_config(raw_file)
    return project


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    match fmt:
        case "yaml":
            return _parse_yaml(path)
        case "toml":
            return _parse_toml(path)
        case "json":
            return _parse_json(path)
        case _:
            raise AssertionError("Unreachable")


def _parse_yaml(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML") from exc

    return _ensure_mapping(path, "YAML", raw_file)


def _parse_toml(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: invalid TOML") from exc

    return _ensure_mapping(path, "TOML", raw_file)


def _parse_json(path: Path) -> Mapping[str, Any]:
    try:
        raw_file = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON") from exc

    return _ensure_mapping(path, "JSON", raw_file)


def _ensure_mapping(path: Path, fmt: str, raw_file: Any) -> Mapping[str, Any]:
    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: {fmt} parsed successfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _build_project_config(raw: Mapping[str, Any]) -> ProjectConfig:
    keys = {"groups", "timeout", "results_dir", "interpreter", "patches"}
    groups = {}

    for field in raw.keys():
        if field not in keys:
            raise ConfigError(f"Can't process top-level field: {field}")

    if not "groups" in raw:
        raise ConfigError("Missing 'groups' field")

    if not isinstance(raw["groups"], Mapping):
        raise ConfigError(f"'groups' must be a mapping, got {type(raw['groups'])}")

    if len(raw["groups"]) < 1:
        raise ConfigError("There must be at least one group in the config file")

    for name, fields in raw["groups"].items():
        if not isinstance(name, str):
            raise ConfigError(f"Group name must be a string, got {type(name)}")

        if not isinstance(fields, Mapping):
            raise ConfigError(f"{name} must be a mapping")

        name_norm = name.strip()

        if len(name_norm) < 1:
            raise ConfigError("A group name can't be empty")

        if name_norm in groups:
            raise ConfigError(f"Duplicate group name after normalization: {name_norm}")

        groups[name_norm] = _build_group_config(name_norm, fields)

    project = ProjectConfig(groups=groups)

    if "timeout" in raw:
        project.timeout = _parse_timeout("timeout", raw["timeout"])

    if "results_dir" in raw:
        project.results_dir = Path(_parse_string("results_dir", raw["results_dir"]))

    if "interpreter" in raw:
        project.interpreter = _parse_string("interpreter", raw["interpreter"])

    if "patches" in raw:
        project.patches = _build_patches(raw["patches"])

    return project


def _build_group_config(name: str, fields: Mapping[str, Any]) -> GroupConfig:
    keys = {"directory", "extension", "timeout", "env"}
    extension = ".py"
    timeout = None
    env = {}

    for field in fields.keys():
        if field not in keys:
            raise ConfigError(f"{name}: Can't process: {field}")

    if not "directory" in fields:
        raise ConfigError(f"{name}: missing 'directory'")

    directory = Path(_parse_string(f"{name}: directory", fields["directory"]))

    if "extension" in fields:
        extension = _parse_string(f"{name}: extension", fields["extension"])
        # "py" and ".py" are the same thing
        if not extension.startswith("."):
            extension = "." + extension

    if "timeout" in fields:
        timeout = _parse_timeout(f"{name}: timeout", fields["timeout"])

    if "env" in fields:
        if not isinstance(fields["env"], Mapping):
            raise ConfigError(f"{name}: Env should be a mapping")

        for key, item in fields["env"].items():
            if not isinstance(key, str):
                raise ConfigError(f"{name}: {key} should be a string")

            if len(key.strip()) < 1:
                raise ConfigError(f"{name}: A key can't be empty")

            if not isinstance(item, str):
                raise ConfigError(f"{name}: {item} should be a string")

            env[key.strip()] = item

    return GroupConfig(name, directory, extension, timeout, env)


def _build_patches(raw: Any) -> list[PatchConfig]:
    patches = []

    if not isinstance(raw, list):
        raise ConfigError(f"'patches' must be a list, got {type(raw)}")

    for index, item in enumerate(raw):
        where = f"patches[{index}]"

        if not isinstance(item, Mapping):
            raise ConfigError(f"{where} must be a mapping")

        for field in item.keys():
            if field not in {"target", "replace"}:
                raise ConfigError(f"{where}: Can't process: {field}")

        if not "target" in item:
            raise ConfigError(f"{where}: missing 'target'")

        if not "replace" in item:
            raise ConfigError(f"{where}: missing 'replace'")

        target = _parse_string(f"{where}: target", item["target"])

        if not isinstance(item["replace"], list) or len(item["replace"]) < 1:
            raise ConfigError(f"{where}: 'replace' should be a non-empty list")

        replacements = []
        for pair in item["replace"]:
            if not isinstance(pair, list) or len(pair) != 2:
                raise ConfigError(f"{where}: each replacement is an [old, new] pair")

            old, new = pair
            if not isinstance(old, str) or not isinstance(new, str):
                raise ConfigError(f"{where}: replacement values should be strings")

            # Replacing "" would insert `new` between every character
            if len(old) < 1:
                raise ConfigError(f"{where}: the text to replace can't be empty")

            replacements.append((old, new))

        patches.append(PatchConfig(target, replacements))

    return patches


def _parse_string(where: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{where} should be a string")

    if len(value.strip()) < 1:
        raise ConfigError(f"{where}: Please provide a string or remove this field")

    return value.strip()


def _parse_timeout(where: str, value: Any) -> float:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where} should be a number of seconds")

    if value <= 0:
        raise ConfigError(f"{where} must be positive, got {value}")

    return float(value)
