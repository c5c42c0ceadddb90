from __future__ import annotations

import json
from pathlib import Path

import pytest

from scriptbatch.config.loader import load_project
from scriptbatch.config.types import ConfigError, UnsupportedConfigFormatError


# -------------------------
# Helpers
# -------------------------


def write_text(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def write_json(path: Path, obj: object) -> Path:
    path.write_text(json.dumps(obj), encoding="utf-8")
    return path


GROUP = "groups:\n  basics:\n    directory: docs/basics\n"


# -------------------------
# Basic file/path errors
# -------------------------


def test_missing_file_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_project(tmp_path / "missing.yaml")


def test_path_is_dir_raises_config_error(tmp_path: Path) -> None:
    d = tmp_path / "dir"
    d.mkdir()
    with pytest.raises(ConfigError):
        load_project(d)


def test_unsupported_extension_raises_unsupported_format(tmp_path: Path) -> None:
    p = write_text(tmp_path / "config.txt", GROUP)
    with pytest.raises(UnsupportedConfigFormatError):
        load_project(p)


# -------------------------
# Parse errors are wrapped
# -------------------------


@pytest.mark.parametrize(
    "ext, content",
    [
        (".yaml", "groups: [\n"),
        (".toml", "groups = {"),
        (".json", '{"groups": '),
    ],
)
def test_invalid_syntax_is_wrapped_as_config_error(
    tmp_path: Path, ext: str, content: str
) -> None:
    p = write_text(tmp_path / f"config{ext}", content)
    with pytest.raises(ConfigError):
        load_project(p)


# -------------------------
# Top-level shape validation
# -------------------------


@pytest.mark.parametrize(
    "ext, content",
    [
        (".yaml", "[]\n"),
        (".yaml", "null\n"),
        (".json", "[]"),
        (".json", "null"),
    ],
)
def test_top_level_not_mapping_raises(tmp_path: Path, ext: str, content: str) -> None:
    p = write_text(tmp_path / f"config{ext}", content)
    with pytest.raises(ConfigError):
        load_project(p)


def test_missing_groups_key_raises(tmp_path: Path) -> None:
    p = write_text(tmp_path / "config.yaml", "timeout: 10\n")
    with pytest.raises(ConfigError):
        load_project(p)


def test_unknown_top_level_field_raises(tmp_path: Path) -> None:
    p = write_text(tmp_path / "config.yaml", GROUP + "retries: 3\n")
    with pytest.raises(ConfigError):
        load_project(p)


@pytest.mark.parametrize(
    "ext, content",
    [
        (".yaml", "groups: []\n"),
        (".yaml", "groups: null\n"),
        (".yaml", "groups: {}\n"),
        (".json", '{"groups": []}'),
        (".toml", 'groups = "nope"\n'),
        (".toml", "[groups]\n"),
    ],
)
def test_groups_not_a_non_empty_mapping_raises(
    tmp_path: Path, ext: str, content: str
) -> None:
    p = write_text(tmp_path / f"config{ext}", content)
    with pytest.raises(ConfigError):
        load_project(p)


# -------------------------
# Group validation
# -------------------------


def test_group_name_not_string_yaml_raises(tmp_path: Path) -> None:
    p = write_text(tmp_path / "config.yaml", "groups:\n  1:\n    directory: docs\n")
    with pytest.raises(ConfigError):
        load_project(p)


def test_duplicate_group_after_normalization_raises(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "groups:\n"
        "  basics:\n"
        "    directory: a\n"
        '  " basics ":\n'
        "    directory: b\n",
    )
    with pytest.raises(ConfigError):
        load_project(p)


@pytest.mark.parametrize(
    "body",
    [
        "    extension: .py\n",
        "    directory: 1\n",
        '    directory: "   "\n',
        "    directory: docs\n    nope: 1\n",
        "    directory: docs\n    timeout: 0\n",
        "    directory: docs\n    timeout: -5\n",
        "    directory: docs\n    timeout: soon\n",
        "    directory: docs\n    timeout: true\n",
        "    directory: docs\n    env: []\n",
        "    directory: docs\n    env:\n      KEY: 1\n",
        '    directory: docs\n    env:\n      "  ": x\n',
    ],
)
def test_invalid_group_fields_raise(tmp_path: Path, body: str) -> None:
    p = write_text(tmp_path / "config.yaml", "groups:\n  basics:\n" + body)
    with pytest.raises(ConfigError):
        load_project(p)


def test_group_defaults(tmp_path: Path) -> None:
    proj = load_project(write_text(tmp_path / "config.yaml", GROUP))
    group = proj.get_group("basics")

    assert group.directory == Path("docs/basics")
    assert group.extension == ".py"
    assert group.timeout is None
    assert group.env == {}
    assert proj.timeout == 300.0
    assert proj.results_dir == Path("test-results")
    assert proj.interpreter is None
    assert proj.patches == []


def test_extension_gets_a_leading_dot(tmp_path: Path) -> None:
    p = write_text(tmp_path / "config.yaml", GROUP + "    extension: sh\n")
    assert load_project(p).get_group("basics").extension == ".sh"


def test_group_timeout_overrides_project_timeout(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "timeout: 60\n"
        "groups:\n"
        "  fast:\n"
        "    directory: a\n"
        "  slow:\n"
        "    directory: b\n"
        "    timeout: 600\n",
    )
    proj = load_project(p)

    assert proj.timeout_for("fast") == 60.0
    assert proj.timeout_for("slow") == 600.0
    assert proj.group_names() == ["fast", "slow"]
    with pytest.raises(KeyError):
        proj.timeout_for("missing")


# -------------------------
# Patch validation
# -------------------------


@pytest.mark.parametrize(
    "patches",
    [
        {"target": "a.py"},
        [{"replace": [["a", "b"]]}],
        [{"target": "a.py"}],
        [{"target": "a.py", "replace": []}],
        [{"target": "a.py", "replace": [["only-one"]]}],
        [{"target": "a.py", "replace": [["a", 1]]}],
        [{"target": "a.py", "replace": [["", "b"]]}],
        [{"target": "a.py", "replace": [["a", "b"]], "when": "always"}],
        ["a.py"],
    ],
)
def test_invalid_patches_raise(tmp_path: Path, patches: object) -> None:
    obj = {"groups": {"basics": {"directory": "docs"}}, "patches": patches}
    p = write_json(tmp_path / "config.json", obj)
    with pytest.raises(ConfigError):
        load_project(p)


def test_patches_keep_order(tmp_path: Path) -> None:
    obj = {
        "groups": {"basics": {"directory": "docs"}},
        "patches": [
            {"target": "docs/a.py", "replace": [["x = 1", "x = 2"], ["y", "z"]]},
            {"target": "docs/**/*.py", "replace": [["human", "rgb_array"]]},
        ],
    }
    proj = load_project(write_json(tmp_path / "config.json", obj))

    assert [p.target for p in proj.patches] == ["docs/a.py", "docs/**/*.py"]
    assert proj.patches[0].replacements == [("x = 1", "x = 2"), ("y", "z")]
    assert not proj.patches[0].is_glob()
    assert proj.patches[1].is_glob()


# -------------------------
# Happy paths (all formats)
# -------------------------


def test_valid_yaml_loads(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.yaml",
        "timeout: 120\n"
        "results_dir: out\n"
        "interpreter: python3\n"
        "groups:\n"
        "  basics:\n"
        "    directory: docs/basics\n"
        "    env:\n"
        '      " MPLBACKEND ": Agg\n',
    )
    proj = load_project(p)

    assert proj.timeout == 120.0
    assert proj.results_dir == Path("out")
    assert proj.interpreter == "python3"
    assert proj.get_group("basics").env == {"MPLBACKEND": "Agg"}


def test_valid_json_loads(tmp_path: Path) -> None:
    obj = {
        "timeout": 1.5,
        "groups": {
            "a": {"directory": "docs/a"},
            "b": {"directory": "docs/b", "extension": ".sh"},
        },
    }
    proj = load_project(write_json(tmp_path / "config.json", obj))

    assert set(proj.groups.keys()) == {"a", "b"}
    assert proj.timeout == 1.5
    assert proj.get_group("b").extension == ".sh"


def test_valid_toml_loads(tmp_path: Path) -> None:
    p = write_text(
        tmp_path / "config.toml",
        "timeout = 30\n"
        "\n"
        "[groups.basics]\n"
        'directory = "docs/basics"\n'
        "\n"
        "[[patches]]\n"
        'target = "docs/basics/a.py"\n'
        'replace = [["n_runs=20", "n_runs=3"]]\n',
    )
    proj = load_project(p)

    assert proj.group_names() == ["basics"]
    assert proj.timeout == 30.0
    assert proj.patches[0].replacements == [("n_runs=20", "n_runs=3")]


def test_top_level_error_message(tmp_path: Path) -> None:
    p = write_text(tmp_path / "config.json", "[]")
    with pytest.raises(ConfigError, match="JSON parsed successfully"):
        load_project(p)
