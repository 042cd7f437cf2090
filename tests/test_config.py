import json

import pytest

from powerprompt.config import Config, config_path
from powerprompt.themes import ShellInfo, SymbolTemplate, Theme


def test_config_path_location():
    path = config_path()
    assert path.name == "config.json"
    assert ".config" in path.parts


def test_update_sets_simple_fields():
    cfg = Config()
    cfg.update_from_dict(
        {"cwd-mode": "plain", "cwd-max-depth": 5, "modules": ["cwd", "git"], "eval": True}
    )
    assert cfg.cwd_mode == "plain"
    assert cfg.cwd_max_depth == 5
    assert cfg.modules == ["cwd", "git"]
    assert cfg.eval is True


def test_update_ignores_fields_not_stored_in_file():
    cfg = Config()
    cfg.update_from_dict({"jobs": 3, "duration": "1.5", "time": "x", "unknown": 1})
    assert cfg == Config()


def test_update_key_matching_is_case_insensitive():
    cfg = Config()
    cfg.update_from_dict({"Git-Mode": "compact"})
    assert cfg.git_mode == "compact"


def test_themes_overlay_selected_theme():
    cfg = Config(theme="default", themes={"default": Theme(ssh_fg=7)})
    cfg.update_from_dict({"themes": {"mine": {"AWSFg": 9}}})
    assert cfg.themes["mine"].ssh_fg == 7
    assert cfg.themes["mine"].aws_fg == 9
    assert cfg.themes["default"] == Theme(ssh_fg=7)


def test_modes_overlay_selected_mode_and_shells_start_empty():
    cfg = Config(mode="patched", modes={"patched": SymbolTemplate(lock="L")})
    cfg.update_from_dict(
        {"modes": {"mine": {"Separator": ">"}}, "shells": {"sh": {"RootIndicator": "$"}}}
    )
    assert cfg.modes["mine"] == SymbolTemplate(lock="L", separator=">")
    assert cfg.shells["sh"] == ShellInfo(root_indicator="$")


def test_path_aliases_merge():
    cfg = Config(path_aliases={"~/a": "A"})
    cfg.update_from_dict({"path-aliases": {"~/b": "B"}})
    assert cfg.path_aliases == {"~/a": "A", "~/b": "B"}


def test_null_list_clears_and_null_scalar_keeps():
    cfg = Config(modules=["cwd"], cwd_mode="fancy")
    cfg.update_from_dict({"modules": None, "cwd-mode": None})
    assert cfg.modules == []
    assert cfg.cwd_mode == "fancy"


def test_update_rejects_bad_types():
    with pytest.raises(ValueError):
        Config().update_from_dict({"cwd-max-depth": "five"})
    with pytest.raises(ValueError):
        Config().update_from_dict({"modules": "cwd"})
    with pytest.raises(ValueError):
        Config().update_from_dict(["not", "an", "object"])


def test_to_dict_leaves_out_runtime_fields():
    data = Config(jobs=2, prev_error=1).to_dict()
    assert "jobs" not in data
    assert "prev-error" not in data
    assert data["max-width-percentage"] == Config().max_width_percentage


def test_load_missing_file_changes_nothing(tmp_path):
    cfg = Config()
    cfg.load(tmp_path / "missing.json")
    assert cfg == Config()


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        Config().load(path)


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "config.json"
    cfg = Config(
        cwd_mode="dironly",
        modules=["cwd", "exit"],
        path_aliases={"~/work": "W"},
        numeric_exit_codes=True,
        themes={"t": Theme(cwd_fg=3)},
    )
    cfg.save(path)
    assert json.loads(path.read_text(encoding="utf-8"))["themes"] == {}
    assert cfg.themes == {"t": Theme(cwd_fg=3)}

    loaded = Config()
    loaded.load(path)
    expected = cfg.to_dict()
    expected.update(themes={}, modes={}, shells={})
    assert loaded.to_dict() == expected