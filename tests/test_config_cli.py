# tests/test_config_cli.py
"""
Profiles, workspace seeding and the command-line front end.

Run: pytest -v
"""

from __future__ import annotations

import pytest

from fibengine import cli, config
from fibengine.runtime import APPLY, CFG, current
from fibengine.utility import UserInputError, parse_index
from fibengine.workspace import ensure_workspace_seeded, workspace_dir

# ---------- helpers -----------------------------------------------------------


@pytest.fixture
def run_cli(monkeypatch, capsys):
    """Run cli.main without letting colorama rewrap the captured streams."""
    monkeypatch.setattr(cli, "colorama_init", lambda **kw: None)
    monkeypatch.setattr(cli, "clear_screen", lambda *a, **kw: None)
    cli.clear_history()

    def _run(*argv):
        code = cli.main(list(argv))
        out, err = capsys.readouterr()
        return code, out, err
    return _run


# ---------- workspace / profiles -----------------------------------------------------


def test_workspace_seeding_copies_packaged_profiles():
    root, seeded, copied = ensure_workspace_seeded()
    assert root == workspace_dir()
    assert seeded and copied >= 2
    assert (root / "profiles" / "default.toml").exists()
    # second run copies nothing new
    assert ensure_workspace_seeded()[2] == 0


def test_load_default_profile():
    ensure_workspace_seeded()
    s = config.load_settings("default")
    assert s.name == "default"
    assert "_PROFILE_" not in s.as_dict()
    assert s.as_dict()["ENGINE"]["MAX_INDEX"] == 150
    assert "default" in config.list_all_profiles()


def test_missing_profile():
    ensure_workspace_seeded()
    with pytest.raises(FileNotFoundError):
        config.load_settings("nope")


def test_broken_toml_is_user_error():
    root, _, _ = ensure_workspace_seeded()
    (root / "profiles" / "broken.toml").write_text("[ENGINE\nMAX_INDEX = 1\n", encoding="utf-8")
    with pytest.raises(UserInputError):
        config.load_settings("broken")
    names = dict(config.list_profiles_with_descriptions())
    assert names["broken"] == "(unreadable profile)"


@pytest.mark.parametrize("body", [
    "[ENGINE]\nMAX_INDEX = -3\n",
    "[ENGINE]\nCAPACITY = \"lots\"\n",
    "[ENGINE]\nCAPACITY = 0\n",
])
def test_invalid_engine_section(body):
    root, _, _ = ensure_workspace_seeded()
    (root / "profiles" / "bad.toml").write_text(body, encoding="utf-8")
    with pytest.raises(UserInputError):
        config.load_settings("bad")


def test_current_profile_roundtrip():
    ensure_workspace_seeded()
    assert config.read_current_profile() is None
    config.write_current_profile("large.toml")
    assert config.read_current_profile() == "large"


def test_cfg_dotted_lookup_over_profile_sections():
    ensure_workspace_seeded()
    APPLY(config.load_settings("large"))
    assert current().profile_name == "large"
    assert CFG("ENGINE.CAPACITY") == "growable"
    assert CFG("DEVICE.READ_BUFFER") == 1100
    assert CFG("BENCH.REPEAT") == 3
    assert CFG("BENCH.NO_SUCH_KEY", 7) == 7
    assert CFG("NO_SECTION.MAX_INDEX", "x") == "x"
    assert CFG("ENGINE.MAX_INDEX.DEEPER", None) is None


def test_profile_debug_flag_does_not_switch_debug_off():
    current().debug = True
    APPLY({"BEHAVIOUR": {"DEBUG": False}})
    assert current().debug is True
    APPLY({"BEHAVIOUR": {"DEBUG": True}})
    assert current().profile_name == "custom"


@pytest.mark.parametrize("text,expected", [("92", 92), ("1_000", 1000), ("1,000", 1000), ("abc", None), ("", None)])
def test_parse_index(text, expected):
    assert parse_index(text) == expected


def test_parse_negative_index():
    with pytest.raises(UserInputError):
        parse_index("-4")


# ---------- CLI ---------------------------------------------------------------------


def test_cli_one_shot(run_cli):
    code, out, _ = run_cli("92", "--no-details")
    assert code == 0
    assert "7540113804746346429" in out


def test_cli_all_algorithms(run_cli):
    code, out, _ = run_cli("50", "--all")
    assert code == 0
    assert "12586269025" in out
    for slug in ("linear-dp", "fast-doubling", "fast-doubling-clz"):
        assert slug in out
    assert "MISMATCH" not in out


def test_cli_profile_then_index(run_cli):
    code, out, _ = run_cli("large", "1000", "--algo", "clz", "--no-details")
    assert code == 0
    assert CFG("ENGINE.MAX_INDEX") == 5000
    assert current().profile_name == "large"
    assert "43466557686937456435688527675040625802564660517371780402481729089536555417949051" in out


def test_cli_out_of_range_exit_code(run_cli):
    code, _, err = run_cli("151")
    assert code == 2
    assert "out of range" in err


def test_cli_unknown_algorithm(run_cli):
    code, _, err = run_cli("5", "--algo", "bogus")
    assert code == 2
    assert "Unknown algorithm" in err


def test_cli_unknown_profile(run_cli):
    code, out, _ = run_cli("nosuch", "5")
    assert code == 2
    assert "Unknown profile" in out


def test_cli_list(run_cli):
    code, out, _ = run_cli("list")
    assert code == 0
    assert "fast-doubling-clz" in out


def test_cli_bench_csv(run_cli):
    code, out, _ = run_cli("bench", "--max", "10", "--repeat", "1", "--csv", "results/bench.csv")
    assert code == 0
    path = workspace_dir() / "results" / "bench.csv"
    assert path.exists()
    assert len(path.read_text(encoding="utf-8").splitlines()) == 1 + 11 * 3


def test_cli_verify(run_cli):
    code, out, _ = run_cli("verify", "--max", "60", "--reference", "sympy")
    assert code == 0
    assert "OK" in out


def test_cli_output_file(run_cli):
    code, _, _ = run_cli("10", "--output", "results/", "--quiet")
    assert code == 0
    text = (workspace_dir() / "results" / "F10.txt").read_text(encoding="utf-8")
    assert "55" in text
    assert "\x1b[" not in text


def test_cli_forbidden_output(run_cli):
    code, _, err = run_cli("10", "--output", "notes.md")
    assert code == 1
    assert "Forbidden" in err


def test_cli_repl(run_cli, monkeypatch):
    answers = iter(["algo dp", "10", "hist", "debug status", "nonsense", "q"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    code, out, err = run_cli()
    assert code == 0
    assert "Algorithm set to linear-dp." in out
    assert "55" in out
    assert "k=10" in out
    assert "Debug is currently OFF." in out
    assert "Invalid input" in out
    assert [h.k for h in cli.get_history()] == [10]
