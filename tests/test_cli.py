from pathlib import Path

import yaml
from typer.testing import CliRunner

from deferred_analytics import __version__
from deferred_analytics.__main__ import _parse_properties, app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "DeferredAnalytics" in result.stdout


def test_checkhealth():
    result = runner.invoke(app, ["checkhealth"])
    assert result.exit_code == 0
    assert "stdout" in result.stdout
    assert "noop" in result.stdout


def test_emit_event():
    result = runner.invoke(
        app, ["emit", "event", "click", "-p", "value=6", "--backend", "noop"]
    )
    assert result.exit_code == 0, result.output
    assert "Sent." in result.stdout


def test_emit_pageview_deferred():
    result = runner.invoke(
        app,
        [
            "emit",
            "pageview",
            "/catalog",
            "--backend",
            "noop",
            "--user",
            "user:default/jane",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Holding 1 hit(s)" in result.stdout
    assert "Identified user as" in result.stdout


def test_emit_with_config(tmp_path: Path):
    path = tmp_path / "app-config.yaml"
    path.write_text(yaml.safe_dump({"app": {"analytics": {"backend": "noop"}}}))
    result = runner.invoke(
        app, ["emit", "event", "click", "--config", str(path)]
    )
    assert result.exit_code == 0, result.output


def test_emit_config_without_analytics(tmp_path: Path):
    path = tmp_path / "app-config.yaml"
    path.write_text(yaml.safe_dump({"app": {"title": "Host"}}))
    result = runner.invoke(
        app, ["emit", "event", "click", "--config", str(path)]
    )
    assert result.exit_code != 0


def test_emit_unknown_backend():
    result = runner.invoke(
        app, ["emit", "event", "click", "--backend", "carrier-pigeon"]
    )
    assert result.exit_code != 0


def test_emit_invalid_property():
    result = runner.invoke(
        app, ["emit", "event", "click", "-p", "novalue", "--backend", "noop"]
    )
    assert result.exit_code != 0


def test_parse_properties():
    assert _parse_properties(
        ["value=6", "label=subject", "flags=[1, 2]", "eq=a=b"]
    ) == {"value": 6, "label": "subject", "flags": [1, 2], "eq": "a=b"}
    assert _parse_properties(None) == {}


def test_package_version():
    assert __version__.count(".") == 2
