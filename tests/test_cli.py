#!/usr/bin/env python3
"""
Tests for the command-line interface.

Tests cover:
- generate: summary output, SVG export, settings files, views
- beams: classification listing
- init-config: writing and refusing to overwrite settings
- Error reporting and exit codes
"""

import textwrap

import pytest
from click.testing import CliRunner

from skeldim.cli import cli
from skeldim.config import DimensionSettings

FRAME_SCENE = textwrap.dedent("""\
    view: front
    definitions:
      post:
        box: [0.5, 45, 2400]
      beam:
        box: [2000, 45, 0.5]
      bolt:
        box: [8, 8, 8]
      frame:
        entities:
          - definition: post
            name: left post
          - definition: post
            name: right post
            position: [1999.5, 0, 0]
          - definition: beam
            name: top beam
            position: [0, 0, 2399.5]
          - definition: bolt
            name: bolt
            position: [1000, 0, 1200]
    model:
      - definition: frame
        name: Wall A
    selection: [Wall A]
""")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def frame_scene(tmp_path):
    path = tmp_path / "frame.yaml"
    path.write_text(FRAME_SCENE)
    return path


class TestGenerate:
    """Test the generate command."""

    def test_summary(self, runner, frame_scene):
        result = runner.invoke(cli, ["generate", str(frame_scene)])
        assert result.exit_code == 0, result.output
        assert "Created 6 dimension(s): 1 cumulative, 3 beam length, 2 diagonal" in result.output
        assert "frame_diagonal" in result.output

    def test_svg(self, runner, frame_scene, tmp_path):
        svg = tmp_path / "frame.svg"
        result = runner.invoke(cli, ["generate", str(frame_scene), "--svg", str(svg)])
        assert result.exit_code == 0, result.output
        assert f"Drawing saved to: {svg}" in result.output

        content = svg.read_text()
        assert content.startswith("<?xml")
        assert content.count('<g class="dimension') == 6
        assert content.count('class="beam"') == 3
        assert "frame - camera view" in content

    def test_config_cap(self, runner, frame_scene, tmp_path):
        config = tmp_path / "settings.yaml"
        DimensionSettings(max_dimensions=2).to_yaml(config)
        result = runner.invoke(cli, ["generate", str(frame_scene), "-c", str(config)])
        assert result.exit_code == 0, result.output
        assert "Created 2 dimension(s)" in result.output
        assert "Dimension cap of 2 reached" in result.output

    def test_view_override(self, runner, frame_scene):
        """From the right both posts share one far edge, 45mm from the origin."""
        result = runner.invoke(cli, ["generate", str(frame_scene), "--view", "right"])
        assert result.exit_code == 0, result.output
        cumulative = [line for line in result.output.splitlines() if line.startswith("cumulative")]
        assert len(cumulative) == 1
        assert cumulative[0].split()[2] == "45.0"

    def test_debug(self, runner, frame_scene):
        result = runner.invoke(cli, ["generate", str(frame_scene), "--debug"])
        assert result.exit_code == 0, result.output
        assert "[SkeletonDimensions] beams found: 4" in result.output

    def test_bad_config(self, runner, frame_scene, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text("outer_paddin: 10\n")
        result = runner.invoke(cli, ["generate", str(frame_scene), "-c", str(config)])
        assert result.exit_code == 1
        assert "Error: Unknown settings" in result.output

    def test_nothing_selected(self, runner, tmp_path):
        scene = tmp_path / "empty.yaml"
        scene.write_text(FRAME_SCENE.replace("selection: [Wall A]\n", ""))
        result = runner.invoke(cli, ["generate", str(scene)])
        assert result.exit_code == 1
        assert "Nothing selected" in result.output

    def test_bad_scene(self, runner, tmp_path):
        scene = tmp_path / "bad.yaml"
        scene.write_text("view: sideways\n")
        result = runner.invoke(cli, ["generate", str(scene)])
        assert result.exit_code == 1
        assert "unknown view" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["generate", str(tmp_path / "nope.yaml")])
        assert result.exit_code != 0


class TestBeams:
    def test_listing(self, runner, frame_scene):
        result = runner.invoke(cli, ["beams", str(frame_scene)])
        assert result.exit_code == 0, result.output
        assert "Beams of: Wall A" in result.output
        assert "3 structural of 4 beam(s)" in result.output

        rows = {line[:24].strip(): line[24:].split() for line in result.output.splitlines()}
        assert rows["left post"][0] == "vertical"
        assert rows["top beam"][0] == "horizontal"
        assert rows["bolt"][0] == "-"


class TestInitConfig:
    def test_writes_defaults(self, runner, tmp_path):
        output = tmp_path / "settings.yaml"
        result = runner.invoke(cli, ["init-config", str(output)])
        assert result.exit_code == 0, result.output
        assert DimensionSettings.from_yaml(output) == DimensionSettings()

    def test_refuses_overwrite(self, runner, tmp_path):
        output = tmp_path / "settings.yaml"
        output.write_text("debug: true\n")
        result = runner.invoke(cli, ["init-config", str(output)])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert output.read_text() == "debug: true\n"

    def test_force(self, runner, tmp_path):
        output = tmp_path / "settings.yaml"
        output.write_text("debug: true\n")
        result = runner.invoke(cli, ["init-config", str(output), "--force"])
        assert result.exit_code == 0
        assert DimensionSettings.from_yaml(output).debug is False


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output
