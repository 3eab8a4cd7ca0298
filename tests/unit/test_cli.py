"""Tests de la CLI con typer.testing.CliRunner y el provider mock."""

import json
import os

import pytest
from typer.testing import CliRunner

from orbita import __version__
from orbita.cli.app import app

runner = CliRunner()

SMALL_STACK = """\
name: demo
resources:
  N1:
    kind: Network
    attributes: {cidr_block: 10.0.0.0/16}
  SG:
    kind: SecurityGroup
    attributes:
      network: ${N1}
      description: web
outputs:
  vpc: ${N1}
"""


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.startswith("ORBITA_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("ORBITA_PROJECT_ROOT", str(tmp_path))
    monkeypatch.setenv("ORBITA_STATE_ROOT", str(tmp_path / "state"))


@pytest.fixture
def stack_file(tmp_path):
    path = tmp_path / "demo.yaml"
    path.write_text(SMALL_STACK)
    return path


class TestCli:
    """Comandos principales."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_validate(self, stack_file):
        """validate muestra el grafo sin tocar el provider."""
        result = runner.invoke(app, ["validate", str(stack_file)])

        assert result.exit_code == 0
        assert "Descripción válida" in result.output

    def test_validate_cycle_exits_2(self, tmp_path):
        """Un ciclo es un error de descripción: código 2."""
        path = tmp_path / "ciclo.yaml"
        path.write_text(
            "A: {kind: Network, depends_on: [B]}\n"
            "B: {kind: Network, depends_on: [A]}\n"
        )

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 2
        assert "CycleDetected" in result.output

    def test_missing_description_exits_2(self, tmp_path):
        result = runner.invoke(app, ["plan", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 2

    def test_plan_does_not_write_state(self, stack_file, tmp_path):
        """plan calcula el changeset pero no aplica nada."""
        result = runner.invoke(app, ["plan", str(stack_file)])

        assert result.exit_code == 0
        assert "Create" in result.output
        assert not (tmp_path / "state" / "demo.state.json").exists()

    def test_apply_then_plan_is_clean(self, stack_file, tmp_path):
        """apply --yes converge; el plan siguiente no tiene cambios."""
        result = runner.invoke(app, ["apply", str(stack_file), "--yes"])

        assert result.exit_code == 0, result.output
        state = json.loads((tmp_path / "state" / "demo.state.json").read_text())
        assert set(state["resources"]) == {"N1", "SG"}

        again = runner.invoke(app, ["plan", str(stack_file)])

        assert again.exit_code == 0
        assert "Sin cambios" in again.output

    def test_apply_declined(self, stack_file, tmp_path):
        """Sin --yes se pide confirmación; responder no cancela."""
        result = runner.invoke(app, ["apply", str(stack_file)], input="n\n")

        assert result.exit_code == 1
        assert not (tmp_path / "state" / "demo.state.json").exists()

    def test_state_show_and_destroy(self, stack_file, tmp_path):
        """state show lista lo aplicado; destroy lo borra."""
        runner.invoke(app, ["apply", str(stack_file), "--yes"])

        shown = runner.invoke(app, ["state", "show", "--stack", "demo"])
        assert shown.exit_code == 0
        assert "N1" in shown.output

        destroyed = runner.invoke(app, ["destroy", "--stack", "demo", "--yes"])
        assert destroyed.exit_code == 0, destroyed.output

        empty = runner.invoke(app, ["state", "show", "--stack", "demo"])
        assert "vacío" in empty.output

    def test_corrupt_state_exits_2(self, stack_file, tmp_path):
        """Un estado ilegible aborta con código 2."""
        state_path = tmp_path / "corrupto.json"
        state_path.write_text("{")

        result = runner.invoke(app, ["plan", str(stack_file), "--state", str(state_path)])

        assert result.exit_code == 2
        assert "StoreCorrupt" in result.output

    def test_destroy_takes_stack_name_from_description(self, stack_file, tmp_path):
        """destroy con la descripción localiza el estado de ese stack."""
        runner.invoke(app, ["apply", str(stack_file), "--yes"])

        destroyed = runner.invoke(app, ["destroy", str(stack_file), "--yes"])

        assert destroyed.exit_code == 0, destroyed.output
        state = json.loads((tmp_path / "state" / "demo.state.json").read_text())
        assert state["resources"] == {}

    def test_destroy_without_state_warns(self, stack_file):
        """Sin archivo de estado destroy avisa en vez de terminar en silencio."""
        runner.invoke(app, ["apply", str(stack_file), "--yes"])

        result = runner.invoke(app, ["destroy", "--yes"])

        assert result.exit_code == 1
        assert "No existe el estado" in result.output
