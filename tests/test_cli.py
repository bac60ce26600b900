"""Tests for the command line tool."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

import foodcheck_cli


class TestCli:
    """Tests for foodcheck_cli."""

    def test_recipes_mock_json(self, capsys):
        """Test recipe suggestions from the offline model as JSON."""
        code = foodcheck_cli.main(["--mock", "recipes", "-p", "rice", "-e", "okra", "--json"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["fallback"] is False
        assert output["recipes"][0]["ingredients"] == "okra"

    def test_audit_missing_image(self, tmp_path, capsys):
        """Test a missing image path fails cleanly."""
        code = foodcheck_cli.main(["--mock", "audit", str(tmp_path / "missing.jpg")])

        assert code == 1
        assert "image not found" in capsys.readouterr().err

    def test_audit_mock_image(self, tmp_path, capsys):
        """Test auditing a local file with offline models and no databases."""
        image = tmp_path / "dish.jpg"
        image.write_bytes(b"\xff\xd8\xff")

        with patch.object(foodcheck_cli.FoodDatabaseClient, "search_recipe", return_value=None), \
                patch.object(foodcheck_cli.FoodDatabaseClient, "lookup_flavor", return_value=None):
            code = foodcheck_cli.main(["--mock", "audit", str(image), "--json"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "success"
        assert output["data"]["ingredients"] == ["Unknown"]

    def test_list_models_needs_live_provider(self, capsys):
        """Test model listing is refused with offline models."""
        code = foodcheck_cli.main(["--mock", "list-models"])

        assert code == 1
