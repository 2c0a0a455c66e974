"""
Tests for the command-line interface.
"""

import pytest

from ..cli import main, run_simulation


class TestSimulate:
    def test_prints_standings(self, capsys):
        main(["simulate", "--players", "4", "--seed", "9", "--quiet"])
        out = capsys.readouterr().out

        assert "Final standings:" in out
        assert "president" in out
        assert "scum" in out

    def test_seed_is_reproducible(self):
        first = run_simulation(4, seed=21)
        second = run_simulation(4, seed=21)
        assert first.last_finish_order == second.last_finish_order

    def test_too_few_players(self):
        with pytest.raises(ValueError):
            run_simulation(2)

    def test_cli_rejects_bad_player_count(self):
        with pytest.raises(SystemExit):
            main(["simulate", "--players", "13"])

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])
