"""Unit tests for the automatic vacuum trigger."""

from unittest.mock import Mock, patch

import pytest

from mongocache.vacuum import AutomaticVacuum


class TestAutomaticVacuum:
    """Test probabilistic compaction."""

    def test_factor_zero_never_runs(self):
        """Test that factor 0 disables compaction."""
        compact = Mock()
        vacuum = AutomaticVacuum(0, compact)

        for _ in range(50):
            assert vacuum.maybe_run() is False

        compact.assert_not_called()
        assert vacuum.enabled is False

    def test_factor_one_always_runs(self):
        """Test that factor 1 compacts on every call."""
        compact = Mock()
        vacuum = AutomaticVacuum(1, compact)

        for _ in range(10):
            assert vacuum.maybe_run() is True

        assert compact.call_count == 10

    def test_factor_n_runs_on_winning_draw(self):
        """Test that compaction runs only when the draw is 1."""
        compact = Mock()
        vacuum = AutomaticVacuum(5, compact)

        with patch("mongocache.vacuum.random.randint", return_value=1) as randint:
            assert vacuum.maybe_run() is True
            randint.assert_called_once_with(1, 5)

        with patch("mongocache.vacuum.random.randint", return_value=3):
            assert vacuum.maybe_run() is False

        assert compact.call_count == 1

    def test_compaction_failure_is_swallowed(self, caplog):
        """Test that compaction errors are logged, not raised."""
        compact = Mock(side_effect=RuntimeError("repair failed"))
        vacuum = AutomaticVacuum(1, compact)

        assert vacuum.maybe_run() is True
        assert "repair failed" in caplog.text

    def test_negative_factor_rejected(self):
        with pytest.raises(ValueError):
            AutomaticVacuum(-1, Mock())
