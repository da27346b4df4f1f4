from __future__ import annotations

from unittest.mock import patch

from src.models.check_result import CheckResult
from src.services.progress import StageProgress, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestStageProgress:

    def test_init_with_tty_enabled(self):
        with patch('src.services.progress.is_tty_enabled', return_value=True), \
             patch('src.services.progress.tqdm') as mock_tqdm:

            progress = StageProgress(31, description="Validating")

            assert progress.enabled is True
            mock_tqdm.assert_called_once_with(
                total=31,
                desc="Validating",
                unit="check",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('src.services.progress.is_tty_enabled', return_value=False):
            progress = StageProgress(5)
            assert progress.enabled is False
            assert progress.pbar is None

    def test_callback_advances_bar(self):
        with patch('src.services.progress.is_tty_enabled', return_value=True), \
             patch('src.services.progress.tqdm') as mock_tqdm:
            pbar = mock_tqdm.return_value
            progress = StageProgress(2)

            progress(CheckResult("duplicate_ids", "Duplicate IDs", "d"))

            assert progress.completed == 1
            pbar.set_description.assert_called_with("Validating (duplicate_ids)")
            pbar.set_postfix.assert_called_with(status="passed")
            pbar.update.assert_called_once_with(1)

    def test_context_manager_closes_bar(self):
        with patch('src.services.progress.is_tty_enabled', return_value=True), \
             patch('src.services.progress.tqdm') as mock_tqdm:
            pbar = mock_tqdm.return_value
            with StageProgress(1) as progress:
                progress.advance("cross_entity")
            pbar.close.assert_called_once()
            assert progress.pbar is None

    def test_disabled_progress_still_counts(self):
        with patch('src.services.progress.is_tty_enabled', return_value=False):
            with StageProgress(3) as progress:
                progress.advance("a")
                progress.advance("b")
            assert progress.completed == 2
