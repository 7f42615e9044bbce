import dataclasses

import pytest

from core.config import AppSettings
from core.mode import APPLY, SIMULATE, ExecutionMode


class TestExecutionMode:
    def test_defaults_apply(self):
        mode = ExecutionMode()
        assert not mode.is_simulating()
        assert mode.should_download_for_real()

    @pytest.mark.parametrize(
        "simulate,allow,expected",
        [
            (False, False, True),
            (False, True, True),
            (True, False, False),
            (True, True, True),
        ],
    )
    def test_download_predicate(self, simulate, allow, expected):
        mode = ExecutionMode(simulate=simulate, allow_real_download=allow)
        assert mode.should_download_for_real() is expected
        assert mode.is_simulating() is simulate

    def test_constants(self):
        assert APPLY.is_simulating() is False
        assert SIMULATE.is_simulating() is True
        assert SIMULATE.should_download_for_real() is False

    def test_from_settings(self, tmp_path):
        settings = AppSettings(_env_file=None, cache_dir=tmp_path, dry_run=True, allow_real_download=True)
        mode = ExecutionMode.from_settings(settings)
        assert mode == ExecutionMode(simulate=True, allow_real_download=True)

    def test_frozen(self):
        mode = ExecutionMode()
        with pytest.raises(dataclasses.FrozenInstanceError):
            mode.simulate = True  # type: ignore[misc]
