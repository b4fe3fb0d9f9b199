from unittest.mock import MagicMock
from unittest.mock import patch

import pytest

from reconciler import _runner
from reconciler import _types
from reconciler.tests import _utils


@patch("time.sleep")
@patch("reconciler._types.ReconcilerConfigs.load")
@patch("reconciler._reconciler.ScaleInReconciler.handle_scale_in_lifecycle_action")
def test_main_acknowledged(
    handle_scale_in_lifecycle_action: MagicMock,
    configs_load: MagicMock,
    time_sleep: MagicMock,
):
    """Should poll until the lifecycle action has been acknowledged."""
    configs_load.return_value = _utils.make_configs()
    handle_scale_in_lifecycle_action.side_effect = [False, False, True]

    result = _runner.main({"hook_name": _utils.HOOK_NAME})
    assert result == _runner.ACKNOWLEDGED_EXIT_CODE
    assert handle_scale_in_lifecycle_action.call_count == 3
    assert time_sleep.call_count == 3


@patch("time.sleep")
@patch("reconciler._types.ReconcilerConfigs.load")
@patch("reconciler._reconciler.ScaleInReconciler.handle_scale_in_lifecycle_action")
def test_main_errors(
    handle_scale_in_lifecycle_action: MagicMock,
    configs_load: MagicMock,
    time_sleep: MagicMock,
):
    """Should stop with an error once too many recent iterations have failed."""
    configs = _utils.make_configs()
    configs.critical_error_threshold = 2
    configs_load.return_value = configs
    handle_scale_in_lifecycle_action.side_effect = [
        ValueError("FAKE"),
        False,
        ValueError("FAKE"),
        ValueError("FAKE"),
    ]

    result = _runner.main({"hook_name": _utils.HOOK_NAME})
    assert result == _runner.ERROR_EXIT_CODE
    assert handle_scale_in_lifecycle_action.call_count == 4
    assert time_sleep.called


@patch("time.sleep")
@patch("reconciler._types.ReconcilerConfigs.load")
@patch("reconciler._reconciler.ScaleInReconciler.handle_scale_in_lifecycle_action")
def test_main_refreshes_configs(
    handle_scale_in_lifecycle_action: MagicMock,
    configs_load: MagicMock,
    time_sleep: MagicMock,
):
    """Should reload stale configs before reconciling."""
    configs = _utils.make_configs()
    configs.config_refresh_interval = -1
    configs_load.return_value = configs
    handle_scale_in_lifecycle_action.side_effect = [False, True]

    assert _runner.main({}) == _runner.ACKNOWLEDGED_EXIT_CODE
    # Once at startup and once per iteration.
    assert configs_load.call_count == 3


@pytest.mark.parametrize(
    "acknowledged, expected",
    [(True, _runner.ACKNOWLEDGED_EXIT_CODE), (False, _runner.NOT_ACKNOWLEDGED_EXIT_CODE)],
)
@patch("time.sleep")
@patch("reconciler._types.ReconcilerConfigs.load")
@patch("reconciler._reconciler.ScaleInReconciler.handle_scale_in_lifecycle_action")
def test_main_once(
    handle_scale_in_lifecycle_action: MagicMock,
    configs_load: MagicMock,
    time_sleep: MagicMock,
    acknowledged: bool,
    expected: int,
):
    """Should run a single reconciliation without sleeping."""
    configs_load.return_value = _utils.make_configs()
    handle_scale_in_lifecycle_action.return_value = acknowledged

    assert _runner.main({"once": True}) == expected
    assert handle_scale_in_lifecycle_action.call_count == 1
    assert not time_sleep.called


@patch("reconciler._types.ReconcilerConfigs.load")
@patch("reconciler._reconciler.ScaleInReconciler.handle_scale_in_lifecycle_action")
def test_main_once_error(
    handle_scale_in_lifecycle_action: MagicMock,
    configs_load: MagicMock,
):
    """Should raise errors of a single reconciliation to the caller."""
    configs_load.return_value = _utils.make_configs()
    handle_scale_in_lifecycle_action.side_effect = ValueError("FAKE")

    with pytest.raises(ValueError):
        _runner.main({"once": True})


def test_status_seconds_running():
    """Should compute a non-negative running time."""
    assert _runner.Status().seconds_running >= 0
    assert isinstance(_types.ReconcilerConfigs().seconds_old, int)
