import datetime
import typing
from unittest.mock import MagicMock
from unittest.mock import patch

import lobotomy
import pytest
from pytest import mark

from reconciler import _recorder
from reconciler import _types
from reconciler.tests import _utils


def _make_event(
    transition: str = "autoscaling:EC2_INSTANCE_TERMINATING",
    hook_name: str = _utils.HOOK_NAME,
) -> typing.Dict[str, typing.Any]:
    """Create an EventBridge scale-in lifecycle action event."""
    return {
        "version": "0",
        "id": "12345678-1234-1234-1234-123456789012",
        "detail-type": "EC2 Instance-terminate Lifecycle Action",
        "source": "aws.autoscaling",
        "account": "123456789012",
        "time": "2023-05-01T12:30:00Z",
        "region": "us-east-1",
        "resources": [],
        "detail": {
            "LifecycleActionToken": "87654321-4321-4321-4321-210987654321",
            "AutoScalingGroupName": _utils.GROUP_NAME,
            "LifecycleHookName": hook_name,
            "EC2InstanceId": _utils.INSTANCE_ID,
            "LifecycleTransition": transition,
        },
    }


@lobotomy.patch()
def test_record_termination_event(lobotomized: "lobotomy.Lobotomy"):
    """Should insert a waiting record that expires after the retention period."""
    lobotomized.add_call("dynamodb", "put_item", {})
    configs = _utils.make_configs(table_name=_utils.TABLE_NAME)

    record = _recorder.record_termination_event(configs, _make_event())
    assert record.instance_id == _utils.INSTANCE_ID
    assert record.status == _types.InstanceStatus.TERMINATING_WAIT
    assert record.request_time == _utils.REQUEST_TIME
    assert record.termination_time is None
    expected_ttl = _utils.REQUEST_TIME + datetime.timedelta(days=3)
    assert record.ttl == int(expected_ttl.timestamp())

    call = lobotomized.get_service_calls("dynamodb", "put_item")[0]
    assert call.request["Item"]["InstanceName"] == {"S": _utils.INSTANCE_ID}
    assert call.request["Item"]["Status"] == {"S": "TERMINATING_WAIT"}


@lobotomy.patch()
def test_record_notification(lobotomized: "lobotomy.Lobotomy"):
    """Should also accept lifecycle notifications delivered without an envelope."""
    lobotomized.add_call("dynamodb", "put_item", {})
    configs = _utils.make_configs(table_name=_utils.TABLE_NAME)
    notification = {
        **_make_event()["detail"],
        "Service": "AWS Auto Scaling",
        "Time": "2023-05-01T12:30:00.000Z",
    }

    record = _recorder.record_termination_event(configs, notification)
    assert record.request_time == _utils.REQUEST_TIME


@patch("reconciler._controller.insert_tracked_instance")
def test_record_offset_time(insert_tracked_instance: MagicMock):
    """Should store the request time in UTC whatever the event's offset."""
    insert_tracked_instance.return_value = True
    configs = _utils.make_configs(table_name=_utils.TABLE_NAME)
    event = {**_make_event(), "time": "2023-05-01T14:30:00+02:00"}

    record = _recorder.record_termination_event(configs, event)
    assert record.request_time == _utils.REQUEST_TIME
    assert record.request_time.utcoffset() == datetime.timedelta(0)
    assert record.to_dict()["request_time"] == "2023-05-01T12:30:00+00:00"


@mark.parametrize(
    "event, hook_name",
    [
        (_make_event(transition="autoscaling:EC2_INSTANCE_LAUNCHING"), "hook"),
        (_make_event(transition="autoscaling:TEST_NOTIFICATION"), "hook"),
        (_make_event(hook_name="other-hook"), _utils.HOOK_NAME),
        (_make_event(), ""),
    ],
)
@patch("reconciler._controller.insert_tracked_instance")
def test_record_ignored(
    insert_tracked_instance: MagicMock,
    event: dict,
    hook_name: str,
):
    """Should ignore events that are not for the configured scale-in hook."""
    configs = _utils.make_configs(hook_name=hook_name, table_name=_utils.TABLE_NAME)
    assert _recorder.record_termination_event(configs, event) is None
    assert not insert_tracked_instance.called


@patch("reconciler._controller.insert_tracked_instance")
def test_record_existing(insert_tracked_instance: MagicMock):
    """Should keep an already tracked instance untouched."""
    insert_tracked_instance.return_value = False
    configs = _utils.make_configs(table_name=_utils.TABLE_NAME)
    assert _recorder.record_termination_event(configs, _make_event()) is None
    assert insert_tracked_instance.call_count == 1


def test_record_without_table():
    """Should fail when no tracking table is configured."""
    configs = _utils.make_configs()
    with pytest.raises(ValueError):
        _recorder.record_termination_event(configs, _make_event())


@patch("reconciler._types.ReconcilerConfigs.load")
@patch("reconciler._controller.insert_tracked_instance")
def test_lambda_handler(insert_tracked_instance: MagicMock, configs_load: MagicMock):
    """Should record the event with configuration loaded from the environment."""
    configs_load.return_value = _utils.make_configs(table_name=_utils.TABLE_NAME)
    insert_tracked_instance.return_value = True

    result = _recorder.lambda_handler(_make_event(), None)
    assert result["recorded"]
    assert result["record"]["status"] == "TERMINATING_WAIT"
