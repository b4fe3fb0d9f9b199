import datetime
import typing

from reconciler import _configs
from reconciler import _controller
from reconciler import _conversions
from reconciler import _types


def _get_details(event: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
    """
    Get the lifecycle action details from the event.

    EventBridge events nest the details under a "detail" key, while lifecycle
    notifications delivered through SNS or SQS carry them at the top level.
    """
    return event.get("detail") or event


def _get_event_time(event: typing.Dict[str, typing.Any]) -> datetime.datetime:
    """Determine when the lifecycle action was requested, defaulting to now."""
    value = event.get("time") or _get_details(event).get("Time")
    return _conversions.to_utc_datetime(value) or datetime.datetime.now(
        datetime.timezone.utc
    )


def record_termination_event(
    configs: "_types.ReconcilerConfigs",
    event: typing.Dict[str, typing.Any],
) -> typing.Optional["_types.TrackedInstance"]:
    """
    Record an instance entering the scale-in lifecycle hook in the tracking table.

    Events for other lifecycle transitions, for other hooks, or arriving while
    the scale-in hook is disabled are ignored. An instance that is already
    tracked keeps its existing record, which is never reset to TERMINATING_WAIT.

    :param configs:
        Current execution configuration for the reconciler.
    :param event:
        Auto Scaling lifecycle action event as delivered by EventBridge or as a
        raw lifecycle notification.
    :return:
        The inserted record or None if nothing was recorded.
    """
    if not configs.use_tracked_store:
        raise ValueError("An ASG instances table name must be configured.")

    details = _get_details(event)
    transition = details.get("LifecycleTransition")
    hook_name = details.get("LifecycleHookName")
    instance_id = details.get("EC2InstanceId")

    if (
        not configs.is_enabled
        or transition != _configs.TERMINATING_TRANSITION
        or hook_name != configs.hook_name
        or not instance_id
    ):
        configs.log(
            "ignored_lifecycle_event",
            {
                "transition": transition,
                "hook_name": hook_name,
                "instance_id": instance_id,
            },
        )
        return None

    request_time = _get_event_time(event)
    expires_at = request_time + datetime.timedelta(days=configs.ttl_days)
    record = _types.TrackedInstance(
        instance_id=instance_id,
        status=_types.InstanceStatus.TERMINATING_WAIT,
        request_time=request_time,
        ttl=int(expires_at.timestamp()),
    )

    if not _controller.insert_tracked_instance(configs, record):
        configs.log("tracked_instance_exists", {"instance_id": instance_id})
        return None

    configs.log("tracked_instance_recorded", record.to_dict())
    return record


def lambda_handler(event: typing.Dict[str, typing.Any], context: typing.Any) -> dict:
    """Record scale-in lifecycle events when deployed as an AWS Lambda function."""
    configs = _types.ReconcilerConfigs().load({})
    record = record_termination_event(configs, event)
    return {"recorded": record is not None, "record": record.to_dict() if record else None}
