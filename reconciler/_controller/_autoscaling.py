import typing

from reconciler import _configs
from reconciler import _types


def _to_instance(instance_data: dict) -> "_types.AutoScalingInstance":
    """Convert a boto3 auto scaling instance description into an AutoScalingInstance."""
    return _types.AutoScalingInstance(
        instance_id=instance_data["InstanceId"],
        lifecycle_state=instance_data.get("LifecycleState") or "",
        group_name=instance_data.get("AutoScalingGroupName") or "",
    )


def describe_instance(
    configs: "_types.ReconcilerConfigs",
    instance_id: str,
) -> typing.Optional["_types.AutoScalingInstance"]:
    """
    Fetch the Auto Scaling group membership and lifecycle state of an instance.

    An instance that is not, or no longer, part of any Auto Scaling group is not
    an error and results in a None value.

    :param configs:
        Current execution configuration for the reconciler.
    :param instance_id:
        EC2 instance ID of the instance to describe.
    """
    client = configs.session.client("autoscaling")
    response = client.describe_auto_scaling_instances(InstanceIds=[instance_id])
    return next(
        (
            _to_instance(i)
            for i in (response.get("AutoScalingInstances") or [])
            if i.get("InstanceId") == instance_id
        ),
        None,
    )


def complete_lifecycle_action(
    configs: "_types.ReconcilerConfigs",
    hook_name: str,
    instance_id: str,
    group_name: str,
):
    """
    Acknowledge the lifecycle hook so Auto Scaling can continue the transition.

    Errors are raised to the caller. An acknowledgement that silently fails
    would leave the instance waiting until the hook times out.

    :param configs:
        Current execution configuration for the reconciler.
    :param hook_name:
        Name of the lifecycle hook holding the instance.
    :param instance_id:
        EC2 instance ID of the instance to release.
    :param group_name:
        Auto Scaling group the instance belongs to.
    """
    client = configs.session.client("autoscaling")
    client.complete_lifecycle_action(
        LifecycleHookName=hook_name,
        AutoScalingGroupName=group_name,
        LifecycleActionResult=_configs.LIFECYCLE_ACTION_RESULT,
        InstanceId=instance_id,
    )
