import dataclasses
import datetime
import typing

from reconciler import _controller
from reconciler import _types


@dataclasses.dataclass(frozen=True)
class InstanceStateSource:
    """Base for the sources a reconciler reads instance lifecycle state from."""

    configs: "_types.ReconcilerConfigs" = dataclasses.field(repr=False)

    def describe_instance(
        self,
        instance_id: str,
    ) -> typing.Optional["_types.LifecycleObservation"]:
        """Observe the lifecycle state of the instance, None if it is unknown."""
        raise NotImplementedError()

    def is_acknowledged(self, observation: "_types.LifecycleObservation") -> bool:
        """Whether the observation shows the lifecycle action was already completed."""
        raise NotImplementedError()

    def record_acknowledged(self, observation: "_types.LifecycleObservation"):
        """Persist that the lifecycle action was completed for the observed instance."""
        raise NotImplementedError()


@dataclasses.dataclass(frozen=True)
class LiveQuerySource(InstanceStateSource):
    """
    Reads lifecycle state directly from the Auto Scaling API.

    Nothing is remembered between invocations, so a completed lifecycle action
    can never be recognized and every invocation re-queries Auto Scaling.
    """

    def describe_instance(
        self,
        instance_id: str,
    ) -> typing.Optional["_types.LifecycleObservation"]:
        instance = _controller.describe_instance(self.configs, instance_id)
        if instance is None:
            return None

        return _types.LifecycleObservation(
            instance_id=instance.instance_id,
            status=instance.status,
            group_name=instance.group_name or None,
        )

    def is_acknowledged(self, observation: "_types.LifecycleObservation") -> bool:
        return False

    def record_acknowledged(self, observation: "_types.LifecycleObservation"):
        pass


@dataclasses.dataclass(frozen=True)
class TrackedStoreSource(InstanceStateSource):
    """
    Reads lifecycle state from the ASG instances tracking table.

    The TERMINATED status is durable, which makes completing the lifecycle
    action idempotent across repeated invocations and process restarts.
    """

    def describe_instance(
        self,
        instance_id: str,
    ) -> typing.Optional["_types.LifecycleObservation"]:
        record = _controller.get_tracked_instance(self.configs, instance_id)
        if record is None:
            return None

        return _types.LifecycleObservation(
            instance_id=record.instance_id,
            status=record.lifecycle_status,
            record=record,
        )

    def is_acknowledged(self, observation: "_types.LifecycleObservation") -> bool:
        return observation.status == _types.InstanceStatus.TERMINATED

    def record_acknowledged(self, observation: "_types.LifecycleObservation"):
        if observation.record is None:
            raise ValueError(
                f'No tracked record observed for instance "{observation.instance_id}".'
            )

        now = datetime.datetime.now(datetime.timezone.utc)
        record = observation.record.to_terminated(termination_time=now)
        _controller.update_tracked_instance(self.configs, record)
        self.configs.log("tracked_instance_terminated", record.to_dict())


def from_configs(configs: "_types.ReconcilerConfigs") -> "InstanceStateSource":
    """
    Create the instance state source that applies to the configuration.

    The tracking table is used whenever a table name has been configured and
    Auto Scaling is queried directly otherwise.
    """
    if configs.use_tracked_store:
        return TrackedStoreSource(configs=configs)
    return LiveQuerySource(configs=configs)
