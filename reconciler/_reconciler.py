import dataclasses
import typing

from reconciler import _controller
from reconciler import _identity
from reconciler import _sources
from reconciler import _types


@dataclasses.dataclass(frozen=True)
class LifecycleActionCompleter:
    """Completes lifecycle actions against the Auto Scaling API."""

    configs: "_types.ReconcilerConfigs" = dataclasses.field(repr=False)

    def _resolve_group_name(self, instance_id: str) -> str:
        """Find the Auto Scaling group the instance belongs to."""
        if self.configs.autoscaling_group:
            return self.configs.autoscaling_group

        instance = _controller.describe_instance(self.configs, instance_id)
        if instance is None or not instance.group_name:
            raise LookupError(
                f'Instance "{instance_id}" is not part of an Auto Scaling group.'
            )
        return instance.group_name

    def complete(
        self,
        hook_name: str,
        instance_id: str,
        group_name: typing.Optional[str] = None,
    ):
        """
        Complete the lifecycle action of the hook for the specified instance.

        :param hook_name:
            Name of the lifecycle hook holding the instance.
        :param instance_id:
            EC2 instance ID of the instance to release.
        :param group_name:
            Auto Scaling group of the instance. When not known, the configured
            group is used or the group is looked up for the instance.
        """
        group = group_name or self._resolve_group_name(instance_id)
        _controller.complete_lifecycle_action(
            self.configs,
            hook_name=hook_name,
            instance_id=instance_id,
            group_name=group,
        )
        self.configs.log(
            "completed_lifecycle_action",
            {"hook_name": hook_name, "instance_id": instance_id, "group_name": group},
        )


@dataclasses.dataclass(frozen=True)
class ScaleInReconciler:
    """
    Acknowledges the scale-in lifecycle hook for the instance running this process.

    Every collaborator is passed in explicitly. Use ``from_configs`` to assemble
    a reconciler from configuration.
    """

    hook_name: str
    source: "_sources.InstanceStateSource"
    completer: "LifecycleActionCompleter"
    identify: typing.Callable[[], str]

    @classmethod
    def from_configs(cls, configs: "_types.ReconcilerConfigs") -> "ScaleInReconciler":
        """Create a reconciler wired to AWS according to the configuration."""
        return cls(
            hook_name=configs.hook_name,
            source=_sources.from_configs(configs),
            completer=LifecycleActionCompleter(configs=configs),
            identify=lambda: _identity.get_instance_id(configs),
        )

    def handle_scale_in_lifecycle_action(self) -> bool:
        """
        Complete the pending scale-in lifecycle action for this instance if any.

        The source is read before the lifecycle action is completed, and the
        completion is recorded only after the lifecycle action call succeeded.
        Any collaborator error is raised to the caller, in which case the status
        of the acknowledgement is unknown and the call is safe to repeat.

        :return:
            Whether the lifecycle action was completed by this call or is known
            to have been completed by an earlier one.
        """
        if not self.hook_name:
            return False

        instance_id = self.identify()
        observation = self.source.describe_instance(instance_id)
        if observation is None:
            return False

        if self.source.is_acknowledged(observation):
            return True

        if observation.status != _types.InstanceStatus.TERMINATING_WAIT:
            return False

        self.completer.complete(
            hook_name=self.hook_name,
            instance_id=observation.instance_id,
            group_name=observation.group_name,
        )
        self.source.record_acknowledged(observation)
        return True
