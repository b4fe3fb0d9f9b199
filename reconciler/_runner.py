import dataclasses
import datetime
import pathlib
import time
import traceback
import typing

from reconciler import _reconciler
from reconciler import _types

#: Exit codes returned by the runner.
ACKNOWLEDGED_EXIT_CODE = 0
ERROR_EXIT_CODE = 1
NOT_ACKNOWLEDGED_EXIT_CODE = 2


@dataclasses.dataclass()
class Status:
    """Data structure for cross-execution-loop status."""

    recent_error_count: int = 0
    checks: int = 0
    started_at: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def seconds_running(self) -> float:
        """Compute number of seconds since the loop started."""
        now = datetime.datetime.now(datetime.timezone.utc)
        return (now - self.started_at).total_seconds()


def _execute(configs: "_types.ReconcilerConfigs", status: "Status") -> bool:
    """Execute a single scale-in reconciliation for this instance."""
    reconciler = _reconciler.ScaleInReconciler.from_configs(configs)
    acknowledged = reconciler.handle_scale_in_lifecycle_action()

    status.checks += 1
    status.recent_error_count = max(0, status.recent_error_count - 1)

    if acknowledged:
        configs.log(
            "scale_in_acknowledged",
            {
                "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
                "hook_name": configs.hook_name,
                "use_tracked_store": configs.use_tracked_store,
                "checks": status.checks,
                "seconds_running": status.seconds_running,
            },
        )
    return acknowledged


def main(
    args: typing.Dict[str, typing.Any],
    config_path_override: typing.Union[str, pathlib.Path] = None,
) -> int:
    """
    Poll for a pending scale-in lifecycle action until it has been acknowledged.

    Each iteration sleeps before reconciling. The loop ends successfully once the
    lifecycle action is acknowledged, and in error when too many recent iterations
    have failed. When the ``once`` argument is set a single reconciliation is run
    and its errors are raised instead of being counted.

    :param args:
        Arguments parsed from the command line. These arguments will take precedence
        over arguments specified by other means during execution.
    :param config_path_override:
        An override for the config path that is only used during non-normal execution
        calls. Most commonly this will be for testing purposes, but alternative calling
        implementations of this code could utilize this as well.
    :return:
        The exit code for the process.
    """
    configs = _types.ReconcilerConfigs().load(args, config_path_override)
    configs.log("starting", configs.to_dict())

    status = Status()
    if args.get("once"):
        if _execute(configs, status):
            return ACKNOWLEDGED_EXIT_CODE
        return NOT_ACKNOWLEDGED_EXIT_CODE

    while status.recent_error_count < configs.critical_error_threshold:
        time.sleep(configs.sleep_interval)

        if configs.seconds_old > configs.config_refresh_interval:
            # Refresh the configs every so often so that enabling the hook or
            # the tracking table applies without restarting the process.
            configs.load(args, config_path_override)

        try:
            if _execute(configs, status):
                return ACKNOWLEDGED_EXIT_CODE
        except Exception as error:
            # Failed reconciliations leave the acknowledgement status unknown
            # and are retried on the next iteration. Only an accumulation of
            # errors ends the loop.
            traceback.print_exc()
            print(f"{type(error)}: {error}")
            status.recent_error_count += 1

    return ERROR_EXIT_CODE
