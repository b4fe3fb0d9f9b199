import dataclasses
import datetime
import json
import os
import pathlib
import typing

import boto3
import yaml

from reconciler import _configs


def _or(*args: typing.Any, default: typing.Any = None) -> typing.Any:
    """
    Find the first non-None element in the args.

    If none of the values are not None, the default value will be returned instead.
    """
    return next((x for x in args if x is not None), default)


def _or_truthy(*args: typing.Any, default: typing.Any = None) -> typing.Any:
    """
    Find the first truthy element in the args.

    If none of the values are truthy, the default value will be returned instead.
    """
    return next((x for x in args if x), default)


def _load_configs(
    args: typing.Dict[str, typing.Any],
    config_path: typing.Union[str, pathlib.Path] = None,
) -> typing.Dict[str, typing.Any]:
    """
    Load configuration data from the config path.

    Config path lookup is prioritized in the following way:
    - config_path argument specified in this function signature.
    - `--config-path` command line argument.
    - CONFIG_PATH environmental variable.
    - Default value of "/application/config/config.yaml"

    If the config file fails to load because the file is not found, a blank
    configuration will be used instead.
    """
    p = pathlib.Path(
        config_path
        or args.get("config_path")
        or os.environ.get("CONFIG_PATH")
        or "/application/config/config.yaml"
    )
    try:
        return yaml.safe_load(p.resolve().read_text()) or {}
    except FileNotFoundError:
        return {}


@dataclasses.dataclass()
class ReconcilerConfigs:
    """Configuration data structure for scale-in lifecycle reconciliation."""

    #: Name of the scale-in lifecycle hook. An empty value disables the
    #: scale-in hook handling entirely.
    hook_name: str = ""
    #: Name of the DynamoDB ASG instances tracking table. An empty value
    #: means instance state is queried from Auto Scaling directly.
    table_name: str = ""
    autoscaling_group: typing.Optional[str] = None
    instance_id: typing.Optional[str] = None
    aws_profile: typing.Optional[str] = None
    region: typing.Optional[str] = None
    ttl_days: int = _configs.DEFAULT_TTL_DAYS
    pretty_print: bool = False
    critical_error_threshold: int = 10
    sleep_interval: int = 20
    config_refresh_interval: float = 60
    session: boto3.Session = dataclasses.field(
        hash=False, default_factory=lambda: boto3.Session()
    )
    last_loaded_at: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def is_enabled(self) -> bool:
        """Whether scale-in lifecycle hook handling is turned on."""
        return bool(self.hook_name)

    @property
    def use_tracked_store(self) -> bool:
        """Whether instance state is read from the ASG instances tracking table."""
        return bool(self.table_name)

    @property
    def seconds_old(self) -> int:
        """Compute number of seconds since this config was created/refreshed."""
        now = datetime.datetime.now(datetime.timezone.utc)
        return int((now - self.last_loaded_at).total_seconds())

    def load(
        self,
        args: typing.Dict[str, typing.Any],
        config_path: typing.Union[str, pathlib.Path] = None,
    ) -> "ReconcilerConfigs":
        """
        Populate reconciler config with data from a config file.

        Values are prioritized command line arguments first, then environment
        variables, then the config file. Config path lookup is prioritized in the
        following way:
        - config_path argument specified in this function signature.
        - `--config-path` command line argument.
        - CONFIG_PATH environmental variable.
        - Default value of "/application/config/config.yaml"

        If none of these exist, the default values will be loaded instead.
        """
        self.last_loaded_at = datetime.datetime.now(datetime.timezone.utc)
        raw = _load_configs(args, config_path)

        self.hook_name = _or_truthy(
            args.get("hook_name"),
            os.environ.get("SCALE_IN_HOOK"),
            raw.get("scale_in_hook"),
            default="",
        )
        self.table_name = _or_truthy(
            args.get("table_name"),
            os.environ.get("ASG_INSTANCES_TABLE_NAME"),
            raw.get("asg_instances_table_name"),
            default="",
        )
        self.autoscaling_group = _or_truthy(
            args.get("autoscaling_group"),
            os.environ.get("WORKER_AUTOSCALING_GROUP"),
            raw.get("autoscaling_group"),
        )
        self.instance_id = _or_truthy(
            args.get("instance_id"),
            os.environ.get("INSTANCE_ID"),
            self.instance_id,
        )
        self.aws_profile = _or(args.get("aws_profile"), self.aws_profile)
        self.region = _or_truthy(
            args.get("region"),
            os.environ.get("AWS_REGION"),
            raw.get("region"),
        )
        self.pretty_print = _or_truthy(
            self.pretty_print, args.get("pretty_print"), False
        )

        self.ttl_days = int(_or(raw.get("asg_instances_ttl_days"), self.ttl_days))
        if self.ttl_days < 1:
            raise ValueError(
                f"The ASG instances TTL must be at least one day, not {self.ttl_days}."
            )

        self.critical_error_threshold = int(
            _or(raw.get("critical_error_threshold"), 10)
        )
        self.sleep_interval = _or(raw.get("sleep_interval"), 20)
        self.config_refresh_interval = _or(raw.get("config_refresh_interval"), 60)

        self.session = boto3.Session(
            profile_name=self.aws_profile,
            region_name=self.region,
        )
        return self

    def log(self, message: str, data: dict):
        """Log the message and data for structured output."""
        print(
            json.dumps(
                {"message": message, "data": data},
                indent=2 if self.pretty_print else None,
            )
        )

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Convert to a dictionary representation that is JSON serializable for logs."""
        return {
            "hook_name": self.hook_name,
            "table_name": self.table_name,
            "use_tracked_store": self.use_tracked_store,
            "autoscaling_group": self.autoscaling_group,
            "instance_id": self.instance_id,
            "aws_profile": self.aws_profile,
            "region": self.region,
            "ttl_days": self.ttl_days,
            "critical_error_threshold": self.critical_error_threshold,
            "sleep_interval": self.sleep_interval,
            "config_refresh_interval": self.config_refresh_interval,
            "last_loaded_at": str(self.last_loaded_at),
        }
