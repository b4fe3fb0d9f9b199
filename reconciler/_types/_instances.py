import dataclasses
import datetime
import enum
import typing

from reconciler import _configs


class InstanceStatus(enum.Enum):
    """Lifecycle phases an Auto Scaling group instance can be in."""

    UNKNOWN = "Unknown"
    PENDING = "Pending"
    PENDING_WAIT = "Pending:Wait"
    PENDING_PROCEED = "Pending:Proceed"
    QUARANTINED = "Quarantined"
    IN_SERVICE = _configs.IN_SERVICE_STATE
    TERMINATING = "Terminating"
    TERMINATING_WAIT = _configs.TERMINATING_WAIT_STATE
    TERMINATING_PROCEED = "Terminating:Proceed"
    TERMINATED = _configs.TERMINATED_STATE
    DETACHING = "Detaching"
    DETACHED = "Detached"
    ENTERING_STANDBY = "EnteringStandby"
    STANDBY = "Standby"
    WARMED_PENDING = "Warmed:Pending"
    WARMED_PENDING_WAIT = "Warmed:Pending:Wait"
    WARMED_PENDING_PROCEED = "Warmed:Pending:Proceed"
    WARMED_TERMINATING = "Warmed:Terminating"
    WARMED_TERMINATING_WAIT = "Warmed:Terminating:Wait"
    WARMED_TERMINATING_PROCEED = "Warmed:Terminating:Proceed"
    WARMED_TERMINATED = "Warmed:Terminated"
    WARMED_STOPPED = "Warmed:Stopped"
    WARMED_RUNNING = "Warmed:Running"
    WARMED_HIBERNATED = "Warmed:Hibernated"

    @classmethod
    def from_lifecycle_state(cls, value: typing.Optional[str]) -> "InstanceStatus":
        """
        Parse a lifecycle state string as reported by the Auto Scaling API.

        Values that are not recognized become UNKNOWN rather than failing.
        """
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def from_name(cls, value: typing.Optional[str]) -> "InstanceStatus":
        """Parse a status stored by member name, e.g. "TERMINATING_WAIT"."""
        return cls.__members__.get((value or "").upper(), cls.UNKNOWN)


@dataclasses.dataclass(frozen=True)
class AutoScalingInstance:
    """Data structure for an instance entry of an Auto Scaling group."""

    instance_id: str
    #: Raw lifecycle state string, e.g. "Terminating:Wait".
    lifecycle_state: str
    group_name: str

    @property
    def status(self) -> InstanceStatus:
        """Lifecycle state parsed into an InstanceStatus."""
        return InstanceStatus.from_lifecycle_state(self.lifecycle_state)

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Convert to a dictionary representation that is JSON serializable for logs."""
        return {
            "instance_id": self.instance_id,
            "lifecycle_state": self.lifecycle_state,
            "group_name": self.group_name,
        }


@dataclasses.dataclass(frozen=True)
class TrackedInstance:
    """
    Data structure for a record of the ASG instances tracking table.

    A record is created when termination of the instance is first observed,
    in the TERMINATING_WAIT status, and transitions once to TERMINATED when the
    scale-in lifecycle action has been completed. Records expire through the
    table's time-to-live attribute and are never deleted here.

    Records read from the table are kept as stored, even when they were written
    by other producers that leave out optional attributes. Records written by
    this package are checked with ``validate`` first.
    """

    instance_id: str
    status: InstanceStatus
    request_time: typing.Optional[datetime.datetime] = None
    termination_time: typing.Optional[datetime.datetime] = None
    #: Expiry of the record as a unix timestamp in seconds.
    ttl: typing.Optional[int] = None

    @property
    def is_terminated(self) -> bool:
        """Whether the lifecycle action for this instance has been completed."""
        return self.status == InstanceStatus.TERMINATED

    @property
    def lifecycle_status(self) -> InstanceStatus:
        """
        Status to act upon for this record.

        A TERMINATING_WAIT record that already carries a termination time is
        inconsistent and reported as UNKNOWN so that it is not acted upon. A
        TERMINATED record without a termination time is still terminated.
        """
        if self.status == InstanceStatus.TERMINATING_WAIT and self.termination_time:
            return InstanceStatus.UNKNOWN
        return self.status

    def validate(self) -> "TrackedInstance":
        """Ensure the termination time is set if and only if the status is TERMINATED."""
        if self.is_terminated != (self.termination_time is not None):
            raise ValueError(
                f'Instance "{self.instance_id}" must have a termination time'
                " if and only if its status is TERMINATED."
            )
        return self

    def to_terminated(self, termination_time: datetime.datetime) -> "TrackedInstance":
        """
        Create a copy of this record transitioned to the TERMINATED status.

        Only records in the TERMINATING_WAIT status can make this transition.
        """
        if self.status != InstanceStatus.TERMINATING_WAIT:
            raise ValueError(
                f'Instance "{self.instance_id}" cannot transition from'
                f" {self.status.name} to TERMINATED."
            )
        return dataclasses.replace(
            self,
            status=InstanceStatus.TERMINATED,
            termination_time=termination_time,
        ).validate()

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Convert to a dictionary representation that is JSON serializable for logs."""
        return {
            "instance_id": self.instance_id,
            "status": self.status.name,
            "request_time": (
                self.request_time.isoformat() if self.request_time else None
            ),
            "termination_time": (
                self.termination_time.isoformat() if self.termination_time else None
            ),
            "ttl": self.ttl,
        }


@dataclasses.dataclass(frozen=True)
class LifecycleObservation:
    """Lifecycle state of an instance as reported by an instance state source."""

    instance_id: str
    status: InstanceStatus
    #: Name of the Auto Scaling group, when the source knows it.
    group_name: typing.Optional[str] = None
    #: Tracking table record the observation was read from, if any.
    record: typing.Optional[TrackedInstance] = None

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Convert to a dictionary representation that is JSON serializable for logs."""
        return {
            "instance_id": self.instance_id,
            "status": self.status.name,
            "group_name": self.group_name,
            "tracked": self.record is not None,
        }
