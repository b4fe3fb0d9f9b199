from reconciler._types._instances import AutoScalingInstance  # noqa: F401
from reconciler._types._instances import InstanceStatus  # noqa: F401
from reconciler._types._instances import LifecycleObservation  # noqa: F401
from reconciler._types._instances import TrackedInstance  # noqa: F401
from reconciler._types._reconciler import ReconcilerConfigs  # noqa: F401
