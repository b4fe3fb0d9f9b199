from reconciler._controller._autoscaling import complete_lifecycle_action  # noqa: F401
from reconciler._controller._autoscaling import describe_instance  # noqa: F401
from reconciler._controller._tracked import get_tracked_instance  # noqa: F401
from reconciler._controller._tracked import insert_tracked_instance  # noqa: F401
from reconciler._controller._tracked import update_tracked_instance  # noqa: F401
