"""Scale-in lifecycle hook reconciler package."""
import argparse as _argparse

from reconciler import _runner
from reconciler._reconciler import LifecycleActionCompleter  # noqa: F401
from reconciler._reconciler import ScaleInReconciler  # noqa: F401
from reconciler._recorder import lambda_handler  # noqa: F401
from reconciler._recorder import record_termination_event  # noqa: F401
from reconciler._sources import InstanceStateSource  # noqa: F401
from reconciler._sources import LiveQuerySource  # noqa: F401
from reconciler._sources import TrackedStoreSource  # noqa: F401
from reconciler._types import ReconcilerConfigs  # noqa: F401


def parse() -> dict:
    """Parse command line arguments to invoke the scale-in reconciler."""
    parser = _argparse.ArgumentParser(prog="scale-in-reconciler")
    parser.add_argument("--hook-name")
    parser.add_argument("--table-name")
    parser.add_argument("--autoscaling-group")
    parser.add_argument("--instance-id")
    parser.add_argument("--region")
    parser.add_argument("-p", "--profile", dest="aws_profile")
    parser.add_argument("--once", action="store_true")
    parser.add_argument("--pretty-print", action="store_true")
    parser.add_argument("--config-path")
    return vars(parser.parse_args())


def main():
    """Execute the scale-in reconciler."""
    return _runner.main(parse())
