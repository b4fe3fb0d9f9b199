#: Auto Scaling reports the lifecycle phase of each instance as a string. The
#: scale-in lifecycle hook parks an instance in the terminating wait phase
#: until `complete_lifecycle_action` is called or the hook times out.
TERMINATING_WAIT_STATE = "Terminating:Wait"
TERMINATED_STATE = "Terminated"
IN_SERVICE_STATE = "InService"

#: Result sent with the lifecycle action acknowledgement. CONTINUE lets the
#: termination proceed.
LIFECYCLE_ACTION_RESULT = "CONTINUE"

#: Lifecycle transition name used by Auto Scaling for scale-in hooks.
TERMINATING_TRANSITION = "autoscaling:EC2_INSTANCE_TERMINATING"

#: Attribute names of the ASG instances tracking table.
INSTANCE_NAME_KEY = "InstanceName"
STATUS_KEY = "Status"
REQUEST_TIME_KEY = "RequestTime"
TERMINATION_TIME_KEY = "TerminationTime"
TTL_KEY = "Ttl"

DEFAULT_TTL_DAYS = 3

#: IMDSv2 endpoints for resolving the instance this process runs on.
METADATA_BASE_URL = "http://169.254.169.254/latest"
METADATA_TIMEOUT = 2
