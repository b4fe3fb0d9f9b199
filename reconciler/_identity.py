import requests

from reconciler import _configs
from reconciler import _types


def _fetch_metadata_token() -> str:
    """Request a session token from the EC2 instance metadata service (IMDSv2)."""
    response = requests.put(
        f"{_configs.METADATA_BASE_URL}/api/token",
        headers={"X-aws-ec2-metadata-token-ttl-seconds": "60"},
        timeout=_configs.METADATA_TIMEOUT,
    )
    response.raise_for_status()
    return response.text


def get_instance_id(configs: "_types.ReconcilerConfigs") -> str:
    """
    Determine the EC2 instance ID of the instance this process is running on.

    A configured instance ID takes precedence. Otherwise the instance metadata
    service is queried, and any failure to reach it is raised because the
    reconciler cannot act on an unknown instance.
    """
    if configs.instance_id:
        return configs.instance_id

    token = _fetch_metadata_token()
    response = requests.get(
        f"{_configs.METADATA_BASE_URL}/meta-data/instance-id",
        headers={"X-aws-ec2-metadata-token": token},
        timeout=_configs.METADATA_TIMEOUT,
    )
    response.raise_for_status()

    instance_id = response.text.strip()
    if not instance_id:
        raise ValueError("Instance metadata returned an empty instance ID.")
    return instance_id
