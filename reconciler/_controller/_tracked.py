import typing

from botocore.exceptions import ClientError

from reconciler import _configs
from reconciler import _conversions
from reconciler import _types


def _to_tracked_instance(item: typing.Dict[str, dict]) -> "_types.TrackedInstance":
    """
    Convert a DynamoDB item into a TrackedInstance data structure.

    Status values that are not recognized are kept as UNKNOWN instead of failing
    so that an unexpected record is treated as not actionable. Optional
    attributes missing from the item are left as None.
    """
    ttl = item.get(_configs.TTL_KEY, {}).get("N")
    return _types.TrackedInstance(
        instance_id=item[_configs.INSTANCE_NAME_KEY]["S"],
        status=_types.InstanceStatus.from_name(
            item.get(_configs.STATUS_KEY, {}).get("S")
        ),
        request_time=_conversions.to_utc_datetime(
            item.get(_configs.REQUEST_TIME_KEY, {}).get("S")
        ),
        termination_time=_conversions.to_utc_datetime(
            item.get(_configs.TERMINATION_TIME_KEY, {}).get("S")
        ),
        ttl=int(ttl) if ttl is not None else None,
    )


def _to_item(record: "_types.TrackedInstance") -> typing.Dict[str, dict]:
    """Convert a TrackedInstance into its DynamoDB item representation."""
    item = {
        _configs.INSTANCE_NAME_KEY: {"S": record.instance_id},
        _configs.STATUS_KEY: {"S": record.status.name},
    }
    if record.request_time is not None:
        item[_configs.REQUEST_TIME_KEY] = {"S": record.request_time.isoformat()}
    if record.termination_time is not None:
        item[_configs.TERMINATION_TIME_KEY] = {"S": record.termination_time.isoformat()}
    if record.ttl is not None:
        item[_configs.TTL_KEY] = {"N": str(record.ttl)}
    return item


def _is_condition_failure(error: ClientError) -> bool:
    """Determine if the client error was caused by a failed put condition."""
    code = error.response.get("Error", {}).get("Code")
    return code == "ConditionalCheckFailedException"


def get_tracked_instance(
    configs: "_types.ReconcilerConfigs",
    instance_id: str,
) -> typing.Optional["_types.TrackedInstance"]:
    """
    Fetch the tracking table record for the specified instance.

    A strongly consistent read is used so a transition written by a previous
    invocation is always visible to the next one.

    :param configs:
        Current execution configuration for the reconciler.
    :param instance_id:
        EC2 instance ID of the record to retrieve.
    :return:
        The record or None if the instance is not tracked.
    """
    client = configs.session.client("dynamodb")
    response = client.get_item(
        TableName=configs.table_name,
        Key={_configs.INSTANCE_NAME_KEY: {"S": instance_id}},
        ConsistentRead=True,
    )
    item = response.get("Item")
    return _to_tracked_instance(item) if item else None


def update_tracked_instance(
    configs: "_types.ReconcilerConfigs",
    record: "_types.TrackedInstance",
):
    """
    Replace an existing tracking table record with the specified one.

    The write is conditioned on the record already existing. Records are only
    created when a termination is recorded, never by an update.

    :param configs:
        Current execution configuration for the reconciler.
    :param record:
        New state of the tracked instance.
    """
    client = configs.session.client("dynamodb")
    client.put_item(
        TableName=configs.table_name,
        Item=_to_item(record.validate()),
        ConditionExpression="attribute_exists(#key)",
        ExpressionAttributeNames={"#key": _configs.INSTANCE_NAME_KEY},
    )


def insert_tracked_instance(
    configs: "_types.ReconcilerConfigs",
    record: "_types.TrackedInstance",
) -> bool:
    """
    Create a new tracking table record.

    :param configs:
        Current execution configuration for the reconciler.
    :param record:
        Record to insert.
    :return:
        Whether the record was inserted. False is returned if a record for the
        instance already exists, in which case the existing record is kept as-is.
    """
    client = configs.session.client("dynamodb")
    try:
        client.put_item(
            TableName=configs.table_name,
            Item=_to_item(record.validate()),
            ConditionExpression="attribute_not_exists(#key)",
            ExpressionAttributeNames={"#key": _configs.INSTANCE_NAME_KEY},
        )
    except ClientError as error:
        if _is_condition_failure(error):
            return False
        raise
    return True
