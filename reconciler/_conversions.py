import datetime
import typing


def to_utc_datetime(value: typing.Optional[str]) -> typing.Optional[datetime.datetime]:
    """
    Convert an ISO-8601 timestamp string into an aware UTC datetime.

    A trailing "Z" is accepted as UTC, timestamps without an offset are assumed
    to be UTC and other offsets are converted to UTC. Empty values result in None.
    """
    if not value:
        return None

    parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)
