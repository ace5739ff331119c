from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId

from utils.errors import ValidationError


def utcnow():
    """Naive UTC timestamp, the form pymongo hands back from the server."""
    return datetime.utcnow()


def isoformat(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"
    return value


def parse_timestamp(value):
    """Read a stored timestamp as naive UTC; older records hold ISO strings."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, str):
        try:
            return _to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _to_naive_utc(value):
    if value.tzinfo is None:
        return value
    return (value - value.utcoffset()).replace(tzinfo=None)


def to_object_id(value, field="id"):
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {field}")


def serialize_doc(value):
    """Make a Mongo document JSON friendly: ObjectIds to str, datetimes to ISO."""
    if isinstance(value, dict):
        return {k: serialize_doc(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize_doc(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return isoformat(value)
    return value
