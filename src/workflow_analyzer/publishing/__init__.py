"""Work item creation in the ticketing system."""

from .client import TargetProcessClient
from .decoding import JsonIdDecoder, XmlIdDecoder, decode_created_id, decode_id
from .publisher import WorkItemCreationResults, WorkItemPublisher, WorkItemResult

__all__ = [
    "JsonIdDecoder",
    "TargetProcessClient",
    "WorkItemCreationResults",
    "WorkItemPublisher",
    "WorkItemResult",
    "XmlIdDecoder",
    "decode_created_id",
    "decode_id",
]
