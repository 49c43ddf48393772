"""Custom JSON encoding utilities"""
import json
from datetime import datetime
from enum import Enum

class HistoryEncoder(json.JSONEncoder):
    """JSON encoder for query output: datetimes, enums and sets"""
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        return super().default(obj)

def json_dumps(obj, **kwargs):
    """Helper function to dump JSON with datetime and enum handling"""
    return json.dumps(obj, cls=HistoryEncoder, ensure_ascii=False, **kwargs)
