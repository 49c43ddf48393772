"""QueryResponse model definition"""
from typing import Any, Dict, List
from pydantic import BaseModel, Field

class QueryResponse(BaseModel):
    """
    Result of one command line query.

    Attributes:
        query: Name of the query that was run (top, search, summary)
        data_dir: Export folder the history was resolved from
        parameters: Arguments the query was called with
        results: Rows of the result, already in ranking or identity order
    """
    query: str
    data_dir: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    results: List[Dict[str, Any]] = Field(default_factory=list)
