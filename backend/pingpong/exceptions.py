from typing import Optional

from pydantic import BaseModel


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class StorageError(Exception):
    """Raised when persisted game state cannot be read back."""

    def __init__(self, table_id: int, detail: str) -> None:
        self.table_id = table_id
        self.detail = detail
        super().__init__(f"stored game state for table {table_id} is unusable: {detail}")
