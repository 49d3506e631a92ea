from typing import Generic, TypeVar, Optional
from pydantic import BaseModel

T = TypeVar("T")

class Meta(BaseModel):
    page: Optional[int] = None
    page_size: Optional[int] = None
    total: Optional[int] = None
    pages: Optional[int] = None

class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: Optional[T]
    meta: Optional[Meta] = None
    message: Optional[str] = None
    errors: Optional[list] = None
    trace_id: str
