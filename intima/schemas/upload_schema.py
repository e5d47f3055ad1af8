from typing import Optional
from intima.schemas.base_schema import CamelModel


class UploadRead(CamelModel):
    message: str
    filename: str
    original_name: str
    size: int
    path: str
    file_path: str
    url: str


class FileCheckRequest(CamelModel):
    file_path: Optional[str] = None


class FileCheckRead(CamelModel):
    exists: bool
    file_path: str
    message: str
