from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class MimeTypeError(str, Enum):
    FALSE_TYPE = "fileMimeTypeFalse"
    NOT_DETECTED = "fileMimeTypeNotDetected"
    NOT_READABLE = "fileMimeTypeNotReadable"


MESSAGE_TEMPLATES: Dict[MimeTypeError, str] = {
    MimeTypeError.FALSE_TYPE: "File has an incorrect mimetype of '%type%'",
    MimeTypeError.NOT_DETECTED: "The mimetype could not be detected from the file",
    MimeTypeError.NOT_READABLE: "File is not readable or does not exist",
}


class ValidationResponse(BaseModel):
    valid: bool
    filename: Optional[str] = None
    detected_type: Optional[str] = None
    declared_type: Optional[str] = None
    errors: Dict[str, str] = Field(default_factory=dict)
