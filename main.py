from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
import uvicorn

from config.settings import get_settings
from models.schemas import ValidationResponse
from services.mime_type_validator import MimeTypeValidator
from utils.exceptions import MimeValidatorError
from utils.logger import get_logger

app = FastAPI(title="MIME Type Validation Service", version="1.0.0")
logger = get_logger(__name__)


def _upload_size(upload: UploadFile) -> int:
    stream = upload.file
    position = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(position)
    return size


@app.post("/validate", response_model=ValidationResponse)
async def validate_upload(
    file: UploadFile = File(...),
    mime_type: Optional[List[str]] = Form(default=None),
):
    """
    Check an uploaded file's MIME type against an allow-list.

    ``mime_type`` may be repeated or comma separated; when absent the
    configured default allow-list applies.
    """
    settings = get_settings()

    try:
        size = _upload_size(file)
        if size > settings.MAX_UPLOAD_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File size ({size} bytes) exceeds maximum allowed ({settings.MAX_UPLOAD_SIZE} bytes)",
            )

        validator = MimeTypeValidator.from_settings(settings)
        if mime_type:
            validator.set_mime_type(",".join(mime_type))

        valid = validator.is_valid(file)

        return ValidationResponse(
            valid=valid,
            filename=file.filename,
            detected_type=validator.type,
            declared_type=file.content_type,
            errors=validator.get_messages(),
        )

    except HTTPException:
        raise
    except MimeValidatorError as e:
        # Bad signature database setup is a server fault
        logger.error(f"Validator misconfigured | file={file.filename} | error={e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Validation failed | file={file.filename} | error={e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/health")
async def health_check():
    """
    Health check endpoint
    """
    return {"status": "healthy", "service": "mime-validator"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
