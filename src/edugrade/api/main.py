from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from edugrade import __version__
from edugrade.core.exceptions import (
    DatabaseError,
    InvalidSubmissionError,
    NotFoundError,
    ValidationError,
)
from edugrade.core.services.logging import get_logger

app = FastAPI(title="EduGrade API", version=__version__)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidSubmissionError)
async def invalid_submission_handler(request: Request, exc: InvalidSubmissionError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError):
    get_logger(__name__).error("api.database_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "Failed to save the attempt"})


from edugrade.api.routes import blocks, statistics

app.include_router(blocks.router)
app.include_router(statistics.router)


@app.get("/api/status")
async def get_status():
    return {"status": "online", "version": __version__}
