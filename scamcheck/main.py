import logging

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scamcheck.config import settings
from scamcheck.routers.analyze import router as analyze_router
from scamcheck.routers.report import router as report_router
from scamcheck.routers.upload import router as upload_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="ScamCheck API")

app.include_router(analyze_router)
app.include_router(upload_router)
app.include_router(report_router)


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Method not allowed"},
            headers=exc.headers,
        )
    return await http_exception_handler(request, exc)


@app.get("/")
def root():
    return {"message": "API is running!"}
