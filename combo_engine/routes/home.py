import platform

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from combo_engine.settings import settings

router = APIRouter()


@router.get("/healthz", response_class=JSONResponse)
def healthz():
    return {"status": "ok"}


@router.get("/meta")
async def get_meta():
    return {
        "app_name": settings.PROJECT_NAME,
        "version": "0.1.0",
        "python_version": platform.python_version(),
        "environment": settings.ENV,
    }
