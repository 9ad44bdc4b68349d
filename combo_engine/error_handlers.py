from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from combo_engine.repositories.errors import RepoError
from combo_engine.utils.log import logger


async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        {"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers
    )


async def repo_exception_handler(request: Request, exc: RepoError):
    logger.exception("Unhandled repository error")
    return JSONResponse({"detail": "Error accessing tables"}, status_code=500)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse({"detail": "Gremlins."}, status_code=500)


def register_error_handlers(app: FastAPI) -> None:
    # handlers take narrower exception types than the Exception the signature expects
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RepoError, repo_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
