# Run from project root: uvicorn boxchat.main:app --reload

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from boxchat.api.routes import router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="Collection Chat Backend")
app.include_router(router)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request: {where}: {first.get('msg', 'malformed body')}" if where else "Invalid request body"
    return JSONResponse(status_code=422, content={"error": message})
