import uuid
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", str(uuid.uuid4()))


def _envelope(request: Request, data, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "data": jsonable_encoder(data),
            "request_id": _request_id(request),
        },
    )


def ok(request: Request, data):
    return _envelope(request, data, 200)


def created(request: Request, data):
    return _envelope(request, data, 201)


def no_content():
    return Response(status_code=204)


def err(request: Request, code: str, message: str, status_code: int = 400, details=None):
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message, "details": jsonable_encoder(details or {})},
            "request_id": _request_id(request),
        },
    )
