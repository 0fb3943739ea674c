from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from txgraph import __version__
from txgraph.exceptions import (
    DeadlineExceeded,
    InvalidConfiguration,
    TxGraphError,
    ValidationError,
)
from txgraph.routers import network, nodes, patterns
from txgraph.utils.hasher import get_timestamp
from txgraph.utils.logger import get_logger


logger = get_logger(__name__)

app = FastAPI(
    title="TxGraph API",
    description="Transaction graph analytics: validation, network metrics and gather/scatter detection",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


STATUS_CODES = {
    ValidationError: 400,
    InvalidConfiguration: 422,
    DeadlineExceeded: 503,
}


@app.exception_handler(TxGraphError)
async def txgraph_error_handler(request: Request, exc: TxGraphError):
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 500
    )
    logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


app.include_router(network.router)
app.include_router(nodes.router)
app.include_router(patterns.router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "timestamp": get_timestamp()}
