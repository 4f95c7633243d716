import time

from fastapi import FastAPI, Request

from giftbot.routers import chat, metrics, recommend
from giftbot.utils import slog
from giftbot.utils.logging import configure_logging
from giftbot.utils.metrics import record_endpoint

configure_logging()

app = FastAPI(
    title="GiftBot Relevance Engine",
    description="Conversational gift assistant: reply generation, product scoring and recommendations.",
)


def _route_path(request: Request) -> str:
    # "/chat/{session_id}/messages" rather than one bucket per session
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


@app.middleware("http")
async def _logging_middleware(request: Request, call_next):
    start = time.perf_counter()
    req_id = slog.new_request_id()
    client_ip = request.client.host if request.client else None
    try:
        response = await call_next(request)
    except Exception as e:
        slog.log_event(
            "request.error",
            request_id=req_id,
            method=request.method,
            path=request.url.path,
            latency_ms=int((time.perf_counter() - start) * 1000),
            client_ip=client_ip,
            error=repr(e),
            **(getattr(request.state, "log_context", None) or {}),
        )
        raise

    latency_ms = int((time.perf_counter() - start) * 1000)
    ctx = getattr(request.state, "log_context", None) or {}
    ctx.setdefault("rate_limited", response.status_code == 429)
    slog.log_request(
        request_id=req_id,
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        latency_ms=latency_ms,
        client_ip=client_ip,
        ctx=ctx,
    )
    record_endpoint(request.method, _route_path(request), latency_ms)
    response.headers["X-Request-ID"] = req_id
    return response


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(chat.router)
app.include_router(recommend.router)
app.include_router(metrics.router)
