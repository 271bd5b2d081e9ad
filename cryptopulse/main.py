from __future__ import annotations

from contextlib import asynccontextmanager

import requests
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from cryptopulse.api.routes import error_response, router
from cryptopulse.config.settings import get_settings
from cryptopulse.integrations.binance_rest import BinanceRestClient
from cryptopulse.services.quote_aggregator import QuoteAggregatorService


def build_quote_aggregator(settings, session=None) -> QuoteAggregatorService:
    rest_client = BinanceRestClient(
        base_url=settings.UPSTREAM_BASE_URL,
        timeout_sec=settings.UPSTREAM_TIMEOUT_SEC,
        session=session,
    )
    return QuoteAggregatorService(
        rest_client=rest_client,
        symbols=settings.SYMBOLS,
        quote_asset=settings.QUOTE_ASSET,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.get_settings()
    session = requests.Session()
    app.state.upstream_session = session
    app.state.quote_aggregator = build_quote_aggregator(settings, session=session)
    print(f"[APP][startup] symbols={','.join(app.state.quote_aggregator.symbols)}", flush=True)

    try:
        yield
    finally:
        session.close()
        app.state.upstream_session = None
        print("[APP][shutdown] upstream_session=closed", flush=True)


app = FastAPI(title="CryptoPulse Quote Aggregator", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", []))
        message = f"invalid {field}: {first_error.get('msg', 'invalid value')}"
    else:
        message = "invalid request"
    return error_response(400, message)


app.include_router(router, prefix="/api")

# lifespan swaps in a pooled-session aggregator; this one serves requests made without it
app.state.get_settings = get_settings
app.state.upstream_session = None
app.state.quote_aggregator = build_quote_aggregator(get_settings())


def run() -> None:
    import uvicorn

    settings = get_settings()
    print(f"[APP][listen] url=http://{settings.HOST}:{settings.PORT}", flush=True)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level="info")
