from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from cryptopulse.errors import ConfigurationError, UpstreamFetchError
from cryptopulse.schemas.quote import CandlePoint, ErrorBody

router = APIRouter()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'error': message})


@router.get('/health')
def health(request: Request):
    service = request.app.state.quote_aggregator
    return {'status': 'ok', 'symbols': service.symbols}


@router.get('/prices', response_model=dict[str, float], responses={500: {'model': ErrorBody}})
def get_prices(request: Request):
    service = request.app.state.quote_aggregator
    try:
        return service.get_latest_prices()
    except UpstreamFetchError:
        return error_response(500, 'Failed to fetch prices')


@router.get(
    '/history',
    response_model=list[CandlePoint],
    responses={400: {'model': ErrorBody}, 500: {'model': ErrorBody}},
)
def get_history(
    request: Request,
    symbol: str | None = Query(default=None, description='BTCUSDT or btc'),
    interval: str | None = Query(default=None, description='candle interval, e.g. 1h'),
    limit: int | None = Query(default=None, description='number of most recent candles'),
):
    settings = request.app.state.get_settings()
    service = request.app.state.quote_aggregator
    try:
        points = service.get_price_history(
            symbol or settings.HISTORY_SYMBOL,
            interval or settings.HISTORY_INTERVAL,
            settings.HISTORY_LIMIT if limit is None else limit,
        )
    except ConfigurationError as exc:
        return error_response(400, str(exc))
    except UpstreamFetchError:
        return error_response(500, 'Failed to fetch history')
    return points


@router.get('/metrics')
def aggregator_metrics(request: Request):
    return request.app.state.quote_aggregator.metrics()
