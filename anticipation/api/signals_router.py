"""
Signals API Router: read and transition signals held by the SignalStore.

Endpoints:
    GET  /signals                       active signals (all with include_dismissed)
    GET  /signals/counts                {total, urgent, attention, info}
    GET  /signals/urgent                active urgent + critical
    GET  /signals/domain/{domain}       active signals in a life domain
    GET  /signals/type/{signal_type}    active signals of a type
    GET  /signals/{signal_id}           one signal
    POST /signals/{signal_id}/dismiss   mark dismissed
    POST /signals/{signal_id}/act       mark acted on

Unknown ids return 404. Unknown domain/type values are rejected with 422
by path validation.

Usage in server.py:
    from anticipation.api.signals_router import signals_router
    app.include_router(signals_router)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..intelligence.models import LifeDomain, Signal, SignalType
from ..intelligence.signal_store import SignalNotFoundError, SignalStore
from .auth import require_auth
from .response_models import SignalCountsResponse, SignalListResponse, SignalModel

logger = logging.getLogger(__name__)

signals_router = APIRouter(
    prefix="/signals",
    tags=["Signals"],
    dependencies=[Depends(require_auth)],
)


def get_store(request: Request) -> SignalStore:
    """The SignalStore attached to the app by create_app()."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Signal store not configured")
    return store


def _list_response(signals: list[Signal]) -> SignalListResponse:
    return SignalListResponse(
        items=[SignalModel.from_signal(s) for s in signals],
        total=len(signals),
    )


@signals_router.get("", response_model=SignalListResponse)
def list_signals(
    include_dismissed: bool = Query(False, description="Include dismissed and expired signals"),
    store: SignalStore = Depends(get_store),
):
    signals = store.all_signals() if include_dismissed else store.active_signals()
    return _list_response(signals)


@signals_router.get("/counts", response_model=SignalCountsResponse)
def signal_counts(store: SignalStore = Depends(get_store)):
    return SignalCountsResponse(**store.signal_count())


@signals_router.get("/urgent", response_model=SignalListResponse)
def urgent_signals(store: SignalStore = Depends(get_store)):
    return _list_response(store.urgent_signals())


@signals_router.get("/domain/{domain}", response_model=SignalListResponse)
def signals_by_domain(domain: LifeDomain, store: SignalStore = Depends(get_store)):
    return _list_response(store.signals_by_domain(domain))


@signals_router.get("/type/{signal_type}", response_model=SignalListResponse)
def signals_by_type(signal_type: SignalType, store: SignalStore = Depends(get_store)):
    return _list_response(store.signals_by_type(signal_type))


@signals_router.get("/{signal_id}", response_model=SignalModel)
def get_signal(signal_id: str, store: SignalStore = Depends(get_store)):
    signal = store.get(signal_id)
    if signal is None:
        raise HTTPException(status_code=404, detail=f"Signal not found: {signal_id}")
    return SignalModel.from_signal(signal)


@signals_router.post("/{signal_id}/dismiss", response_model=SignalModel)
def dismiss_signal(signal_id: str, store: SignalStore = Depends(get_store)):
    try:
        signal = store.dismiss_signal(signal_id)
    except SignalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return SignalModel.from_signal(signal)


@signals_router.post("/{signal_id}/act", response_model=SignalModel)
def act_on_signal(signal_id: str, store: SignalStore = Depends(get_store)):
    try:
        signal = store.act_on_signal(signal_id)
    except SignalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return SignalModel.from_signal(signal)
