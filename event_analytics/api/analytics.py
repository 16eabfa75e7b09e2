# api/analytics.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from event_analytics.api.deps import (
    get_aggregation_service,
    get_application_identity,
    get_current_account,
    get_ingestion_service,
)
from event_analytics.api.rate_limit import rate_limit_collect
from event_analytics.crud.crud_auth import AccountIdentity, ApplicationIdentity
from event_analytics.schemas.event import EventCollect, EventCollected, parse_date_bound
from event_analytics.services.aggregation import AggregationService
from event_analytics.services.ingestion import EventIngestionService

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/collect", status_code=201, response_model=EventCollected)
def collect_event_route(
    payload: EventCollect,
    identity: ApplicationIdentity = Depends(get_application_identity),
    _limited: None = Depends(rate_limit_collect),
    service: EventIngestionService = Depends(get_ingestion_service),
):
    service.collect(identity, payload)
    return EventCollected()


@router.get("/event-summary")
def event_summary_route(
    event: str = Query(..., min_length=1),
    app_id: str = Query(..., min_length=1),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    account: AccountIdentity = Depends(get_current_account),
    service: AggregationService = Depends(get_aggregation_service),
):
    start = parse_date_bound(start_date, "startDate")
    end = parse_date_bound(end_date, "endDate")
    data = service.summarize(account, event_type=event, app_id=app_id, start=start, end=end)
    return {"success": True, "data": data}


@router.get("/user-stats")
def user_stats_route(
    user_id: str = Query(..., min_length=1, alias="userId"),
    account: AccountIdentity = Depends(get_current_account),
    service: AggregationService = Depends(get_aggregation_service),
):
    return {"success": True, "data": service.user_stats(user_id)}


@router.get("/summary")
def account_summary_route(
    app_id: str = Query(..., min_length=1, alias="appId"),
    account: AccountIdentity = Depends(get_current_account),
    service: AggregationService = Depends(get_aggregation_service),
):
    return {"success": True, "data": service.account_summary(account, app_id)}


@router.get("/events")
def event_timeseries_route(
    app_id: str = Query(..., min_length=1, alias="appId"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    event_type: Optional[str] = Query(default=None, alias="eventType"),
    account: AccountIdentity = Depends(get_current_account),
    service: AggregationService = Depends(get_aggregation_service),
):
    start = parse_date_bound(start_date, "startDate")
    end = parse_date_bound(end_date, "endDate")
    data = service.event_timeseries(account, app_id, start=start, end=end, event_type=event_type)
    return {"success": True, "data": data}
