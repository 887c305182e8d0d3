from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.engine import Engine

from stay_sync.dependencies import get_db_engine
from stay_sync.errors import StayError
from stay_sync.routes._helpers import http_error
from stay_sync.schemas.reservations import (
    CurrentAndNextOut,
    ReservationCreatePayload,
    ReservationDeletedOut,
    ReservationOut,
    ReservationUpdatePayload,
)
from stay_sync.services.reservations import (
    cancel_reservation,
    create_reservation,
    delete_reservation,
    get_current_and_next,
    get_reservation,
    list_reservations,
    update_reservation,
)
from stay_sync.utils.datetime import utc_now

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/reservations", response_model=list[ReservationOut])
def list_reservations_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    period: Optional[str] = Query(None, description="past, current, upcoming or all"),
    user_id: Optional[str] = Query(None, alias="userId", description="Guest reference"),
    limit: Optional[int] = Query(None),
    engine: Engine = Depends(get_db_engine),
) -> Any:
    """
    List stays, newest check-in first. Statuses are swept before reading.

    Args:
        status_filter: Only this status
        period: Derived period; overrides status when given
        user_id: Only stays of this guest
        limit: Max number of results
        engine: Database engine (injected)

    Returns:
        list[ReservationOut]: Matching stays
    """
    try:
        return list_reservations(
            engine,
            utc_now(),
            status=status_filter,
            period=period,
            guest_ref=user_id,
            limit=limit,
        )
    except StayError as err:
        raise http_error(err)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_list_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reservations/current", response_model=CurrentAndNextOut)
def current_reservation_endpoint(engine: Engine = Depends(get_db_engine)) -> Any:
    """Stay in progress and the next upcoming one."""
    try:
        return get_current_and_next(engine, utc_now())
    except Exception as e:
        logger.exception("current_reservation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reservations/{reservation_id}", response_model=ReservationOut)
def get_reservation_endpoint(
    reservation_id: str,
    engine: Engine = Depends(get_db_engine),
) -> Any:
    try:
        return get_reservation(engine, reservation_id, utc_now())
    except StayError as err:
        raise http_error(err)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_fetch_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/reservations",
    response_model=ReservationOut,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation_endpoint(
    payload: ReservationCreatePayload,
    engine: Engine = Depends(get_db_engine),
    x_actor: Optional[str] = Header(None, description="Who is making the change"),
) -> Any:
    """
    Create a stay.

    Args:
        payload: Stay fields
        engine: Database engine (injected)
        x_actor: Audit actor stored as created_by (default "admin")

    Returns:
        ReservationOut: The stored stay (201)

    Raises:
        HTTPException: 400 on validation errors, 409 when the dates are taken
    """
    try:
        return create_reservation(
            engine,
            payload.model_dump(exclude_none=True),
            utc_now(),
            actor=x_actor or "admin",
        )
    except StayError as err:
        raise http_error(err)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/reservations/{reservation_id}", response_model=ReservationOut)
def update_reservation_endpoint(
    reservation_id: str,
    payload: ReservationUpdatePayload,
    engine: Engine = Depends(get_db_engine),
) -> Any:
    """
    Partially update a stay. Only the fields present in the body are changed.

    Raises:
        HTTPException: 400, 404 or 409
    """
    try:
        return update_reservation(
            engine,
            reservation_id,
            payload.model_dump(exclude_unset=True),
            utc_now(),
        )
    except StayError as err:
        raise http_error(err)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_update_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/reservations/{reservation_id}", response_model=ReservationDeletedOut)
def delete_reservation_endpoint(
    reservation_id: str,
    cancel: bool = Query(True, description="true: cancel and keep the record; false: delete it"),
    engine: Engine = Depends(get_db_engine),
) -> Any:
    """
    Cancel (soft) or permanently delete a stay.

    Args:
        reservation_id: Stay id
        cancel: Soft cancel when true (default), hard delete when false
        engine: Database engine (injected)

    Returns:
        dict: Message, plus the cancelled stay on soft cancel
    """
    try:
        if cancel:
            reservation = cancel_reservation(engine, reservation_id, utc_now())
            return {"message": "Reservation cancelled", "reservation": reservation}

        delete_reservation(engine, reservation_id)
        return {"message": "Reservation deleted"}
    except StayError as err:
        raise http_error(err)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_delete_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
