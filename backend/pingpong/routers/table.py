from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ..schemas import Side, TableStateOut
from ..services.table import TableState

router = APIRouter(tags=["table"])

MISS = "MISS"


def get_table(request: Request) -> TableState:
    return request.app.state.table


async def _hit(table: TableState, side: Side) -> PlainTextResponse:
    outcome = await table.attempt_hit(side)
    if outcome.accepted:
        return PlainTextResponse(outcome.next_side.value)
    return PlainTextResponse(MISS, status_code=409)


# GET /
@router.get("/", response_model=TableStateOut)
async def spectate(table: TableState = Depends(get_table)) -> TableStateOut:
    return await table.get_state()


# GET /ping -> "pong" when the hit lands, "MISS" otherwise
@router.get("/ping", response_class=PlainTextResponse)
async def ping(table: TableState = Depends(get_table)) -> PlainTextResponse:
    return await _hit(table, Side.PING)


@router.get("/pong", response_class=PlainTextResponse)
async def pong(table: TableState = Depends(get_table)) -> PlainTextResponse:
    return await _hit(table, Side.PONG)
