"""Transaction parser API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from txparser.services.tx_parser import (
    CurrentBlockResponse,
    Parser,
    SubscribeRequest,
    SubscribeResponse,
    Transaction,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Parser"])


def get_parser(request: Request) -> Parser:
    """Get the parser owned by the running application."""
    return request.app.state.parser


@router.get("/current-block", response_model=CurrentBlockResponse)
async def get_current_block(
    parser: Annotated[Parser, Depends(get_parser)],
) -> CurrentBlockResponse:
    """Get the last fully parsed block."""
    return CurrentBlockResponse(current_block=parser.current_block())


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    body: SubscribeRequest,
    parser: Annotated[Parser, Depends(get_parser)],
) -> SubscribeResponse:
    """Add an address to the watchlist.

    Returns ``subscribed: false`` when the address was already watched.
    """
    return SubscribeResponse(subscribed=parser.subscribe(body.address))


@router.get("/transactions", response_model=list[Transaction])
async def get_transactions(
    parser: Annotated[Parser, Depends(get_parser)],
    address: str = Query(..., min_length=1, description="Watched address"),
) -> list[Transaction]:
    """List inbound and outbound transactions recorded for an address."""
    return parser.transactions_for(address)
