"""API module."""

from fastapi import APIRouter

from txparser.api.endpoints import parser

api_router = APIRouter()

# Include routers
api_router.include_router(parser.router)
