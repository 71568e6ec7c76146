from fastapi import APIRouter

from app.api.balances import balance_router, employee_balance_router
from app.api.reports import reports_router
from app.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(employee_balance_router)
api_router.include_router(balance_router)
api_router.include_router(reports_router)
