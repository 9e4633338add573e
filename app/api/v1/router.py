from fastapi import APIRouter

from app.api.routers import admin, auth, contracts, extensions, invoices, roles, termination, units, users

api_router = APIRouter()

api_router.include_router(roles.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(units.router)
api_router.include_router(contracts.router)
api_router.include_router(termination.router)
api_router.include_router(extensions.router)
api_router.include_router(invoices.router)
api_router.include_router(admin.router)
