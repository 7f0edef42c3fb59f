# Directory API routes, mounted at the application root.
from fastapi import APIRouter

# Import individual routers
from support_directory.routes.auth import auth_router
from support_directory.routes.search import search_router
from support_directory.routes.branches import branches_router
from support_directory.routes.admins import admins_router
from support_directory.routes.clients import clients_router
from support_directory.routes.analytics import analytics_router

# Aggregate into a single router that FastAPI can mount
directory_router = APIRouter()
directory_router.include_router(auth_router)
directory_router.include_router(search_router)
directory_router.include_router(branches_router)
directory_router.include_router(admins_router)
directory_router.include_router(clients_router)
directory_router.include_router(analytics_router)
