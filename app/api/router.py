"""
Router registration for the FPL Company Challenge API.
"""
from fastapi import FastAPI

from app.api import admin, fpl, health, leaderboard, registrations, users


def include_routers(app: FastAPI) -> None:
    """Include all API routers with the FastAPI application."""
    app.include_router(registrations.router, prefix="/api", tags=["registrations"])
    app.include_router(users.router, prefix="/api", tags=["users"])
    app.include_router(fpl.router, prefix="/api", tags=["fpl"])
    app.include_router(leaderboard.router, prefix="/api", tags=["leaderboard"])
    app.include_router(admin.router, prefix="/api", tags=["admin"])
    app.include_router(health.router, prefix="/api", tags=["health"])
