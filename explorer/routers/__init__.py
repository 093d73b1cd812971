"""Router package - collects all API routers and registers them on the FastAPI app."""

from fastapi import FastAPI

from explorer.routers import account, charts, stats, transaction


def register_all_routers(app: FastAPI):
    app.include_router(account.router)
    app.include_router(transaction.router)
    app.include_router(stats.router)
    app.include_router(charts.router)
