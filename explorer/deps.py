"""Dependency helpers for router modules."""

from starlette.requests import Request


def get_server(request: Request):
    return request.app.state.server


def get_storage(request: Request):
    return request.app.state.server.storage
