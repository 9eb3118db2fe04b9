# lb_ipam/api/deps.py
from fastapi import Request

from ..core.controller import Controller


def get_controller(request: Request) -> Controller:
    return request.app.state.controller
