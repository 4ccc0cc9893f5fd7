from fastapi import Request

from config import Settings
from database import Store
from gateway import StripeGateway


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_gateway(request: Request) -> StripeGateway:
    return request.app.state.gateway


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
