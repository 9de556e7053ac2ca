from __future__ import annotations

from fastapi import Request

from family_cloud.services.gateway_service import GatewayService


def get_gateway(request: Request) -> GatewayService:
    return request.app.state.gateway
