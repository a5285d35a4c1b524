"""
Client IP resolution for FastAPI requests.
"""

from __future__ import annotations

import ipaddress

from fastapi import Request

# Proxy headers checked before the socket address, highest priority first
_FORWARDING_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def get_client_ip(request: Request) -> str:
    """Extract the storefront visitor's IP from a FastAPI ``Request``.

    Returns the first address of the first forwarding header present, the
    direct connection address otherwise, or ``""`` when neither exists.
    """
    for header in _FORWARDING_HEADERS:
        ip_value = request.headers.get(header)
        if ip_value:
            client_ip = ip_value.split(",")[0].strip()
            if client_ip:
                return client_ip

    return request.client.host if request.client else ""


def is_loopback(ip_address: str) -> bool:
    try:
        return ipaddress.ip_address(ip_address).is_loopback
    except ValueError:
        return False
