from __future__ import annotations

from typing import Callable, Optional

from .base import BaseGateway, CompanyScope
from .rest import RestGateway

__all__ = ["BaseGateway", "CompanyScope", "RestGateway", "get_gateway"]


def get_gateway(
    token_provider: Callable[[], Optional[str]] | None = None,
    on_unauthorized: Callable[[], None] | None = None,
) -> BaseGateway:
    """Gateway configured from settings; the auth layer supplies the hooks."""
    return RestGateway(token_provider=token_provider, on_unauthorized=on_unauthorized)
