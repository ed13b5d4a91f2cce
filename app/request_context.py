"""Per-request client metadata used for attribution and alerting."""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from fastapi import Request

UTM_KEYS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")


def get_client_ip(request: Request) -> str:
    """Resolve the caller IP, preferring proxy headers over the socket peer"""
    cf_ip = request.headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def extract_utm_params(raw: Optional[dict[str, Any]]) -> dict[str, str]:
    """Keep only the known UTM keys that carry a value"""
    if not raw or not isinstance(raw, dict):
        return {}
    return {key: str(raw[key]) for key in UTM_KEYS if raw.get(key)}


@dataclass(frozen=True)
class ClientContext:
    ip: str = "unknown"
    user_agent: str = "unknown"
    client_id: Optional[str] = None
    utm_params: dict[str, str] = field(default_factory=dict)
    page_path: Optional[str] = None

    def with_attribution(
        self, utm_params: Optional[dict[str, Any]], page_path: Optional[str]
    ) -> "ClientContext":
        return replace(
            self,
            utm_params=extract_utm_params(utm_params),
            page_path=page_path or self.page_path,
        )


def get_client_context(request: Request) -> ClientContext:
    """FastAPI dependency building the context from request headers"""
    return ClientContext(
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent") or "unknown",
        client_id=request.headers.get("x-client-id"),
    )
