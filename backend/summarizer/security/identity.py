"""Client identity used as the rate-limit partition key."""

from starlette.requests import Request


def client_identity(request: Request, trust_proxy: bool = False, proxy_hops: int = 1) -> str:
    """
    Source IP of the request.

    With trust_proxy, X-Forwarded-For is read from the right: each trusted
    proxy appends the address it saw, so the entry `proxy_hops` from the end
    was written by our own infrastructure. Entries further left come from the
    client and are ignored. Without trust_proxy the header is ignored entirely.
    """
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if hops:
            return hops[-min(proxy_hops, len(hops))]
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
