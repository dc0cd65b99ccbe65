"""
Request snapshot for the active Flask request.
"""

from typing import Optional

from flask import has_request_context, request

from .models import RequestInfo


def request_info_from_flask() -> Optional[RequestInfo]:
    """Return ``{uri, method, ip}`` of the active request, or ``None`` outside one."""
    if not has_request_context():
        return None

    uri = request.path
    if request.query_string:
        uri += "?" + request.query_string.decode("utf-8", errors="replace")
    return RequestInfo(uri=uri, method=request.method, ip=request.remote_addr)
