import httpx

from mission_remote import codec
from mission_remote.codec import RpcCall
from mission_remote.session import Session

SESSION_HEADER = "X-Transmission-Session-Id"
DEFAULT_TIMEOUT = 10.0


def build_request(call: RpcCall, session: Session, timeout: float | None = DEFAULT_TIMEOUT) -> httpx.Request:
    """POST carrying the encoded call, credentials and current session token.

    Every request carries a deadline; None falls back to DEFAULT_TIMEOUT.
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": session.credentials.basic_auth_header(),
    }
    token = session.token
    if token:
        headers[SESSION_HEADER] = token
    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    return httpx.Request(
        "POST",
        session.endpoint.url,
        headers=headers,
        content=codec.encode(call),
        extensions={"timeout": httpx.Timeout(timeout).as_dict()},
    )
