import re
from typing import Optional
from urllib.parse import parse_qs, urlsplit

# Query parameters that only show up mid-way through an auth redirect flow
AUTH_FLOW_PARAMS = frozenset({"state", "nonce", "code"})
_OIDC_AUTH_RE = re.compile(r"/openid-connect/auth(?:/|$)", re.IGNORECASE)


def is_auth_flow(path: str, query: str) -> bool:
    if _OIDC_AUTH_RE.search(path):
        return True
    params = parse_qs(query, keep_blank_values=True)
    return any(k.lower() in AUTH_FLOW_PARAMS for k in params)


def normalize_url(raw: str) -> Optional[str]:
    """Rewrite a target URL into the form worth probing.

    Login/redirect URLs (OIDC auth endpoints, or anything carrying
    ``state``/``nonce``/``code``) collapse to the bare origin, since probing
    them unauthenticated only produces redirects and 4xx noise. Everything
    else keeps origin + path; query and fragment are dropped.

    Returns None when the input has no usable scheme and host.
    """
    if not raw or not isinstance(raw, str):
        return None
    try:
        parts = urlsplit(raw.strip())
        # .port raises on a malformed port
        parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc or not parts.hostname:
        return None

    origin = f"{parts.scheme.lower()}://{parts.netloc}"
    if is_auth_flow(parts.path, parts.query):
        return origin + "/"
    return origin + (parts.path or "/")
