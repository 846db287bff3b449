from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests
import urllib3
from requests.auth import HTTPBasicAuth

from . import __version__
from .errors import ValidationError

HEADER_RE = re.compile(r"^([\w-]+):\s*(.+)")
AUTH_RE = re.compile(r"^(.+):([^\s].+)")
USER_AGENT = f"load-control/{__version__}"


@dataclass
class RequestOptions:
    url: str
    method: str = "GET"
    body: str = ""
    body_file: Optional[str] = None
    accept: str = ""
    content_type: str = "text/plain"
    headers: List[str] = field(default_factory=list)
    auth: str = ""
    host: str = ""
    user_agent: str = ""
    timeout: float = 20.0
    disable_compression: bool = False
    disable_keepalive: bool = False
    disable_redirects: bool = False
    proxy: str = ""


def parse_header(value: str) -> Tuple[str, str]:
    match = HEADER_RE.match(value)
    if match is None:
        raise ValidationError(f"could not parse header {value!r}; expected 'Name: value'")
    return match.group(1), match.group(2)


def parse_basic_auth(value: str) -> Tuple[str, str]:
    match = AUTH_RE.match(value)
    if match is None:
        raise ValidationError(f"could not parse auth {value!r}; expected 'user:password'")
    return match.group(1), match.group(2)


def load_body(options: RequestOptions) -> bytes:
    if options.body_file:
        try:
            return Path(options.body_file).read_bytes()
        except OSError as exc:
            raise ValidationError(f"failed to read body file {options.body_file}: {exc}") from exc
    return options.body.encode()


def build_headers(options: RequestOptions) -> Dict[str, str]:
    headers: Dict[str, str] = {"Content-Type": options.content_type}
    for raw in options.headers:
        name, value = parse_header(raw)
        headers[name] = value
    if options.accept:
        headers["Accept"] = options.accept
    if options.host:
        headers["Host"] = options.host

    ua = next((v for k, v in headers.items() if k.lower() == "user-agent"), "")
    headers = {k: v for k, v in headers.items() if k.lower() != "user-agent"}
    if options.user_agent:
        headers["User-Agent"] = f"{options.user_agent} {USER_AGENT}"
    elif ua:
        headers["User-Agent"] = f"{ua} {USER_AGENT}"
    else:
        headers["User-Agent"] = USER_AGENT

    if options.disable_compression:
        headers["Accept-Encoding"] = "identity"
    if options.disable_keepalive:
        headers["Connection"] = "close"
    return headers


def build_session(options: RequestOptions) -> requests.Session:
    session = requests.Session()
    # Reporter endpoints are commonly self-signed; certificates are not checked.
    session.verify = False
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    session.trust_env = False
    if options.proxy:
        if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", options.proxy):
            raise ValidationError(f"proxy address is invalid: {options.proxy!r}")
        session.proxies = {"http": options.proxy, "https": options.proxy}
    return session


def build_request(options: RequestOptions, session: requests.Session) -> requests.PreparedRequest:
    """Prepare the template request. Its body is attached per send by the cloner."""
    auth = None
    if options.auth:
        auth = HTTPBasicAuth(*parse_basic_auth(options.auth))
    request = requests.Request(
        method=options.method.upper(),
        url=options.url,
        headers=build_headers(options),
        auth=auth,
    )
    try:
        return session.prepare_request(request)
    except requests.RequestException as exc:
        raise ValidationError(f"failed to create http request: {exc}") from exc
