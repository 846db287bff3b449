from __future__ import annotations

import io

from requests import PreparedRequest
from requests.structures import CaseInsensitiveDict


def clone_request(template: PreparedRequest, body: bytes = b"") -> PreparedRequest:
    """Return a copy of ``template`` that is safe to send once.

    The header mapping is copied so the clone can be mutated without
    touching the template, and a non-empty ``body`` gets its own freshly
    rewound reader because a consumed reader cannot be sent again.
    """
    clone = template.copy()
    clone.headers = CaseInsensitiveDict(template.headers)
    if body:
        clone.body = io.BytesIO(body)
        clone.headers["Content-Length"] = str(len(body))
    else:
        clone.body = None
    return clone
