from __future__ import annotations

import json
import logging

from shared.protocol.constants import ENCODING
from shared.protocol.messages import HTTPRequest, HTTPResponse

logger = logging.getLogger(__name__)


class HTTPService:
    """Echoes an HTTP request back as JSON: body, uploaded files and form fields."""

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        logger.debug("HTTP %s %s", request.method, request.url)
        body = {
            "body": request.body.decode(ENCODING, errors="replace"),
            "files": {
                name: {"filename": f.filename, "size": f.size, "tmpPath": f.tmp_path}
                for name, f in request.files.items()
            },
            "form": request.form,
        }
        return HTTPResponse(
            status_code=200,
            headers=request.headers,
            body=json.dumps(body, ensure_ascii=False).encode(ENCODING),
        )
