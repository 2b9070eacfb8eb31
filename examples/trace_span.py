"""Correlate the access line with handler logs through a request id.

Both the ``index`` log line and the access line carry the same
``request_id`` field. Run with ``python examples/trace_span.py``.
"""

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from accesslog import (
    AccessLogFormat,
    AccessLogMiddleware,
    configure_logging,
    get_logger,
    request_id_span,
)

configure_logging(level="DEBUG", json_format=True)
logger = get_logger(__name__)


def dump(headers):
    return "{" + ",".join(f"{k}:{','.join(v)}" for k, v in headers.items()) + "}"


log_format = (
    AccessLogFormat(
        "%t  %a  %r %s %b(bytes) %T(seconds) %D(milliseconds) "
        "REQ_HEADERS:%{ALL_REQ_HEADERS}xi RES_HEADERS:%{ALL_RES_HEADERS}xo"
    )
    .register_request_tag("ALL_REQ_HEADERS", lambda req: dump(req.headers))
    .register_response_tag("ALL_RES_HEADERS", lambda res: dump(res.headers))
)

app = FastAPI()
app.add_middleware(AccessLogMiddleware, log_format=log_format, span_factory=request_id_span())


@app.get("/index")
def index():
    logger.info("index", a="123")
    return PlainTextResponse("hello world!")


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8080, log_config=None)
