"""Custom request tag dumping every request header.

Run with ``python examples/custom_tags.py`` and ``curl localhost:8080/index``.
"""

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from accesslog import AccessLogFormat, AccessLogMiddleware, configure_logging

configure_logging(level="DEBUG", json_format=False)


def all_headers(request):
    pairs = [f"{name}:{','.join(values)}" for name, values in request.headers.items()]
    return "{" + ",".join(pairs) + "}"


log_format = AccessLogFormat(
    "%t  %a  %{r}a  %r %s %b(bytes) %T(seconds) %D(milliseconds) %{ALL_REQ_HEADERS}xi"
).register_request_tag("ALL_REQ_HEADERS", all_headers)

app = FastAPI()
app.add_middleware(AccessLogMiddleware, log_format=log_format)


@app.get("/index")
def index():
    return PlainTextResponse("hello world!")


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8080, log_config=None)
