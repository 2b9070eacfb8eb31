"""Default access-log format on a FastAPI app.

Run with ``python examples/basic.py`` and ``curl localhost:8080/index``.
"""

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from accesslog import AccessLogMiddleware, configure_logging

configure_logging(level="DEBUG", json_format=False)

app = FastAPI()
app.add_middleware(AccessLogMiddleware)


@app.get("/index")
def index():
    return PlainTextResponse("hello world!")


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8080, log_config=None)
