"""Azure Functions entry point for AppEdge.

Every route and method is handed to the gateway ASGI app, so local handlers,
rejections and upstream forwarding behave as they do under uvicorn.
"""

from __future__ import annotations

from .main import app as asgi_app

FUNCTION_NAME = "app_edge_http"
HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

try:
    import azure.functions as func
except Exception:  # pragma: no cover
    func = None

function_app = None

if func is not None:
    _middleware = func.AsgiMiddleware(asgi_app)
    function_app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

    @function_app.function_name(name=FUNCTION_NAME)
    @function_app.route(route="{*route}", methods=HTTP_METHODS)
    def main(req: func.HttpRequest, context: func.Context) -> func.HttpResponse:
        return _middleware.handle(req, context)
