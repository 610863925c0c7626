"""Run the HTTP server."""

import cyclopts
import logfire
import uvicorn

from hsm.cli.console import get_console

app = cyclopts.App(name="serve", help="Run the HTTP server")


@app.default
def serve(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """Run the API server in the foreground.

    Args:
        host: Host to bind to.
        port: Port to listen on.
        reload: Restart on code changes (development only).
    """
    get_console().info(f"Starting server on http://{host}:{port}")

    # Traces are only exported when LOGFIRE_TOKEN is set
    logfire.configure(send_to_logfire="if-token-present")

    uvicorn.run(
        "hsm.application.api.rest.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )
