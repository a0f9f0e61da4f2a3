# Copyright (c) 2025 Trae AI. All rights reserved.

from typing import Optional
import typer
from src.cli.main import app as cli_app
from src.server.app import Server

app = typer.Typer(help="Media Library Sync - Keep a movie catalog in sync with your folders.")

# scan / titles
app.registered_commands.extend(cli_app.registered_commands)


@app.command("server")
def run_server(
    config_path: str = "config.yaml",
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Override the configured server port."),
):
    """
    Run the HTTP API with scheduled and watched synchronizations.
    """
    server = Server(config_path)
    if port:
        server.config.server_port = port
    try:
        server.run()
    finally:
        server.shutdown()


if __name__ == "__main__":
    app()
