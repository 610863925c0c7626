"""Main CLI application using Cyclopts."""

import cyclopts

from hsm.cli.commands import db, providers, server

app = cyclopts.App(
    name="hsm",
    help="Home Services Marketplace - identity federation server",
)

app.command(server.app, name="serve")
app.command(db.app, name="db")
app.command(providers.app, name="providers")

if __name__ == "__main__":
    app()
