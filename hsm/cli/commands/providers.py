"""Show which login providers are configured."""

import cyclopts

from hsm.cli.console import get_console
from hsm.config import Config
from hsm.infrastructure.auth.provider_registry import StaticProviderRegistry

app = cyclopts.App(name="providers", help="List login providers")


@app.default
def providers() -> None:
    """List supported login providers and whether credentials are set."""
    config = Config()  # type: ignore[call-arg]
    registry = StaticProviderRegistry.from_config(config.auth)

    rows = [
        {
            "id": c.id,
            "name": c.name,
            "enabled": "[green]yes[/green]" if c.enabled else "[dim]no[/dim]",
            "callback": f"{config.auth.callback_base_url.rstrip('/')}/{c.id}/callback",
        }
        for c in registry.capabilities()
    ]
    get_console().table(
        rows,
        [("id", "ID"), ("name", "Name"), ("enabled", "Enabled"), ("callback", "Callback URL")],
        title="Login providers",
    )
