#!/usr/bin/env python3
"""Create the ClawAgent configuration and data directory."""

import sys

from rich.console import Console
from rich.prompt import Confirm, Prompt

from clawagent.clients import get_supported_providers, is_local_provider
from clawagent.clients.factory import PROVIDER_SPECS
from clawagent.services.config import ConfigManager


def main() -> None:
    """Interactively write config.json and the default prompt sections."""
    console = Console()
    manager = ConfigManager(sys.argv[1] if len(sys.argv) > 1 else None)

    if manager.exists and not Confirm.ask(f"{manager.config_path} already exists. Overwrite?", default=False):
        console.print("[yellow]Keeping the existing configuration[/yellow]")
        return

    manager.set_default()

    provider = Prompt.ask("Provider", choices=get_supported_providers(), default="openai")
    local = is_local_provider(provider)
    api_key = "" if local else Prompt.ask("API key (leave empty to use the environment)", default="", password=True)
    api_base = Prompt.ask("API base URL (empty for the provider default)", default="")
    provider_spec = PROVIDER_SPECS[provider]
    if provider_spec.suggested_models:
        console.print(f"Suggested models: {', '.join(provider_spec.suggested_models)}")
    model = Prompt.ask("Model", default=provider_spec.default_model or "")
    workspace = Prompt.ask("Workspace directory", default=manager.config.agents.workspace)

    manager.set_provider(provider, api_key, api_base=api_base or None, default_model=model or None, is_local=local)
    manager.config.default_provider = provider
    manager.config.agents.model = model or None
    manager.config.agents.workspace = workspace

    manager.save()
    manager.initialize_data_dir()

    console.print(f"[green]Configuration written to {manager.config_path}[/green]")
    console.print(f"Edit the Markdown files in {manager.data_dir} to shape the agent's prompt.")


if __name__ == "__main__":
    main()
