#!/usr/bin/env python3
"""Interactive chat CLI for the ClawAgent gateway."""

import sys

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt


class ChatCLI:
    """Interactive chat interface for the agent gateway."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        """Initialize chat CLI."""
        self.base_url = base_url.rstrip("/")
        self.session_id: str | None = None
        self.console = Console()
        self.client = httpx.Client(timeout=300.0)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]ClawAgent - Interactive Chat[/bold blue]\n"
                "Type your messages to chat with the agent.\n"
                "Commands: /help, /new, /clear, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the gateway at {self.base_url}. Is it running?[/red]")
            return

        self.console.print("[green]Connected to the agent gateway[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                command = user_input.strip().lower()

                if command in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                    continue
                elif command == "/new":
                    self.session_id = None
                    self.console.print("[yellow]Started a new session[/yellow]")
                    continue
                elif command == "/clear":
                    self._clear_session()
                    continue
                elif command == "":
                    continue

                response = self._send_message(user_input)
                if response:
                    self._display_response(response)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the gateway."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _send_message(self, message: str) -> dict | None:
        """Send a message to the gateway."""
        payload = {"message": message}
        if self.session_id:
            payload["session_id"] = self.session_id

        try:
            with self.console.status("[dim]Thinking...[/dim]"):
                response = self.client.post(f"{self.base_url}/chat", json=payload)
        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
            return None

        if response.status_code != 200:
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
            return None

        data = response.json()
        self.session_id = data.get("session_id")
        return data

    def _clear_session(self) -> None:
        """Clear the current session's history on the gateway."""
        if not self.session_id:
            self.console.print("[yellow]No active session[/yellow]")
            return

        try:
            response = self.client.delete(f"{self.base_url}/sessions/{self.session_id}")
        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
            return

        if response.status_code == 204:
            self.console.print(f"[yellow]Session {self.session_id} cleared[/yellow]")
            self.session_id = None
        else:
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")

    def _display_response(self, response: dict) -> None:
        """Display the agent's reply with its usage counters."""
        assistant_text = response.get("response") or "(empty response)"
        usage = (
            f"tokens in {response.get('input_tokens', 0)} / out {response.get('output_tokens', 0)}, "
            f"tool calls {response.get('tool_calls', 0)}"
        )

        self.console.print(
            Panel(
                Markdown(assistant_text),
                title="[bold green]Agent[/bold green]",
                subtitle=f"[dim]{usage}[/dim]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /new - Start a new session, keeping the old history on the gateway
• /clear - Delete the current session's history
• /quit or /exit - Exit the chat

[bold]Tips:[/bold]
• The agent can read and write files and run shell commands in its workspace
• Stored skills are offered to the agent as skill_<name> tools
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    chat = ChatCLI(base_url)
    chat.start()


if __name__ == "__main__":
    main()
