#!/usr/bin/env python3
"""Interactive chat CLI for testing the Snowscribe AI service."""

import sys

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table


class ChatCLI:
    """Interactive chat interface over the session endpoints."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        project_id: str = "cli-project",
        user_id: str = "cli-user",
    ):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.project_id = project_id
        self.session_id: str | None = None
        self.console = Console()
        self.client = httpx.Client(timeout=120.0, headers={"X-User-Id": user_id})

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]Snowscribe AI - Interactive Chat[/bold blue]\n"
                "Pick a tool, then type your messages.\n"
                "Commands: /tool <id>, /tools, /clear, /help, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        self.console.print("[green]Connected to Snowscribe AI service[/green]\n")

        if not self._create_session():
            return

        self._show_tools()

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                command = user_input.strip()

                if command.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command.lower() == "/help":
                    self._show_help()
                    continue
                elif command.lower() == "/tools":
                    self._show_tools()
                    continue
                elif command.lower() == "/clear":
                    self._clear()
                    continue
                elif command.lower().startswith("/tool"):
                    self._switch_tool(command[len("/tool") :].strip())
                    continue
                elif command == "":
                    continue

                session = self._send_message(user_input)
                if session:
                    self._display_response(session)

        except KeyboardInterrupt:
            pass
        finally:
            if self.session_id:
                self.client.delete(f"{self.base_url}/sessions/{self.session_id}")
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _create_session(self) -> bool:
        response = self.client.post(f"{self.base_url}/sessions", json={"project_id": self.project_id})
        if response.status_code != 201:
            self.console.print(f"[red]Could not create session: {response.status_code} - {response.text}[/red]")
            return False
        self.session_id = response.json()["session_id"]
        return True

    def _switch_tool(self, tool_id: str) -> None:
        if not tool_id:
            self.console.print("[yellow]Usage: /tool <tool_id>[/yellow]")
            return
        response = self.client.put(f"{self.base_url}/sessions/{self.session_id}/tool", json={"tool_id": tool_id})
        if response.status_code == 200:
            self.console.print(f"[yellow]Switched to {tool_id}; conversation cleared[/yellow]")
        elif response.status_code == 422:
            self.console.print(f"[red]Unknown tool: {tool_id}. Use /tools to list them.[/red]")
        else:
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")

    def _clear(self) -> None:
        response = self.client.delete(f"{self.base_url}/sessions/{self.session_id}/messages")
        if response.status_code == 200:
            self.console.print("[yellow]Conversation cleared[/yellow]")
        else:
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")

    def _send_message(self, message: str) -> dict | None:
        """Send message to the AI service."""
        try:
            with self.console.status("[dim]Thinking...[/dim]"):
                response = self.client.post(
                    f"{self.base_url}/sessions/{self.session_id}/messages", json={"message": message}
                )

            if response.status_code == 200:
                return response.json()
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
            return None

        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
            return None

    def _display_response(self, session: dict) -> None:
        """Display the latest message of the session."""
        messages = session.get("messages", [])
        if not messages:
            return
        latest = messages[-1]

        if latest["type"] == "error":
            self.console.print(Panel(latest["text"], title="[bold red]Error[/bold red]", border_style="red"))
            return

        self.console.print(
            Panel(
                Markdown(latest["text"]),
                title=f"[bold green]{session.get('tool_id') or 'AI'}[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_tools(self) -> None:
        """Show the available tools."""
        response = self.client.get(f"{self.base_url}/ai/tools")
        if response.status_code != 200:
            self.console.print(f"[red]Could not list tools: {response.status_code}[/red]")
            return

        table = Table(title="AI Tools")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Description", style="dim")
        for tool in response.json():
            table.add_row(tool["id"], tool["display_name"], tool["description"])
        self.console.print(table)

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /tool <id> - Switch to another AI tool (clears the conversation)
• /tools - List the available tools
• /clear - Clear the conversation
• /help - Show this help message
• /quit or /exit - Exit the chat

[bold]Tips:[/bold]
• writing_coach and character_name_generator need no project data
• The CLI sends no project data, so context-based tools answer without it
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
    project_id = sys.argv[2] if len(sys.argv) > 2 else "cli-project"

    chat = ChatCLI(base_url, project_id=project_id)
    chat.start()


if __name__ == "__main__":
    main()
