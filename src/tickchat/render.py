"""Terminal renderer for the console chat."""

from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console


class Renderer:
    """Console renderer using Rich for output and prompt_toolkit for input."""

    def __init__(self) -> None:
        self.console: Console = Console()
        self._prompt_session: PromptSession[str] = PromptSession()

    def info(self, message: str) -> None:
        """Render an info message."""
        self.console.print(message)

    def error(self, message: str) -> None:
        """Render an error message."""
        self.console.print(f"[bold red]Error:[/bold red] {message}", markup=True, highlight=False)

    def welcome(self, model: str) -> None:
        """Render welcome message."""
        self.console.print("[bold blue]tickchat[/bold blue] - type [bold]quit[/bold] to leave")
        if model:
            self.console.print(f"[bold]Model:[/bold] [magenta]{model}[/magenta]")

    def assistant_message(self, message: str) -> None:
        """Render assistant message."""
        self.console.print(message, markup=False, highlight=False, style="yellow")

    async def get_user_input(self) -> str:
        """Prompt user for input."""
        with patch_stdout(raw=True):
            return await self._prompt_session.prompt_async("> ")
