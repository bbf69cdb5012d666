"""
Rich-based user prompts
"""
from typing import Optional
from rich.console import Console
from rich.prompt import Prompt, Confirm
from rich.panel import Panel
from rich.markup import escape

from ...core.interfaces import PromptProvider
from ...core.logging import get_stderr_console


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider"""
    
    def __init__(self, console: Optional[Console] = None):
        # stderr: stdout is reserved for the remote byte stream
        self.console = console or get_stderr_console()
    
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        if password:
            return Prompt.ask(message, password=True, default=default, console=self.console)
        return Prompt.ask(message, default=default, console=self.console)
    
    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        return Confirm.ask(message, default=default, console=self.console)
    
    def confirm_host_key(
        self,
        host: str,
        key_type: str,
        fingerprint: str,
        is_key_changed: bool,
    ) -> bool:
        """Show the host key and ask whether to trust it"""
        if is_key_changed:
            body = (
                f"[bold]The host key for {escape(host)} has CHANGED.[/bold]\n\n"
                "Someone could be intercepting this connection (man-in-the-middle),\n"
                "or the server key was legitimately replaced.\n\n"
                f"{key_type} key fingerprint: [bold]{fingerprint}[/bold]"
            )
            self.panel(body, title="WARNING: host key changed", border_style="red")
            return self.confirm("Replace the stored key and continue?", default=False)
        
        body = (
            f"The authenticity of host [bold]{escape(host)}[/bold] can't be established.\n\n"
            f"{key_type} key fingerprint: [bold]{fingerprint}[/bold]"
        )
        self.panel(body, title="Unknown host", border_style="yellow")
        return self.confirm("Trust this host and continue connecting?", default=False)
    
    def info(self, message: str) -> None:
        """Display info message"""
        self.console.print(f"[cyan]ℹ[/cyan] {escape(message)}")
    
    def success(self, message: str) -> None:
        """Display success message"""
        self.console.print(f"[green]✓[/green] {escape(message)}")
    
    def warning(self, message: str) -> None:
        """Display warning message"""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")
    
    def error(self, message: str) -> None:
        """Display error message"""
        self.console.print(f"[red]✗[/red] {escape(message)}")
    
    def panel(self, content: str, title: str = "", border_style: str = "blue") -> None:
        """Display content in a panel"""
        self.console.print(Panel(content, title=title, border_style=border_style))
