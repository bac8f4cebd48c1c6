"""
terminal_ui.py
Rich-based terminal output:
- progress bar for the scan steps
- log records rendered through RichHandler
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn


def configure_logging(level: int = logging.INFO, console: Optional[Console] = None) -> None:
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger("layerscan")
    root.handlers[:] = [handler]
    root.setLevel(level)


class TerminalUI:
    def __init__(self, console: Optional[Console] = None, enabled: bool = True):
        self.console = console
        self.enabled = enabled
        self.progress = None
        self.task_id = None

    def start(self, total_tasks: int):
        if not self.enabled:
            return
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            console=self.console,
        )
        self.progress.start()
        self.task_id = self.progress.add_task("Initializing...", total=total_tasks, completed=0)

    def update(self, message: str):
        if self.progress is not None and self.task_id is not None:
            self.progress.update(self.task_id, advance=1, description=message)

    def stop(self):
        if self.progress is not None:
            self.progress.stop()
            self.progress = None
