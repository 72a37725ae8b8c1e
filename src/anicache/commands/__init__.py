"""Built-in command groups registered on the root Typer application."""
