"""Interface ligne de commande (Typer + Rich)."""
