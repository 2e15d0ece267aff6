from .emo import cli, main

__all__ = ["cli", "main"]
