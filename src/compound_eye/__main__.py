"""Allow `python -m compound_eye` to run the CLI."""

from cli.main import app

app()
