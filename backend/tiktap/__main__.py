"""CLI entry point for python -m tiktap"""
from tiktap.cli.commands import app

if __name__ == "__main__":
    app()
