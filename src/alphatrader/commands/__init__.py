"""Built-in sub-commands for the ``alphatrader`` CLI.

Each module exposes Typer commands or sub-apps registered in
:mod:`alphatrader.app`.
"""
