"""Command-line tools for docdesk.

- ``python -m docdesk.cli ingest FILE...`` -- ingest local documents
- ``python -m docdesk.cli stats`` -- corpus statistics
- ``python -m docdesk.cli ask "QUESTION"`` -- ask a question from the terminal

All commands use argparse and assemble the same components as the web app.
"""
