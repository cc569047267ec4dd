"""Allow ``python -m bytesize``."""

from bytesize.cli import app

app()
