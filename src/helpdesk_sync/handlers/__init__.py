"""View-level handlers that bind engines to one open ticket."""
