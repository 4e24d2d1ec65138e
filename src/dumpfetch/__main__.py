"""
dumpfetch CLI entry point.

Usage:
    python -m dumpfetch check catalog.json pages-articles
    python -m dumpfetch fetch catalog.json pages-articles -o pages.xml
"""

from dumpfetch.cli import main

if __name__ == "__main__":
    main()
