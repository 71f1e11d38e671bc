"""Entry point for running gpx-viewer as a module.

Usage:
    python -m gpx_viewer [command] [options]
"""

from gpx_viewer.cli import main

if __name__ == "__main__":
    main()
