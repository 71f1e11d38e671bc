"""GPX Track Viewer and Playback Tool.

Parses recorded GPS tracks (GPX) and geotagged photos into a time-ordered
coordinate model, and drives a synchronized map/list view through a
scrub-and-play playback engine.
"""

__version__ = "0.1.0"

__author__ = "gpx-viewer contributors"
__license__ = "Apache-2.0"

__all__ = ["__version__"]
