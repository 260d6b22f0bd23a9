"""Account Maps — named maps of credential records on SQLite."""

from accountmaps.constants import APP_VERSION

__version__ = APP_VERSION
