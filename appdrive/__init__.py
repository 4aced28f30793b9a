"""AppDrive: a hierarchical file view of the Google Drive application folder."""

__version__ = "0.1.0"
