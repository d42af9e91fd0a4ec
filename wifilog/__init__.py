"""wifilog — daily first/last connection log for one Wi-Fi network."""

__version__ = "0.1.0"
