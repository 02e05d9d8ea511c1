"""Browse, classify and group MacPorts ports from the PortIndex and registry."""

__version__ = "0.1.0"
