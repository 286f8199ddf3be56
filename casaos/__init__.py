"""Home server services: shares, SMB connections, notifications, file operations, host information, search suggestions and storage routing."""

__version__ = "0.1.0"