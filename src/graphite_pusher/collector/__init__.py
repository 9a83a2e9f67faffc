"""psutil-based producers of system resource samples."""
