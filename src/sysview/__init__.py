"""sysview - terminal dashboard for CPU, memory, disk and network usage."""

__version__ = "1.0.0"
