from importlib import metadata

try:
    RAMJAM_VERSION = metadata.version("ramjam")
except metadata.PackageNotFoundError:
    # Local run without installation
    RAMJAM_VERSION = "dev"
