"""3D Wave Function Collapse constraint solver."""

__version__ = "0.1.0"
