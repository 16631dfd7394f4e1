"""VesselProfile: turn drawn or imported 2D outlines into lathe-ready profiles."""

__version__ = "0.1.0"
