"""acornforge: declarative build pipeline for the AcornOS live image."""

__version__ = "0.1.0"
__description__ = (
    "Declarative, re-runnable build pipeline for the AcornOS live image"
)
