"""unused-js: estimate and attribute unused JavaScript bytes."""

__version__ = "0.1.0"
