"""Host resource monitoring: dynamic-baseline alerts, dependency-graph root
cause inference and trend diagnoses."""

__version__ = "0.1.0"
