"""HTTP adapter for the diagram engine."""
