"""
Diagram engine core: extraction, classification, simulation and turn
coordination. Builders live in `generators`, models in `schemas`.
"""
