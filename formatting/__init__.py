"""Text normalisation and ASCII-layout handling."""
