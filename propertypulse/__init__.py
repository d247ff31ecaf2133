"""PropertyPulse: property listing API with ownership checks and image ingestion."""

__version__ = "1.0.0"
