"""Column analysis: name normalization, cell cleaning and type inference."""
