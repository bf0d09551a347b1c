"""Export / import of the portable JSON document."""
