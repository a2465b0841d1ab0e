"""Domain vocabulary and record types shared by the catalog and importers."""
