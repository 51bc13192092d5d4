"""Character generation engine: weighted extractor and its submission seam."""
