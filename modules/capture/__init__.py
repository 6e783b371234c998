"""Motion sources and fixed-rate sampling."""
