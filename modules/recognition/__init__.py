"""Window classifiers and the per-cycle prediction aggregator."""
